"""
Seat map generation.

A schedule's seat types expand into individually addressable seats: every
seat type is cut into rows of ``seats_per_row`` seats, rows are labelled
from ``A`` for each seat type and seat numbers restart at 1 on every row.
The last row of a seat type holds whatever is left of its capacity.
"""
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

DEFAULT_SEATS_PER_ROW = 10


@dataclass(frozen=True)
class SeatSpec:
    seat_name: str
    row: str
    seat_no: int
    price: Decimal
    position: int


def row_label(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA, 27 -> AB, 701 -> ZZ, 702 -> AAA."""
    if index < 0:
        raise ValueError("row index must be non-negative")
    label = ""
    n = index + 1
    while n > 0:
        n, remainder = divmod(n - 1, 26)
        label = chr(65 + remainder) + label
    return label


def rows_needed(capacity: int, seats_per_row: int = DEFAULT_SEATS_PER_ROW) -> int:
    return math.ceil(capacity / seats_per_row)


def expand_seat_types(seat_types: Iterable, seats_per_row: int = DEFAULT_SEATS_PER_ROW) -> list[SeatSpec]:
    """
    Expand seat types (anything with name, capacity and price) into seat specs.
    Same input, same output: the layout depends on nothing but its arguments.
    """
    if seats_per_row <= 0:
        raise ValueError("seats_per_row must be positive")
    specs: list[SeatSpec] = []
    position = 0
    for seat_type in seat_types:
        capacity = int(seat_type.capacity)
        price = Decimal(seat_type.price)
        for row_index in range(rows_needed(capacity, seats_per_row)):
            seats_in_row = min(seats_per_row, capacity - row_index * seats_per_row)
            label = row_label(row_index)
            for seat_no in range(1, seats_in_row + 1):
                specs.append(SeatSpec(
                    seat_name=seat_type.name,
                    row=label,
                    seat_no=seat_no,
                    price=price,
                    position=position,
                ))
                position += 1
    return specs
