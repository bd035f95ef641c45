from decimal import Decimal
from types import SimpleNamespace

import pytest

from cineverse.crud.booking import crud_booking
from cineverse.crud.seat import crud_seat
from cineverse.schemas.selection import SeatSelection
from cineverse.services.selection import selection_key, selection_store


def seat(seat_id, schedule_id="schedule-1", booked=False, price="10"):
    return SimpleNamespace(
        id=seat_id, schedule_id=schedule_id, seat_name="Standard", row="A",
        seat_no=1, booked=booked, price=Decimal(price))


def test_toggle_adds_then_removes():
    selection = SeatSelection()
    selection.toggle(seat("s1")).toggle(seat("s2", price="12.5"))
    assert selection.schedule_id == "schedule-1"
    assert selection.seat_ids == ["s1", "s2"]
    assert selection.total_price == Decimal("22.5")

    selection.toggle(seat("s1"))
    assert selection.seat_ids == ["s2"]


def test_toggle_booked_seat_is_a_no_op():
    selection = SeatSelection().toggle(seat("s1"))
    selection.toggle(seat("s2", booked=True))
    assert selection.seat_ids == ["s1"]

    # a seat booked since it was selected is not removed by toggling either
    selection.toggle(seat("s1", booked=True))
    assert selection.seat_ids == ["s1"]


def test_seat_of_another_schedule_starts_a_new_draft():
    selection = SeatSelection().toggle(seat("s1")).toggle(seat("s2"))
    selection.toggle(seat("t1", schedule_id="schedule-2"))
    assert selection.schedule_id == "schedule-2"
    assert selection.seat_ids == ["t1"]


def test_select_schedule_clears_only_on_change():
    selection = SeatSelection().toggle(seat("s1"))
    selection.select_schedule("schedule-1")
    assert selection.seat_ids == ["s1"]

    selection.select_schedule("schedule-2")
    assert selection.schedule_id == "schedule-2"
    assert selection.seats == []


def test_clear_keeps_schedule():
    selection = SeatSelection().toggle(seat("s1")).clear()
    assert selection.seats == []
    assert selection.schedule_id == "schedule-1"
    assert selection.total_price == Decimal("0")


@pytest.mark.asyncio
async def test_selection_store_round_trip(redis_client):
    await selection_store.toggle_selection(redis_client, "user-1", seat("s1"))
    await selection_store.toggle_selection(redis_client, "user-1", seat("s2"))
    await selection_store.toggle_selection(redis_client, "user-2", seat("s3"))

    assert (await selection_store.get(redis_client, "user-1")).seat_ids == ["s1", "s2"]
    assert (await selection_store.get(redis_client, "user-2")).seat_ids == ["s3"]
    assert await redis_client.ttl(selection_key("user-1")) > 0

    await selection_store.select_schedule(redis_client, "user-1", "schedule-2")
    assert (await selection_store.get(redis_client, "user-1")).seat_ids == []

    await selection_store.clear_selection(redis_client, "user-2")
    assert await redis_client.exists(selection_key("user-2")) == 0


@pytest.mark.asyncio
async def test_booked_seat_cannot_be_selected(db_session, redis_client, seeded_test_data):
    schedule_id = seeded_test_data["schedule_id"]
    taken, free = seeded_test_data["vip_seat_ids"][:2]
    await crud_booking.commit_booking(db_session, redis_client, "user-1", schedule_id, [taken])

    for seat_id in (taken, free):
        await selection_store.toggle_selection(
            redis_client, "user-2", await crud_seat.get_seat(db_session, seat_id))

    selection = await selection_store.get(redis_client, "user-2")
    assert selection.schedule_id == schedule_id
    assert selection.seat_ids == [free]
