import asyncio
from collections import Counter

import pytest

from cineverse.core.exceptions import BookingError, SeatConflictError
from cineverse.crud.booking import crud_booking
from cineverse.crud.seat import crud_seat


async def attempt(db_session_factory, redis_client, user_id, schedule_id, seat_ids):
    """Make a booking request with its own session."""
    async with db_session_factory() as session:
        try:
            booking = await crud_booking.commit_booking(session, redis_client, user_id, schedule_id, seat_ids)
            return {"success": True, "booking_id": booking.id, "seat_ids": booking.seat_ids}
        except SeatConflictError:
            return {"success": False, "error": "conflict"}


@pytest.mark.asyncio
async def test_concurrent_same_seat_booking(db_session_factory, redis_client, seeded_test_data):
    """Test concurrent booking attempts on the same seat - only one should succeed."""
    num_of_concurrent_requests = 10
    schedule_id = seeded_test_data["schedule_id"]
    seat_id = seeded_test_data["vip_seat_ids"][0]

    coros = [
        attempt(db_session_factory, redis_client, f"user-{i}", schedule_id, [seat_id])
        for i in range(num_of_concurrent_requests)
    ]
    results = await asyncio.gather(*coros)

    successful_bookings = [r for r in results if r["success"]]
    failed_bookings = [r for r in results if not r["success"]]
    assert len(successful_bookings) == 1, f"Expected 1 success, got {len(successful_bookings)}. Results: {results}"
    assert len(failed_bookings) == num_of_concurrent_requests - 1
    assert all(r["error"] == "conflict" for r in failed_bookings)

    async with db_session_factory() as session:
        bookings = await crud_booking.list_bookings(session, schedule_id=schedule_id)
        seat = await crud_seat.get_seat(session, seat_id)
    assert [b.id for b in bookings] == [successful_bookings[0]["booking_id"]]
    assert seat.booked is True


@pytest.mark.asyncio
async def test_concurrent_different_seats(db_session_factory, redis_client, seeded_test_data):
    """Users booking disjoint seats at the same time all succeed."""
    schedule_id = seeded_test_data["schedule_id"]
    standard = seeded_test_data["standard_seat_ids"]
    seat_sets = [standard[0:2], standard[2:4], standard[4:6], standard[6:8]]

    results = await asyncio.gather(*[
        attempt(db_session_factory, redis_client, f"user-{i}", schedule_id, seats)
        for i, seats in enumerate(seat_sets)
    ])

    assert all(r["success"] for r in results), f"Results: {results}"
    async with db_session_factory() as session:
        booked = await crud_seat.seats_for_schedule(session, schedule_id, booked=True)
    assert {seat.id for seat in booked} == set(standard[:8])


@pytest.mark.asyncio
async def test_booking_concurrency_overlapping_seats(db_session_factory, redis_client, seeded_test_data):
    """Overlapping requests: every seat ends up in at most one booking."""
    schedule_id = seeded_test_data["schedule_id"]
    vip = seeded_test_data["vip_seat_ids"]
    seat_sets = [[vip[0], vip[1]], [vip[1], vip[2]], [vip[2], vip[3]], [vip[3], vip[4]], [vip[0], vip[4]]]

    results = await asyncio.gather(*[
        attempt(db_session_factory, redis_client, f"user-{i}", schedule_id, seats)
        for i, seats in enumerate(seat_sets)
    ])

    successful_bookings = [r for r in results if r["success"]]
    assert successful_bookings, f"Results: {results}"
    per_seat = Counter(seat_id for r in successful_bookings for seat_id in r["seat_ids"])
    assert all(count == 1 for count in per_seat.values())

    async with db_session_factory() as session:
        booked = await crud_seat.seats_for_schedule(session, schedule_id, booked=True)
        bookings = await crud_booking.list_bookings(session, schedule_id=schedule_id)
    assert {seat.id for seat in booked} == set(per_seat)
    assert len(bookings) == len(successful_bookings)


@pytest.mark.asyncio
async def test_failed_commit_does_not_block_a_contender(db_session_factory, redis_client, seeded_test_data):
    """A commit that fails on a bad seat id must not cost a concurrent commit its free seat."""
    schedule_id = seeded_test_data["schedule_id"]
    seat_id = seeded_test_data["vip_seat_ids"][0]

    async def commit(user_id, seat_ids):
        async with db_session_factory() as session:
            try:
                booking = await crud_booking.commit_booking(session, redis_client, user_id, schedule_id, seat_ids)
                return booking.seat_ids
            except BookingError as e:
                return type(e).__name__

    results = await asyncio.gather(commit("user-a", [seat_id, "no-such-seat"]), commit("user-b", [seat_id]))

    assert results == ["NotFoundError", [seat_id]]
    async with db_session_factory() as session:
        seat = await crud_seat.get_seat(session, seat_id)
    assert seat.booked is True


@pytest.mark.asyncio
async def test_conflicting_commit_leaves_free_seat_to_contender(db_session_factory, redis_client, seeded_test_data):
    """A commit refused for one booked seat never keeps its other seat from a contender."""
    schedule_id = seeded_test_data["schedule_id"]
    free, taken = seeded_test_data["vip_seat_ids"][:2]
    earlier = await attempt(db_session_factory, redis_client, "user-0", schedule_id, [taken])
    assert earlier["success"]

    results = await asyncio.gather(
        attempt(db_session_factory, redis_client, "user-a", schedule_id, [free, taken]),
        attempt(db_session_factory, redis_client, "user-b", schedule_id, [free]),
    )

    assert results[0] == {"success": False, "error": "conflict"}
    assert results[1]["success"] and results[1]["seat_ids"] == [free]
