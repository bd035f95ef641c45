from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from cineverse.app import app
from cineverse.db.session import getDB_session
from cineverse.redis import get_redis

VENDOR_HEADERS = {"X-User-Id": "vendor-1", "X-User-Role": "vendor"}
ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
USER_HEADERS = {"X-User-Id": "user-1"}


@pytest.fixture
async def client(db_session_factory, redis_client):
    async def override_db():
        async with db_session_factory() as session:
            yield session

    async def override_redis():
        yield redis_client

    app.dependency_overrides[getDB_session] = override_db
    app.dependency_overrides[get_redis] = override_redis
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def create_showing(client):
    company = await client.post("/api/v1/company/", headers=VENDOR_HEADERS, json={
        "name": "Cineverse",
        "seats": [
            {"name": "VIP", "capacity": 10, "color": "gold", "default_price": "25"},
            {"name": "Standard", "capacity": 25, "color": "blue", "default_price": "12.50"},
        ],
    })
    assert company.status_code == 201, company.text
    movie = await client.post("/api/v1/movie/", headers=ADMIN_HEADERS, json={
        "name": "Test Movie", "genre": ["Drama"], "duration": 110,
    })
    assert movie.status_code == 201, movie.text
    schedule = await client.post("/api/v1/schedule/", headers=VENDOR_HEADERS, json={
        "company_id": company.json()["id"],
        "movie_id": movie.json()["id"],
        "date": "2026-11-01",
        "time": "20:00:00",
    })
    assert schedule.status_code == 201, schedule.text
    seats = await client.get(f"/api/v1/schedule/{schedule.json()['id']}/seats")
    return schedule.json(), seats.json()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_roles_are_enforced(client):
    response = await client.post("/api/v1/movie/", headers=VENDOR_HEADERS, json={"name": "Nope", "duration": 90})
    assert response.status_code == 403
    assert "error" in response.json()

    response = await client.post("/api/v1/company/", headers=USER_HEADERS, json={
        "name": "Nope", "seats": [{"name": "Standard", "capacity": 5}]})
    assert response.status_code == 403

    # identity is required
    response = await client.get("/api/v1/booking/mine")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_schedule_and_seat_map(client):
    schedule, seats = await create_showing(client)

    assert [t["name"] for t in schedule["seat_types"]] == ["VIP", "Standard"]
    assert len(seats) == 35
    assert seats[0]["row"] == "A" and seats[0]["seat_no"] == 1 and seats[0]["seat_name"] == "VIP"

    layout = await client.get(f"/api/v1/schedule/{schedule['id']}/seat-layout")
    assert layout.status_code == 200
    assert layout.json()["available"] == 35

    seat = await client.get(f"/api/v1/seat/{seats[0]['id']}")
    assert seat.json()["id"] == seats[0]["id"]

    missing = await client.get("/api/v1/schedule/no-such-schedule")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Schedule no-such-schedule not found"}


@pytest.mark.asyncio
async def test_empty_seat_types_is_rejected(client):
    schedule, _ = await create_showing(client)
    response = await client.post("/api/v1/schedule/", headers=VENDOR_HEADERS, json={
        "company_id": schedule["company_id"],
        "movie_id": schedule["movie_id"],
        "date": "2026-11-02",
        "seat_types": [],
    })
    assert response.status_code == 422
    assert response.json() == {"error": "At least one seat type is required"}


@pytest.mark.asyncio
async def test_commit_and_conflict(client):
    schedule, seats = await create_showing(client)
    body = {"schedule_id": schedule["id"], "seat_ids": [seats[0]["id"], seats[10]["id"]]}

    first = await client.post("/api/v1/booking/", headers=USER_HEADERS, json=body)
    assert first.status_code == 201, first.text
    assert first.json()["status"] == "confirmed"
    assert Decimal(first.json()["total_price"]) == Decimal("37.50")

    second = await client.post("/api/v1/booking/", headers={"X-User-Id": "user-2"}, json=body)
    assert second.status_code == 409
    assert set(second.json()["seat_ids"]) == set(body["seat_ids"])

    mine = await client.get("/api/v1/booking/mine", headers=USER_HEADERS)
    assert [b["id"] for b in mine.json()] == [first.json()["id"]]

    other = await client.get(f"/api/v1/booking/{first.json()['id']}", headers={"X-User-Id": "user-2"})
    assert other.status_code == 403
    vendor_view = await client.get(f"/api/v1/booking/{first.json()['id']}", headers=VENDOR_HEADERS)
    assert vendor_view.status_code == 200


@pytest.mark.asyncio
async def test_selection_checkout_is_idempotent(client):
    schedule, seats = await create_showing(client)
    for seat in seats[:2]:
        response = await client.post("/api/v1/selection/toggle", headers=USER_HEADERS, json={"seat_id": seat["id"]})
        assert response.status_code == 200
    selection = await client.get("/api/v1/selection", headers=USER_HEADERS)
    assert [s["id"] for s in selection.json()["seats"]] == [seats[0]["id"], seats[1]["id"]]
    assert selection.json()["seat_ids"] == [seats[0]["id"], seats[1]["id"]]
    assert Decimal(selection.json()["total_price"]) == Decimal("50")

    headers = {**USER_HEADERS, "X-Idempotency-Key": "checkout-1"}
    first = await client.post("/api/v1/booking/checkout", headers=headers)
    assert first.status_code == 201, first.text
    replay = await client.post("/api/v1/booking/checkout", headers=headers)
    assert replay.json()["id"] == first.json()["id"]

    selection = await client.get("/api/v1/selection", headers=USER_HEADERS)
    assert selection.json()["seats"] == []
    empty = await client.post("/api/v1/booking/checkout", headers=USER_HEADERS)
    assert empty.status_code == 422


@pytest.mark.asyncio
async def test_idempotency_key_is_per_user(client):
    schedule, seats = await create_showing(client)

    first = await client.post(
        "/api/v1/booking/", headers={**USER_HEADERS, "X-Idempotency-Key": "k1"},
        json={"schedule_id": schedule["id"], "seat_ids": [seats[0]["id"]]})
    assert first.status_code == 201, first.text
    second = await client.post(
        "/api/v1/booking/", headers={"X-User-Id": "user-2", "X-Idempotency-Key": "k1"},
        json={"schedule_id": schedule["id"], "seat_ids": [seats[5]["id"]]})
    assert second.status_code == 201, second.text

    assert second.json()["id"] != first.json()["id"]
    assert second.json()["user_id"] == "user-2"
    assert second.json()["seat_ids"] == [seats[5]["id"]]
    booked = await client.get(f"/api/v1/schedule/{schedule['id']}/seats", params={"booked": "true"})
    assert [s["id"] for s in booked.json()] == [seats[0]["id"], seats[5]["id"]]


@pytest.mark.asyncio
async def test_idempotency_key_reused_with_other_body(client):
    schedule, seats = await create_showing(client)
    headers = {**USER_HEADERS, "X-Idempotency-Key": "k1"}

    first = await client.post("/api/v1/booking/", headers=headers, json={
        "schedule_id": schedule["id"], "seat_ids": [seats[0]["id"]]})
    assert first.status_code == 201, first.text
    replay = await client.post("/api/v1/booking/", headers=headers, json={
        "schedule_id": schedule["id"], "seat_ids": [seats[0]["id"]]})
    assert replay.json()["id"] == first.json()["id"]

    other = await client.post("/api/v1/booking/", headers=headers, json={
        "schedule_id": schedule["id"], "seat_ids": [seats[1]["id"]]})
    assert other.status_code == 422
    assert other.json() == {"error": "Idempotency key was already used for a different request"}
    seat = await client.get(f"/api/v1/seat/{seats[1]['id']}")
    assert seat.json()["booked"] is False


@pytest.mark.asyncio
async def test_cancel_and_vendor_listing(client):
    schedule, seats = await create_showing(client)
    booking = await client.post("/api/v1/booking/", headers=USER_HEADERS, json={
        "schedule_id": schedule["id"], "seat_ids": [seats[5]["id"]]})

    listing = await client.get("/api/v1/booking/", headers=VENDOR_HEADERS)
    assert [b["id"] for b in listing.json()] == [booking.json()["id"]]
    outsider = await client.get("/api/v1/booking/", headers={"X-User-Id": "vendor-2", "X-User-Role": "vendor"})
    assert outsider.json() == []

    cancelled = await client.post(f"/api/v1/booking/{booking.json()['id']}/cancel", headers=USER_HEADERS)
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    free = await client.get(f"/api/v1/schedule/{schedule['id']}/seats", params={"booked": "false"})
    assert len(free.json()) == 35
