"""
Tests para endpoints de reservas
"""
import pytest
from fastapi import status

from helpers import OTHER, OWNER, REQUESTER, TOOL_ID, auth, window


def payload(hours=(24, 48), tool_id=TOOL_ID, **kw):
    start, end = window(*hours)
    return {"tool_id": tool_id, "start": start.isoformat(), "end": end.isoformat(), **kw}


async def create(client, hours=(24, 48), user=REQUESTER, **kw):
    r = await client.post("/bookings", json=payload(hours, **kw), headers=auth(user))
    assert r.status_code == status.HTTP_201_CREATED, r.text
    return r.json()


@pytest.mark.asyncio
async def test_create_requires_auth(client):
    r = await client.post("/bookings", json=payload())
    assert r.status_code == status.HTTP_401_UNAUTHORIZED

    r = await client.post("/bookings", json=payload(), headers={"Authorization": "Bearer nope"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_booking_status_flow(client):
    b = await create(client, contact="test@test.com", comments="Test booking")
    assert b["status"] == "pending"
    assert b["tool_id"] == TOOL_ID
    assert b["owner_id"] == OWNER and b["requester_id"] == REQUESTER

    r = await client.get("/bookings/requests", headers=auth(OWNER))
    assert [x["id"] for x in r.json()] == [b["id"]]
    r = await client.get("/bookings/petitions", headers=auth(REQUESTER))
    assert [x["id"] for x in r.json()] == [b["id"]]

    r = await client.patch(f"/bookings/{b['id']}/status", json={"status": "accepted"}, headers=auth(OWNER))
    assert r.status_code == 200 and r.json()["status"] == "accepted"

    r = await client.get(f"/bookings/{b['id']}", headers=auth(REQUESTER))
    assert r.json()["status"] == "accepted"


@pytest.mark.asyncio
async def test_error_kinds_are_distinguishable(client):
    b1 = await create(client)
    b2 = await create(client)
    await client.patch(f"/bookings/{b1['id']}/status", json={"status": "accepted"}, headers=auth(OWNER))

    # conflicto de fechas
    r = await client.post("/bookings", json=payload(), headers=auth(REQUESTER))
    assert r.status_code == status.HTTP_409_CONFLICT
    assert r.json()["code"] == "dates_conflict"

    r = await client.patch(f"/bookings/{b2['id']}/status", json={"status": "accepted"}, headers=auth(OWNER))
    assert r.status_code == status.HTTP_409_CONFLICT

    # transición no permitida
    r = await client.patch(f"/bookings/{b1['id']}/status", json={"status": "rejected"}, headers=auth(OWNER))
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["code"] == "invalid_transition"

    r = await client.patch(f"/bookings/{b2['id']}/status", json={"status": "completed"}, headers=auth(OWNER))
    assert r.json()["code"] == "invalid_transition"

    # fechas mal formadas
    r = await client.post("/bookings", json=payload((48, 24)), headers=auth(REQUESTER))
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["code"] == "invalid_dates"

    # no encontrado
    r = await client.post("/bookings", json=payload(tool_id=999), headers=auth(REQUESTER))
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json()["code"] == "not_found"

    r = await client.get("/bookings/665f1c0a9b1e4a00000000ff", headers=auth(OWNER))
    assert r.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_actor_rules(client):
    b = await create(client)
    url = f"/bookings/{b['id']}/status"

    # un tercero no ve ni toca la reserva
    r = await client.get(f"/bookings/{b['id']}", headers=auth(OTHER))
    assert r.status_code == status.HTTP_403_FORBIDDEN
    r = await client.patch(url, json={"status": "cancelled"}, headers=auth(OTHER))
    assert r.status_code == status.HTTP_403_FORBIDDEN

    # el solicitante no puede aceptarse a sí mismo; el dueño no cancela por él
    r = await client.patch(url, json={"status": "accepted"}, headers=auth(REQUESTER))
    assert r.status_code == status.HTTP_403_FORBIDDEN
    r = await client.patch(url, json={"status": "cancelled"}, headers=auth(OWNER))
    assert r.status_code == status.HTTP_403_FORBIDDEN

    r = await client.patch(url, json={"status": "cancelled"}, headers=auth(REQUESTER))
    assert r.status_code == 200 and r.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_tool_bookings_listing(client):
    b1 = await create(client, (24, 48))
    b2 = await create(client, (72, 96))
    await client.patch(f"/bookings/{b1['id']}/status", json={"status": "accepted"}, headers=auth(OWNER))

    r = await client.get(f"/bookings/tool/{TOOL_ID}", headers=auth(OTHER))
    assert [x["id"] for x in r.json()] == [b1["id"], b2["id"]]

    r = await client.get(f"/bookings/tool/{TOOL_ID}?status=accepted", headers=auth(OTHER))
    assert [x["id"] for x in r.json()] == [b1["id"]]


@pytest.mark.asyncio
async def test_tool_listing_hides_contact_details(client):
    b = await create(client, contact="secret@mail.com", comments="private")

    # el detalle sigue siendo solo para las partes
    r = await client.get(f"/bookings/{b['id']}", headers=auth(OTHER))
    assert r.status_code == status.HTTP_403_FORBIDDEN

    for user in (OTHER, OWNER, REQUESTER):
        r = await client.get(f"/bookings/tool/{TOOL_ID}", headers=auth(user))
        assert r.status_code == 200
        (slot,) = r.json()
        assert set(slot) == {"id", "tool_id", "start", "end", "status"}
        assert "secret@mail.com" not in r.text and "private" not in r.text


@pytest.mark.asyncio
async def test_tool_listing_bad_status_filter(client):
    r = await client.get(f"/bookings/tool/{TOOL_ID}?status=completed", headers=auth(OWNER))
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["code"] == "invalid_request"

    r = await client.get("/bookings/tool/999", headers=auth(OWNER))
    assert r.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_invalid_booking_id_format(client):
    r = await client.get("/bookings/not-an-id", headers=auth(OWNER))
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200 and r.json()["status"] == "ok"
