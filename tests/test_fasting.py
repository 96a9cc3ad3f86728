import uuid
from datetime import datetime, timedelta, timezone

import pytest


def _ago(**delta) -> str:
    return (datetime.now(timezone.utc) - timedelta(**delta)).isoformat()


@pytest.mark.asyncio
async def test_start_fast(client):
    response = await client.post("/fasts", json={
        "fast_type": "food",
        "purpose": "Seeking direction",
        "prayer_focus": "Work",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["fast_type"] == "food"
    assert data["is_active"] is True
    assert data["ended_at"] is None
    assert data["duration_minutes"] is None

    active = (await client.get("/fasts/active")).json()
    assert active["id"] == data["id"]


@pytest.mark.asyncio
async def test_no_active_fast(client):
    response = await client.get("/fasts/active")
    assert response.status_code == 200
    assert response.json() is None


@pytest.mark.asyncio
async def test_one_active_fast_at_a_time(client):
    await client.post("/fasts", json={"fast_type": "water"})
    response = await client.post("/fasts", json={"fast_type": "social_media"})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_end_fast_records_duration(client):
    started = (await client.post("/fasts", json={
        "fast_type": "water",
        "started_at": _ago(hours=12, minutes=30),
    })).json()

    response = await client.post(f"/fasts/{started['id']}/end", json={"notes": "Broke fast with bread"})
    assert response.status_code == 200
    data = response.json()
    assert data["is_active"] is False
    assert data["duration_minutes"] in (750, 751)
    assert data["notes"] == "Broke fast with bread"

    again = await client.post(f"/fasts/{started['id']}/end", json={})
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_end_before_start_rejected(client):
    started = (await client.post("/fasts", json={"fast_type": "food", "started_at": _ago(hours=1)})).json()

    response = await client.post(f"/fasts/{started['id']}/end", json={"ended_at": _ago(hours=2)})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_start_in_future_rejected(client):
    future = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()
    response = await client.post("/fasts", json={"fast_type": "food", "started_at": future})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_log_finished_fast_while_another_is_active(client):
    await client.post("/fasts", json={"fast_type": "entertainment"})

    response = await client.post("/fasts", json={
        "fast_type": "food",
        "started_at": _ago(days=3),
        "ended_at": _ago(days=2),
    })
    assert response.status_code == 201
    assert response.json()["duration_minutes"] == 24 * 60
    assert response.json()["is_active"] is False


@pytest.mark.asyncio
async def test_finished_fast_needs_start(client):
    response = await client.post("/fasts", json={"fast_type": "food", "ended_at": _ago(hours=1)})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_fasts_by_status(client):
    await client.post("/fasts", json={"fast_type": "food", "started_at": _ago(days=5), "ended_at": _ago(days=4)})
    await client.post("/fasts", json={"fast_type": "water"})

    everything = (await client.get("/fasts")).json()
    active = (await client.get("/fasts?status=active")).json()
    past = (await client.get("/fasts?status=past")).json()
    assert [f["fast_type"] for f in everything] == ["water", "food"]
    assert [f["fast_type"] for f in active] == ["water"]
    assert [f["fast_type"] for f in past] == ["food"]


@pytest.mark.asyncio
async def test_update_fast_notes(client):
    fast = (await client.post("/fasts", json={"fast_type": "custom", "description": "No coffee"})).json()

    response = await client.patch(f"/fasts/{fast['id']}", json={"notes": "Harder than expected"})
    assert response.status_code == 200
    assert response.json()["notes"] == "Harder than expected"
    assert response.json()["description"] == "No coffee"


@pytest.mark.asyncio
async def test_delete_fast(client):
    fast = (await client.post("/fasts", json={"fast_type": "food"})).json()

    assert (await client.delete(f"/fasts/{fast['id']}")).status_code == 204
    assert (await client.get(f"/fasts/{fast['id']}")).status_code == 404
    assert (await client.delete(f"/fasts/{uuid.uuid4()}")).status_code == 404
