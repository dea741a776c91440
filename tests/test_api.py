"""HTTP tests over ASGITransport (lifespan not run; tables created by the fixture)."""

from datetime import timedelta
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from tipping.errors import StoreError
from tipping.main import create_app
from tipping.security import limiter

from conftest import NOW


@pytest_asyncio.fixture
async def app(settings, database, clock):
    return create_app(settings=settings, database=database, clock=clock)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _seed(client, kickoff_offset_minutes=30):
    home = (await client.post("/api/clubs", json={"name": "FC Nord"})).json()
    away = (await client.post("/api/clubs", json={"name": "SV Süd"})).json()
    user = (await client.post("/api/users", json={"name": "anna", "role": "tipper"})).json()
    match = (await client.post("/api/matches", json={
        "kickoff": (NOW + timedelta(minutes=kickoff_offset_minutes)).isoformat(),
        "home_club_id": home["id"],
        "away_club_id": away["id"],
    })).json()
    return user, match


class TestCore:

    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "scheduler_running": False}

    @pytest.mark.asyncio
    async def test_metrics(self, client):
        resp = await client.get("/metrics")
        assert resp.status_code == 200
        assert "match_status_transitions_total" in resp.text

    @pytest.mark.asyncio
    async def test_health_limit_follows_app_settings(self, settings, database, clock):
        app = create_app(
            settings=settings.model_copy(update={"HEALTH_RATE_LIMIT": "2/minute"}),
            database=database,
            clock=clock,
        )
        limiter.reset()
        transport = httpx.ASGITransport(app=app)
        try:
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
                statuses = [(await c.get("/health")).status_code for _ in range(3)]
        finally:
            limiter.reset()

        assert statuses == [200, 200, 429]


class TestMatchFlow:

    @pytest.mark.asyncio
    async def test_predict_then_lock_then_finish(self, client, clock):
        user, match = await _seed(client, kickoff_offset_minutes=30)
        assert match["status"] == "planned"

        resp = await client.post("/api/predictions", json={
            "user_id": user["id"], "match_id": match["id"],
            "predicted_home_score": 2, "predicted_away_score": 1,
        })
        assert resp.status_code == 200
        assert resp.json()["predicted_home_score"] == 2

        clock.advance(minutes=35)
        [listed] = (await client.get("/api/matches")).json()
        assert listed["status"] == "live"

        resp = await client.post("/api/predictions", json={
            "user_id": user["id"], "match_id": match["id"],
            "predicted_home_score": 5, "predicted_away_score": 0,
        })
        assert resp.status_code == 403
        assert resp.json() == {"error": "forbidden", "detail": "predictions closed"}

        resp = await client.patch(f"/api/matches/{match['id']}/result", json={
            "home_score": 3, "away_score": 1, "force_finished": True,
        })
        assert resp.status_code == 200
        assert resp.json()["status"] == "finished"
        assert resp.json()["home_score"] == 3

        preds = (await client.get(f"/api/matches/{match['id']}/predictions")).json()
        assert [(p["predicted_home_score"], p["predicted_away_score"]) for p in preds] == [(2, 1)]

    @pytest.mark.asyncio
    async def test_result_on_planned_match_rejected(self, client):
        _, match = await _seed(client, kickoff_offset_minutes=30)

        resp = await client.patch(f"/api/matches/{match['id']}/result", json={
            "home_score": 1, "away_score": 0, "force_finished": True,
        })

        assert resp.status_code == 403
        assert resp.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_incomplete_prediction(self, client):
        user, match = await _seed(client)

        resp = await client.post("/api/predictions", json={
            "user_id": user["id"], "match_id": match["id"], "predicted_home_score": 1,
        })

        assert resp.status_code == 400
        assert resp.json() == {"error": "validation_error", "detail": "incomplete data"}

    @pytest.mark.asyncio
    async def test_non_tipper_forbidden(self, client):
        _, match = await _seed(client)
        admin = (await client.post("/api/users", json={"name": "root", "role": "admin"})).json()

        resp = await client.post("/api/predictions", json={
            "user_id": admin["id"], "match_id": match["id"],
            "predicted_home_score": 1, "predicted_away_score": 1,
        })

        assert resp.status_code == 403
        assert (await client.get(f"/api/users/{admin['id']}/predictions")).json() == []

    @pytest.mark.asyncio
    async def test_create_match_requires_fields(self, client):
        resp = await client.post("/api/matches", json={"home_club_id": 1, "away_club_id": 2})
        assert resp.status_code == 400

        resp = await client.post("/api/matches", json={
            "kickoff": NOW.isoformat(), "home_club_id": 1, "away_club_id": 1,
        })
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_aware_kickoff_stored_as_utc(self, client):
        home = (await client.post("/api/clubs", json={"name": "A"})).json()
        away = (await client.post("/api/clubs", json={"name": "B"})).json()

        resp = await client.post("/api/matches", json={
            "kickoff": "2026-03-07T17:00:00+02:00",
            "home_club_id": home["id"], "away_club_id": away["id"],
        })

        assert resp.status_code == 201
        assert resp.json()["kickoff"] == "2026-03-07T15:00:00"

    @pytest.mark.asyncio
    async def test_delete_match(self, client):
        _, match = await _seed(client)

        assert (await client.delete(f"/api/matches/{match['id']}")).json() == {"success": True}
        assert (await client.delete(f"/api/matches/{match['id']}")).status_code == 404
        assert (await client.get("/api/matches")).json() == []


class TestReferenceData:

    @pytest.mark.asyncio
    async def test_clubs(self, client):
        assert (await client.post("/api/clubs", json={})).status_code == 400

        created = (await client.post("/api/clubs", json={"name": "Werder"})).json()
        assert (await client.get("/api/clubs")).json() == [created]

        assert (await client.delete(f"/api/clubs/{created['id']}")).status_code == 200
        assert (await client.delete(f"/api/clubs/{created['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_time_slots(self, client):
        assert (await client.post("/api/time-slots", json={})).status_code == 400

        resp = await client.post("/api/time-slots", json={"starts_at": NOW.isoformat()})
        assert resp.status_code == 201
        body = resp.json()
        assert body["id"] == body["data"]["id"]
        assert body["message"] == "time slot saved"

        slots = (await client.get("/api/time-slots")).json()
        assert [s["starts_at"] for s in slots] == [NOW.isoformat()]

    @pytest.mark.asyncio
    async def test_unknown_user(self, client):
        resp = await client.get("/api/users/999")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "user 999 not found"


class TestErrorMapping:

    @pytest.mark.asyncio
    async def test_store_error_is_503(self, app, client):
        app.state.services.store.list_clubs = AsyncMock(side_effect=StoreError("list clubs failed"))

        resp = await client.get("/api/clubs")

        assert resp.status_code == 503
        assert resp.json() == {"error": "store_error", "detail": "list clubs failed"}

    @pytest.mark.asyncio
    async def test_malformed_body_is_validation_error(self, client):
        user, match = await _seed(client)

        resp = await client.post("/api/predictions", json={
            "user_id": user["id"], "match_id": match["id"],
            "predicted_home_score": "x", "predicted_away_score": 1,
        })

        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"
        assert "predicted_home_score" in resp.json()["detail"]
        assert (await client.get(f"/api/matches/{match['id']}/predictions")).json() == []
