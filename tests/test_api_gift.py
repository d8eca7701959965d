"""Tests for the gift and health API endpoints."""
import logging
from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient, ASGITransport

from dailygift.config import DEFAULT_GIFT_CATALOG
from dailygift.dependencies import get_gift_service
from dailygift.services import GiftService, UserService
from dailygift.utils.exceptions import StoreUnavailableError


API_BASE_URL = "http://test"


@pytest.mark.asyncio
async def test_health(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_status_reports_version(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.get("/api/status")

    assert response.status_code == 200
    data = response.json()
    assert data["version"]
    assert data["bot_enabled"] is False


@pytest.mark.asyncio
async def test_claim_then_repeat_same_day(test_app, user_factory):
    """Registered user gets a gift once, the second request the same day is refused."""
    await user_factory("42")

    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        first = await client.post("/api/gift", json={"telegram_id": "42"})
        assert first.status_code == 200
        assert first.json()["gift"] in DEFAULT_GIFT_CATALOG

        second = await client.post("/api/gift", json={"telegram_id": "42"})
        assert second.status_code == 400
        assert second.json() == {"error": "Gift already received today"}


@pytest.mark.asyncio
async def test_numeric_telegram_id_accepted(test_app, user_factory):
    await user_factory("4242")

    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.post("/api/gift", json={"telegram_id": 4242})

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unknown_user_is_not_found(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.post("/api/gift", json={"telegram_id": "does-not-exist"})

    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"telegram_id": ""}, {"telegram_id": "  "}, {"telegram_id": None},
                                  {"telegram_id": ["42"]}, {"telegram_id": True}])
async def test_malformed_request_is_bad_request(test_app, body):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.post("/api/gift", json=body)

    assert response.status_code == 400
    data = response.json()
    assert list(data) == ["error"]
    assert data["error"].startswith("Invalid request")


@pytest.mark.asyncio
async def test_store_unavailable_is_internal_error(test_app, monkeypatch):
    async def unreachable(self, telegram_id):
        raise StoreUnavailableError("connection refused on 10.0.0.5:5432")

    monkeypatch.setattr(UserService, "get_user_by_telegram_id", unreachable)

    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.post("/api/gift", json={"telegram_id": "42"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


@pytest.mark.asyncio
async def test_gift_available_again_next_day(test_app, session_factory, user_factory):
    await user_factory("7")
    clock_state = {"now": datetime(2026, 10, 19, 9, 0)}

    async def override_gift_service():
        async with session_factory() as db:
            yield GiftService(db, clock=lambda: clock_state["now"])

    test_app.dependency_overrides[get_gift_service] = override_gift_service

    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        assert (await client.post("/api/gift", json={"telegram_id": "7"})).status_code == 200
        assert (await client.post("/api/gift", json={"telegram_id": "7"})).status_code == 400

        status = await client.get("/api/gift/status", params={"telegram_id": "7"})
        assert status.json() == {"available": False}

        clock_state["now"] += timedelta(days=1)

        status = await client.get("/api/gift/status", params={"telegram_id": "7"})
        assert status.json() == {"available": True}

        response = await client.post("/api/gift", json={"telegram_id": "7"})
        assert response.status_code == 200
        assert response.json()["gift"] in DEFAULT_GIFT_CATALOG


@pytest.mark.asyncio
async def test_gift_status_unknown_user(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.get("/api/gift/status", params={"telegram_id": "nobody"})

    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


@pytest.mark.asyncio
async def test_gift_status_requires_telegram_id(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        missing = await client.get("/api/gift/status")
        blank = await client.get("/api/gift/status", params={"telegram_id": " "})

    assert missing.status_code == 400
    assert blank.status_code == 400
    assert blank.json()["error"].startswith("Invalid request")


@pytest.mark.asyncio
async def test_lifespan_opens_store_and_disposes_it_on_shutdown(test_settings, monkeypatch, caplog):
    """Startup creates a usable session factory; shutdown disposes the engine."""
    from fastapi import FastAPI
    from sqlalchemy import text
    from sqlalchemy.ext.asyncio import AsyncEngine
    import dailygift.main as main_module

    monkeypatch.setattr(main_module, "settings", test_settings)

    disposed = []
    original_dispose = AsyncEngine.dispose

    async def tracking_dispose(self, *args, **kwargs):
        disposed.append(self)
        return await original_dispose(self, *args, **kwargs)

    monkeypatch.setattr(AsyncEngine, "dispose", tracking_dispose)

    app_instance = FastAPI()
    with caplog.at_level(logging.INFO, logger="dailygift.main"):
        async with main_module.lifespan(app_instance):
            async with app_instance.state.session_factory() as db:
                assert (await db.execute(text("SELECT 1"))).scalar() == 1
            assert disposed == []

    assert len(disposed) == 1
    assert "Database connection closed" in caplog.messages


@pytest.mark.asyncio
async def test_oversized_telegram_id_is_bad_request(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        response = await client.post("/api/gift", json={"telegram_id": "9" * 65})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request")
