"""Pytest configuration and fixtures."""
import os
import tempfile
from pathlib import Path

import pytest

# Keep test runs from writing logs into the working tree or starting the bot
os.environ.setdefault("LOG_DIR", str(Path(tempfile.gettempdir()) / "dailygift-test-logs"))
os.environ["TELEGRAM_BOT_TOKEN"] = ""

from dailygift.config import Settings
from dailygift.database import create_store_engine, create_session_factory, init_models


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a throwaway SQLite database."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        telegram_webapp_url="https://gifts.example.test/app",
        _env_file=None,
    )


@pytest.fixture
async def test_engine(test_settings):
    """Create test database engine with all tables in place."""
    engine = create_store_engine(test_settings)
    await init_models(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def test_app(session_factory):
    """Create test app with database override."""
    from dailygift.main import app
    from dailygift.database import get_db

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def user_factory(db_session):
    """Factory for registering test users, returns the internal user id."""
    from dailygift.services import UserService
    import uuid

    user_service = UserService(db_session)

    async def _create_user(telegram_id: str | None = None, username: str | None = "tester"):
        if telegram_id is None:
            telegram_id = str(uuid.uuid4().int)[:10]
        return await user_service.register_if_absent(telegram_id, username)

    return _create_user
