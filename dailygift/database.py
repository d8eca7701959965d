"""Database connection and session management."""
import logging
from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.engine.url import make_url
from dailygift.config import Settings

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_store_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database URL."""
    parsed_url = make_url(settings.database_url)
    is_sqlite = parsed_url.drivername.startswith("sqlite")

    engine_kwargs = {
        "echo": False,
        "future": True,
        "pool_pre_ping": True,  # Verify connections before use
    }

    if is_sqlite:
        engine_kwargs["connect_args"] = {"timeout": settings.db_timeout_seconds}
        logger.debug("Using SQLite (no password required)")
    else:
        connect_args = {
            "timeout": settings.db_timeout_seconds,
            "command_timeout": settings.db_timeout_seconds,
        }
        needs_ssl = (
            "heroku" in settings.database_url or
            "amazonaws" in settings.database_url or
            settings.environment == "production"
        )
        if needs_ssl:
            connect_args["ssl"] = "require"
            logger.debug("SSL connection enabled (ssl=require)")

        # Keep production connection usage conservative to stay within hobby-tier limits
        pool_size = max(1, settings.db_pool_size)
        max_overflow = max(0, settings.db_max_overflow)
        if settings.environment == "production":
            pool_size = min(pool_size, 2)
            max_overflow = min(max_overflow, 2)

        engine_kwargs.update(
            connect_args=connect_args,
            pool_recycle=3600,  # Recycle connections every hour
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=settings.db_timeout_seconds,
        )

    try:
        engine = create_async_engine(settings.database_url, **engine_kwargs)
    except Exception as e:
        logger.error(f"Failed to create database engine: {e}")
        raise

    if is_sqlite:
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    logger.debug("Database engine created successfully")
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create missing tables. Existing tables are left untouched."""
    # Register models on the metadata before create_all
    import dailygift.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Dependency for FastAPI
async def get_db(request: Request):
    """FastAPI dependency to get database session."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
