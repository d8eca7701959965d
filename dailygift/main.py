"""FastAPI application entry point."""
import sys
import time

# Ensure console streams can emit Unicode (emoji) on Windows
for stream in (sys.stdout, sys.stderr):
    if hasattr(stream, "reconfigure"):
        stream.reconfigure(encoding="utf-8", errors="backslashreplace")

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from contextlib import asynccontextmanager

from dailygift.config import get_settings
from dailygift.version import APP_VERSION
from dailygift.database import create_store_engine, create_session_factory, init_models
from dailygift.routers import gift, health
from dailygift.utils.exceptions import StoreUnavailableError

settings = get_settings()

INTERNAL_ERROR_MESSAGE = "Internal server error"

# Create logs directory if it doesn't exist
logs_dir = Path(settings.log_dir)
logs_dir.mkdir(parents=True, exist_ok=True)

log_file = logs_dir / "dailygift.log"
sql_log_file = logs_dir / "dailygift_sql.log"
api_log_file = logs_dir / "dailygift_api.log"

# Rotating file handler for general logs (1MB max size, keep 5 backup files)
rotating_handler = RotatingFileHandler(log_file, maxBytes=1024 * 1024, backupCount=5, encoding='utf-8')
rotating_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

sql_rotating_handler = RotatingFileHandler(sql_log_file, maxBytes=1024 * 1024, backupCount=5, encoding='utf-8')
sql_rotating_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

# API request logs (2MB max size, keep 15 backup files)
api_rotating_handler = RotatingFileHandler(api_log_file, maxBytes=2 * 1024 * 1024, backupCount=15, encoding='utf-8')
api_rotating_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))

# Force=True overrides any existing configuration (e.g., from uvicorn)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        rotating_handler,
    ],
    force=True,
)

logger = logging.getLogger(__name__)

api_logger = logging.getLogger("dailygift.api")
api_logger.handlers.clear()
api_logger.addHandler(api_rotating_handler)
api_logger.setLevel(logging.INFO)
api_logger.propagate = False

uvicorn_access_logger = logging.getLogger("uvicorn.access")
uvicorn_access_logger.setLevel(logging.INFO)
if rotating_handler not in uvicorn_access_logger.handlers:
    uvicorn_access_logger.addHandler(rotating_handler)

# Separate SQL log file, kept out of the root logger
sqlalchemy_logger = logging.getLogger("sqlalchemy.engine.Engine")
sqlalchemy_logger.handlers.clear()
sqlalchemy_logger.addHandler(sql_rotating_handler)
sqlalchemy_logger.setLevel(logging.INFO if settings.environment == "development" else logging.WARNING)
sqlalchemy_logger.propagate = False


class SQLTransactionFilter(logging.Filter):
    def filter(self, record):
        if record.levelno == logging.INFO and hasattr(record, 'getMessage'):
            message = record.getMessage()

            if any(keyword in message for keyword in ['ROLLBACK', 'BEGIN', 'COMMIT', 'generated in']):
                return False

            # Collapse multi-line statements onto one line
            if any([kw in message for kw in ['SELECT', 'DELETE', 'INSERT']]):
                record.msg = ' '.join(message.split())
                record.args = ()

        return True


sqlalchemy_logger.addFilter(SQLTransactionFilter())


@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    """Open the store and the bot on startup, close both on shutdown."""
    logger.info("=" * 60)
    logger.info("Daily Gift API Starting")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Database: {settings.database_url.split('@')[-1] if '@' in settings.database_url else 'SQLite'}")
    logger.info(f"Telegram bot: {'Enabled' if settings.bot_enabled else 'Disabled'}")
    logger.info("=" * 60)

    engine = create_store_engine(settings)
    await init_models(engine)
    session_factory = create_session_factory(engine)
    app_instance.state.session_factory = session_factory
    logger.info("Connected to database")

    bot_application = None
    if settings.bot_enabled:
        from dailygift.bot import build_bot_application, start_bot

        try:
            bot_application = build_bot_application(settings, session_factory)
            await start_bot(bot_application)
        except Exception as e:
            logger.error(f"Failed to start Telegram bot: {e}")
            bot_application = None

    try:
        yield
    finally:
        logger.info("Shutting down...")

        if bot_application is not None:
            from dailygift.bot import stop_bot

            try:
                await stop_bot(bot_application)
            except Exception as e:
                logger.error(f"Error stopping Telegram bot: {e}")

        try:
            await engine.dispose()
            logger.info("Database connection closed")
        except Exception as e:
            logger.error(f"Error closing database: {e}")

        logger.info("Daily Gift API Shutting Down... Goodbye!")


app = FastAPI(
    title="Daily Gift API",
    description="One random gift per user per day",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as a single error string."""
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    messages = []
    for error in exc.errors():
        loc = error.get("loc", [])
        msg = error.get("msg", "Validation error")
        field_path = " -> ".join(str(x) for x in loc[1:]) if len(loc) > 1 else "body"
        messages.append(f"{field_path}: {msg}")

    return JSONResponse(status_code=400, content={"error": f"Invalid request: {'; '.join(messages)}"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Store unavailable on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with its status code and timing."""
    start_time = time.time()

    client_ip = request.client.host if request.client else "unknown"
    method = request.method
    path = request.url.path
    request_id = f"{method}:{path}:{int(start_time * 1000) % 100000}"

    api_logger.info(f">> {request_id} | START | {method} {path} | IP: {client_ip}")

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        api_logger.info(
            f"<< {request_id} | COMPLETE | {method} {path} | "
            f"Status: {response.status_code} | "
            f"Time: {process_time:.3f}s | "
            f"IP: {client_ip}"
        )
        return response

    except Exception as e:
        process_time = time.time() - start_time
        api_logger.error(
            f"<< {request_id} | EXCEPTION | {method} {path} | "
            f"Error: {str(e)[:100]} | "
            f"Time: {process_time:.3f}s | "
            f"IP: {client_ip}"
        )
        raise


allowed_origins = settings.origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials="*" not in allowed_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(gift.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Daily Gift API",
        "version": APP_VERSION,
        "environment": settings.environment,
        "docs": "/docs",
    }
