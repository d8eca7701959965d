"""Gift-related Pydantic schemas."""
from pydantic import BaseModel, field_validator

from dailygift.services.user_service import normalize_telegram_id


class GiftRequest(BaseModel):
    """Daily gift claim request."""
    telegram_id: str

    @field_validator("telegram_id", mode="before")
    @classmethod
    def validate_telegram_id(cls, value):
        # Telegram ids arrive as JSON numbers from some clients
        if isinstance(value, (int, str)) and not isinstance(value, bool):
            return normalize_telegram_id(value)
        raise ValueError("telegram_id must be a string")


class GiftResponse(BaseModel):
    """Daily gift claim response."""
    gift: str


class GiftStatusResponse(BaseModel):
    """Whether today's gift can still be claimed."""
    available: bool


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""
    error: str


class HealthResponse(BaseModel):
    status: str


class StatusResponse(BaseModel):
    """Service status information."""
    version: str
    environment: str
    bot_enabled: bool
