"""Database models."""
from dailygift.models.base import ClaimStatus
from dailygift.models.user import User
from dailygift.models.gift import Gift

__all__ = [
    "ClaimStatus",
    "User",
    "Gift",
]
