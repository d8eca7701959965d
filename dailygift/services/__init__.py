"""Business logic services."""
from dailygift.services.user_service import UserService, normalize_telegram_id
from dailygift.services.gift_service import GiftService, GiftClaimResult

__all__ = [
    "UserService",
    "normalize_telegram_id",
    "GiftService",
    "GiftClaimResult",
]
