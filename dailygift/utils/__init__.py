"""Utilities module."""
from dailygift.utils.exceptions import (
    GiftCatalogError,
    StoreUnavailableError,
    UserNotFoundError,
)

__all__ = ["GiftCatalogError", "StoreUnavailableError", "UserNotFoundError"]
