"""API routers."""
from dailygift.routers import gift, health

__all__ = [
    "gift",
    "health",
]
