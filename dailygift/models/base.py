"""Base utilities for SQLAlchemy models."""
from enum import Enum


class ClaimStatus(str, Enum):
    """Outcome of a daily gift claim."""
    ISSUED = "issued"
    ALREADY_CLAIMED = "already_claimed"
