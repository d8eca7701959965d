"""Daily gift handling."""
import logging
import random
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dailygift.config import get_settings
from dailygift.models.base import ClaimStatus
from dailygift.models.gift import Gift
from dailygift.models.user import User
from dailygift.utils.exceptions import (
    STORE_ERRORS,
    GiftCatalogError,
    StoreUnavailableError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GiftClaimResult:
    """Outcome of a claim attempt."""

    status: ClaimStatus
    claimed_on: date
    gift: str | None = None

    @property
    def issued(self) -> bool:
        return self.status == ClaimStatus.ISSUED


class GiftService:
    """Service for checking and claiming the daily gift."""

    def __init__(
        self,
        db: AsyncSession,
        catalog: Sequence[str] | None = None,
        clock: Callable[[], datetime] | None = None,
        rng: random.Random | None = None,
    ):
        """Initialize gift service.

        Args:
            db: Database session
            catalog: Gift labels to draw from, defaults to the configured catalog
            clock: Replaces the database's current date when given
            rng: Random source for gift selection
        """
        self.db = db
        self.catalog = list(catalog if catalog is not None else get_settings().gift_catalog)
        if not self.catalog:
            raise GiftCatalogError("gift catalog is empty")
        self.clock = clock
        self.rng = rng or random.Random()

    async def _resolve_today(self) -> date:
        if self.clock is not None:
            return self.clock().date()
        today = await self.db.scalar(select(func.current_date()))
        # SQLite hands CURRENT_DATE back as text
        if isinstance(today, str):
            today = date.fromisoformat(today)
        elif isinstance(today, datetime):
            today = today.date()
        return today

    async def _user_exists(self, user_id: int) -> bool:
        result = await self.db.execute(select(User.id).where(User.id == user_id))
        return result.scalar() is not None

    async def _has_claimed(self, user_id: int, today: date) -> bool:
        result = await self.db.execute(
            select(Gift.id).where(Gift.user_id == user_id, Gift.received_on == today)
        )
        return result.scalar() is not None

    def choose_gift(self) -> str:
        """Pick a gift label uniformly at random."""
        return self.rng.choice(self.catalog)

    async def is_gift_available(self, user_id: int) -> bool:
        """Return True if the user can still claim today's gift."""
        try:
            if not await self._user_exists(user_id):
                return False
            today = await self._resolve_today()
            return not await self._has_claimed(user_id, today)
        except STORE_ERRORS as exc:
            logger.error(f"Gift availability check failed for user {user_id}: {exc}")
            raise StoreUnavailableError(str(exc)) from exc

    async def claim_daily_gift(self, user_id: int) -> GiftClaimResult:
        """Issue today's gift to the user if they have not claimed one yet.

        A second claim on the same day, including one that loses a race on the
        ``(user_id, received_on)`` unique constraint, returns
        ``ClaimStatus.ALREADY_CLAIMED``.

        Raises:
            UserNotFoundError: If no user has ``user_id``
            StoreUnavailableError: If the database cannot be reached
        """
        try:
            if not await self._user_exists(user_id):
                raise UserNotFoundError("user_not_found")

            today = await self._resolve_today()
            if await self._has_claimed(user_id, today):
                return GiftClaimResult(status=ClaimStatus.ALREADY_CLAIMED, claimed_on=today)

            label = self.choose_gift()
            gift = Gift(user_id=user_id, gift_type=label, received_on=today)
            if self.clock is not None:
                gift.received_at = self.clock()
            self.db.add(gift)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"User {user_id} lost a concurrent claim for today")
            return GiftClaimResult(status=ClaimStatus.ALREADY_CLAIMED, claimed_on=today)
        except STORE_ERRORS as exc:
            await self.db.rollback()
            logger.error(f"Gift claim failed for user {user_id}: {exc}")
            raise StoreUnavailableError(str(exc)) from exc

        logger.info(f"Issued gift '{label}' to user {user_id} for {today}")
        return GiftClaimResult(status=ClaimStatus.ISSUED, claimed_on=today, gift=label)
