"""User registration service."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from dailygift.models.user import TELEGRAM_ID_MAX_LENGTH, User
from dailygift.utils.exceptions import STORE_ERRORS, StoreUnavailableError

logger = logging.getLogger(__name__)


def normalize_telegram_id(telegram_id) -> str:
    """Return the canonical string form of a Telegram identity.

    Raises:
        ValueError: If the identity is missing, blank or longer than the column allows
    """
    if telegram_id is None or isinstance(telegram_id, bool):
        raise ValueError("invalid_telegram_id")
    normalized = str(telegram_id).strip()
    if not normalized:
        raise ValueError("invalid_telegram_id")
    if len(normalized) > TELEGRAM_ID_MAX_LENGTH:
        raise ValueError("invalid_telegram_id")
    return normalized


class UserService:
    """Service for registering and looking up users."""

    def __init__(self, db: AsyncSession):
        """Initialize user service.

        Args:
            db: Database session
        """
        self.db = db

    async def get_user_by_id(self, user_id: int) -> User | None:
        """Get user by internal ID.

        Raises:
            StoreUnavailableError: If the database cannot be reached
        """
        try:
            result = await self.db.execute(select(User).where(User.id == user_id))
        except STORE_ERRORS as exc:
            logger.error(f"Failed to load user {user_id}: {exc}")
            raise StoreUnavailableError(str(exc)) from exc
        return result.scalars().first()

    async def get_user_by_telegram_id(self, telegram_id: str) -> User | None:
        """Get user by Telegram identity.

        Args:
            telegram_id: External identity token

        Returns:
            User or None if not registered

        Raises:
            StoreUnavailableError: If the database cannot be reached
        """
        telegram_id = normalize_telegram_id(telegram_id)
        try:
            result = await self.db.execute(select(User).where(User.telegram_id == telegram_id))
        except STORE_ERRORS as exc:
            logger.error(f"Failed to look up telegram_id={telegram_id}: {exc}")
            raise StoreUnavailableError(str(exc)) from exc
        return result.scalars().first()

    async def register_if_absent(self, telegram_id: str, username: str | None = None) -> int:
        """Ensure a user exists for ``telegram_id`` and return its internal ID.

        Repeat registrations return the existing ID and leave the stored
        username as it was first written. A concurrent registration that wins
        the insert is resolved by re-reading the row.

        Args:
            telegram_id: External identity token
            username: Optional display label

        Returns:
            int: Internal user ID

        Raises:
            ValueError: If telegram_id is blank
            StoreUnavailableError: If the database cannot be reached
        """
        telegram_id = normalize_telegram_id(telegram_id)

        existing = await self.get_user_by_telegram_id(telegram_id)
        if existing:
            return existing.id

        user = User(telegram_id=telegram_id, username=username)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Concurrent registration detected for telegram_id={telegram_id}, re-reading")
            existing = await self.get_user_by_telegram_id(telegram_id)
            if existing is None:
                raise
            return existing.id
        except STORE_ERRORS as exc:
            await self.db.rollback()
            logger.error(f"Failed to register telegram_id={telegram_id}: {exc}")
            raise StoreUnavailableError(str(exc)) from exc

        logger.info(f"Registered new user id={user.id} telegram_id={telegram_id}")
        return user.id
