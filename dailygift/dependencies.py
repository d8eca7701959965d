"""FastAPI dependencies."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dailygift.database import get_db
from dailygift.services import GiftService, UserService


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


async def get_gift_service(db: AsyncSession = Depends(get_db)) -> GiftService:
    """Gift service bound to the request session and the configured catalog."""
    return GiftService(db)
