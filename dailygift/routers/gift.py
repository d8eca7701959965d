"""Daily gift endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from dailygift.dependencies import get_gift_service, get_user_service
from dailygift.schemas.gift import ErrorResponse, GiftRequest, GiftResponse, GiftStatusResponse
from dailygift.services import GiftService, UserService
from dailygift.utils.exceptions import UserNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["gift"])

USER_NOT_FOUND_MESSAGE = "User not found"
ALREADY_CLAIMED_MESSAGE = "Gift already received today"


async def _resolve_user_id(user_service: UserService, telegram_id: str) -> int:
    try:
        user = await user_service.get_user_by_telegram_id(telegram_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid request: telegram_id is blank or too long")
    if not user:
        raise HTTPException(status_code=404, detail=USER_NOT_FOUND_MESSAGE)
    return user.id


@router.post(
    "/gift",
    response_model=GiftResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def claim_gift(
    payload: GiftRequest,
    user_service: UserService = Depends(get_user_service),
    gift_service: GiftService = Depends(get_gift_service),
):
    """Claim today's gift for a registered Telegram user."""
    user_id = await _resolve_user_id(user_service, payload.telegram_id)

    try:
        result = await gift_service.claim_daily_gift(user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail=USER_NOT_FOUND_MESSAGE)

    if not result.issued:
        raise HTTPException(status_code=400, detail=ALREADY_CLAIMED_MESSAGE)

    return GiftResponse(gift=result.gift)


@router.get(
    "/gift/status",
    response_model=GiftStatusResponse,
    responses={404: {"model": ErrorResponse}},
)
async def gift_status(
    telegram_id: str = Query(...),
    user_service: UserService = Depends(get_user_service),
    gift_service: GiftService = Depends(get_gift_service),
):
    """Report whether today's gift is still available."""
    user_id = await _resolve_user_id(user_service, telegram_id)
    available = await gift_service.is_gift_available(user_id)
    return GiftStatusResponse(available=available)
