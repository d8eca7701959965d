"""Telegram bot front door.

The bot only registers users and hands them the Web App button; gifts are
claimed through the HTTP API.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update, WebAppInfo
from telegram.ext import Application, CommandHandler, ContextTypes

from dailygift.config import Settings
from dailygift.services import UserService

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Hi! 👋\nI hand out a gift every day. Tap the button below to open the app:"
ERROR_MESSAGE = "Something went wrong. Please try again later."
OPEN_BUTTON_TEXT = "🎁 Open gifts"


def build_start_keyboard(webapp_url: str) -> InlineKeyboardMarkup:
    """Single-button keyboard that launches the gifts Web App."""
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(OPEN_BUTTON_TEXT, web_app=WebAppInfo(url=webapp_url))]]
    )


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Register the sender and reply with the Web App launch button."""
    user = update.effective_user
    message = update.effective_message
    session_factory: async_sessionmaker[AsyncSession] = context.bot_data["session_factory"]
    settings: Settings = context.bot_data["settings"]

    try:
        async with session_factory() as db:
            user_id = await UserService(db).register_if_absent(
                str(user.id), user.username or user.full_name
            )
        logger.info(f"/start from telegram_id={user.id} (user {user_id})")

        await message.reply_text(
            WELCOME_MESSAGE,
            reply_markup=build_start_keyboard(settings.telegram_webapp_url),
        )
    except Exception as exc:
        logger.exception(f"Error in /start command: {exc}")
        await message.reply_text(ERROR_MESSAGE)


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error("Telegram update failed", exc_info=context.error)


def build_bot_application(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> Application:
    """Build the bot with its handlers and the store handle in ``bot_data``."""
    application = Application.builder().token(settings.telegram_bot_token).build()
    application.bot_data["session_factory"] = session_factory
    application.bot_data["settings"] = settings
    application.add_handler(CommandHandler("start", handle_start))
    application.add_error_handler(handle_error)
    return application


async def start_bot(application: Application) -> None:
    """Start long polling inside the running event loop."""
    await application.initialize()
    await application.start()
    await application.updater.start_polling(allowed_updates=Update.ALL_TYPES)
    logger.info("Telegram bot started")


async def stop_bot(application: Application) -> None:
    if application.updater and application.updater.running:
        await application.updater.stop()
    if application.running:
        await application.stop()
    await application.shutdown()
    logger.info("Telegram bot stopped")
