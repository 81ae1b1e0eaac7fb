"""
security/auth.py
-----------------
Authorization decorators for the Telegram bot handlers.
Locked users are refused everywhere; admin commands require a role.
"""

from functools import wraps
from typing import Callable, Optional

from telegram import Update
from telegram.ext import ContextTypes

from config import ADMIN_IDS
from models.user import User
from repositories.user_repo import UserRepository
from utils.logger import get_logger

logger = get_logger(__name__)

ADMIN_ROLE = "admin"


def user_repo(context: ContextTypes.DEFAULT_TYPE) -> UserRepository:
    """The UserRepository stored in bot_data at startup."""
    return context.bot_data["users"]


def has_role(telegram_id: int, record: Optional[User], role: str) -> bool:
    """Ids listed in ADMIN_IDS hold the admin role even before /start."""
    if role == ADMIN_ROLE and telegram_id in ADMIN_IDS:
        return True
    return record is not None and record.has_role(role)


def not_locked(func: Callable):
    """
    Decorator that refuses users whose `locked` flag is set.

    Unknown users (no row yet) are let through so /start can register them.
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return

        record = user_repo(context).get_by_telegram_id(user.id)
        if record is not None and record.locked:
            logger.warning(f"🚫 Locked user {user.id} tried /{func.__name__.removesuffix('_command')}")
            await update.message.reply_text("⛔ Your account is locked.")
            return

        return await func(update, context, *args, **kwargs)

    return wrapper


def require_role(role: str):
    """
    Decorator factory restricting a handler to users holding ``role``.

    Usage:
        @require_role("admin")
        async def lock_command(update, context):
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
            user = update.effective_user
            if not user:
                return

            record = user_repo(context).get_by_telegram_id(user.id)
            if (record is not None and record.locked) or not has_role(user.id, record, role):
                logger.warning(
                    f"🚫 Unauthorized access attempt: user_id={user.id}, "
                    f"username={user.username}, required role={role}"
                )
                await update.message.reply_text("⛔ You are not allowed to use this command.")
                return

            return await func(update, context, *args, **kwargs)

        return wrapper

    return decorator
