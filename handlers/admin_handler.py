"""
handlers/admin_handler.py
--------------------------
Admin commands that edit other users: /lock, /unlock, /grant, /revoke.
"""

from typing import Optional

from telegram import Update
from telegram.ext import ContextTypes

from models.user import User
from security.auth import ADMIN_ROLE, require_role, user_repo
from utils.logger import get_logger

logger = get_logger(__name__)


def _parse_target(args: list[str]) -> Optional[int]:
    """Extract the target Telegram ID from the first command argument."""
    if not args:
        return None
    try:
        return int(args[0])
    except ValueError:
        return None


async def _reply_result(update: Update, user: Optional[User], target: int) -> None:
    if user is None:
        await update.message.reply_text(f"❌ No user with telegram id {target}.")
    else:
        await update.message.reply_text(f"✅ {user}")


async def _set_locked(update: Update, context: ContextTypes.DEFAULT_TYPE, locked: bool) -> None:
    target = _parse_target(context.args)
    if target is None:
        usage = "/lock" if locked else "/unlock"
        await update.message.reply_text(f"Usage: {usage} <telegram_id>")
        return
    user = user_repo(context).set_locked(target, locked)
    await _reply_result(update, user, target)


@require_role(ADMIN_ROLE)
async def lock_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /lock <telegram_id>."""
    await _set_locked(update, context, True)


@require_role(ADMIN_ROLE)
async def unlock_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /unlock <telegram_id>."""
    await _set_locked(update, context, False)


@require_role(ADMIN_ROLE)
async def grant_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /grant <telegram_id> <role>."""
    target = _parse_target(context.args)
    if target is None or len(context.args) < 2:
        await update.message.reply_text("Usage: /grant <telegram_id> <role>")
        return
    role = context.args[1].strip().lower()
    user = user_repo(context).add_role(target, role)
    await _reply_result(update, user, target)


@require_role(ADMIN_ROLE)
async def revoke_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /revoke <telegram_id> <role>."""
    target = _parse_target(context.args)
    if target is None or len(context.args) < 2:
        await update.message.reply_text("Usage: /revoke <telegram_id> <role>")
        return
    role = context.args[1].strip().lower()
    user = user_repo(context).remove_role(target, role)
    await _reply_result(update, user, target)
