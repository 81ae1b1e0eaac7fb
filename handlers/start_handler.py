"""
handlers/start_handler.py
--------------------------
Handles /start, /help and /whoami.
Registers the user and reports what the bot knows about them.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import not_locked, user_repo
from utils.logger import get_logger

logger = get_logger(__name__)

HELP_TEXT = """
🤖 *Available commands*

/start - register and show your chat id
/help - show this help
/whoami - show your stored profile

*Admins only:*
/lock <telegram\\_id> - lock a user
/unlock <telegram\\_id> - unlock a user
/grant <telegram\\_id> <role> - grant a role
/revoke <telegram\\_id> <role> - revoke a role
"""


@not_locked
async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - register user and show their chat id."""
    user = update.effective_user
    user_repo(context).ensure_user(user.id, user.full_name)
    logger.info(f"User {user.id} ({user.full_name}) started the bot.")

    await update.message.reply_text(f"Your chat id is {update.effective_chat.id}")


@not_locked
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command - show all available commands."""
    await update.message.reply_text(HELP_TEXT, parse_mode="Markdown")


@not_locked
async def whoami_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /whoami command - show the stored profile."""
    record = user_repo(context).get_by_telegram_id(update.effective_user.id)
    if record is None:
        await update.message.reply_text("You are not registered yet. Send /start first.")
        return
    await update.message.reply_text(str(record))
