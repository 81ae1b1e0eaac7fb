"""
main.py
-------
Entry point for the bot.

Responsibilities:
    - Check that the database is reachable before anything else starts.
    - Configure the Telegram application and register all commands.
    - Run in webhook mode when WEBHOOK_URL is set, polling otherwise.
"""

import sys

from telegram import BotCommand, Update
from telegram.ext import Application, CommandHandler, ContextTypes

from config import BOT_NAME, TELEGRAM_TOKEN, TEST_ENV, WEBHOOK_PORT, WEBHOOK_URL
from db.connection import ConnectionManager
from handlers.admin_handler import grant_command, lock_command, revoke_command, unlock_command
from handlers.start_handler import help_command, start_command, whoami_command
from repositories.user_repo import UserRepository
from utils.logger import get_logger

logger = get_logger(__name__)

COMMANDS = [
    ("start", start_command, "🚀 Register and show your chat id"),
    ("help", help_command, "📖 Show help"),
    ("whoami", whoami_command, "🆔 Show your profile"),
    ("lock", lock_command, "🔒 Lock a user (admin)"),
    ("unlock", unlock_command, "🔓 Unlock a user (admin)"),
    ("grant", grant_command, "➕ Grant a role (admin)"),
    ("revoke", revoke_command, "➖ Revoke a role (admin)"),
]


async def set_bot_commands(application: Application) -> None:
    """Register bot commands menu in Telegram on startup."""
    await application.bot.set_my_commands(
        [BotCommand(name, description) for name, _, description in COMMANDS]
    )
    logger.info("Bot commands menu registered successfully.")


async def close_database(application: Application) -> None:
    """Close the shared database connection on shutdown."""
    application.bot_data["db"].close()


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log handler failures and answer the user with a generic message."""
    logger.error(f"Error while handling update: {context.error}", exc_info=context.error)
    if isinstance(update, Update) and update.effective_message:
        await update.effective_message.reply_text("⚠️ Something went wrong, please try again later.")


def build_application(db: ConnectionManager) -> Application:
    """Create the Telegram application with every command registered."""
    builder = Application.builder().token(TELEGRAM_TOKEN)
    if TEST_ENV:
        builder = builder.base_url("https://api.telegram.org/bot{token}/test").base_file_url(
            "https://api.telegram.org/file/bot{token}/test"
        )
    app = builder.post_init(set_bot_commands).post_shutdown(close_database).build()

    app.bot_data["db"] = db
    app.bot_data["users"] = UserRepository(db)

    for name, callback, _ in COMMANDS:
        app.add_handler(CommandHandler(name, callback))
    app.add_error_handler(on_error)
    return app


def main() -> int:
    """Initialize and run the bot. Returns the process exit status."""

    # ── 1. Configuration ──────────────────────────────────
    logger.info(f"Initializing {BOT_NAME or 'bot'}...")
    if not TELEGRAM_TOKEN:
        logger.error("TELEGRAM_TOKEN is not set")
        return 1

    # ── 2. Database check ─────────────────────────────────
    logger.info("Testing database connection...")
    db = ConnectionManager()
    if not db.test_connection():
        logger.error("No connection to the database")
        return 1

    # ── 3. Build the Telegram application ─────────────────
    logger.info("Registering commands...")
    app = build_application(db)

    # ── 4. Start ──────────────────────────────────────────
    if WEBHOOK_URL:
        logger.info(f"Starting bot in webhook mode on port {WEBHOOK_PORT}...")
        app.run_webhook(
            listen="0.0.0.0",
            port=WEBHOOK_PORT,
            webhook_url=WEBHOOK_URL,
            drop_pending_updates=True,
            allowed_updates=["message"],
        )
    else:
        logger.info("Starting bot in polling mode...")
        app.run_polling(drop_pending_updates=True, allowed_updates=["message"])

    logger.info("Bot stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
