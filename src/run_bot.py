# src/run_bot.py
"""Roda o bot em polling. Os lembretes e o realtime precisam de um event loop contínuo."""
import logging

from telegram import Update

from src.bot.bot_setup import setup_bot
from src.config import TELEGRAM_BOT_TOKEN, setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging()
    application = setup_bot({"TELEGRAM_BOT_TOKEN": TELEGRAM_BOT_TOKEN})
    logger.info("Iniciando bot em modo polling...")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
