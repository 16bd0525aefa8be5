import asyncio
import logging
from typing import Union

from telegram import Update
from telegram.ext import ContextTypes, ConversationHandler

from src.bot.commands.utils import require_session
from src.bot.handlers import ASKING_CONFIRMATION
from src.bot.handlers.aux.send_confirmation_message import send_confirmation_message
from src.core.ai import extract_boleto_info

logger = logging.getLogger(__name__)


async def handle_initial_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Union[int, None]:
    """Recebe o texto livre de um boleto e tenta extrair os campos com o Gemini."""
    session = await require_session(update, context)
    if session is None:
        return ConversationHandler.END

    user_message = update.message.text
    if not user_message:
        return ConversationHandler.END
    logger.debug("Mensagem recebida de %s: %s", update.effective_chat.id, user_message)

    await update.message.reply_text("🔎 Lendo seu boleto, um instante...")
    boleto_info = await asyncio.to_thread(extract_boleto_info, user_message)

    if not boleto_info:
        await update.message.reply_text(
            "😕 Não consegui identificar os dados desse boleto. "
            "Você pode cadastrar manualmente com `/adicionar titulo; valor; AAAA-MM-DD; categoria; recorrente`. 💡",
            parse_mode="Markdown",
        )
        return ConversationHandler.END

    boleto_info["is_recurring"] = False
    context.user_data["pending_boleto"] = boleto_info
    await send_confirmation_message(update, context, boleto_info)
    return ASKING_CONFIRMATION
