from telegram import ReplyKeyboardRemove, Update, ReplyKeyboardMarkup
from telegram.ext import ContextTypes, ConversationHandler

from src.bot.commands.boletos import save_and_reply
from src.bot.commands.utils import get_sessions
from src.bot.handlers import ASKING_CONFIRMATION

YES_ANSWERS = ("sim ✅", "sim")
YES_RECURRING_ANSWERS = ("sim, recorrente 🔁", "sim, recorrente", "recorrente")
NO_ANSWERS = ("não ❌", "não", "nao")


async def handle_confirmation(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Lida com a confirmação (Sim/Não) do boleto extraído."""
    user_response = update.message.text.lower().strip()
    pending_boleto = context.user_data.get("pending_boleto")
    session = get_sessions(context).get(update.effective_chat.id)

    if not pending_boleto or session is None:
        await update.message.reply_text(
            "Ops! 😬 Não encontrei um boleto pendente para confirmar. 🔄",
            reply_markup=ReplyKeyboardRemove(),
        )
        context.user_data.pop("pending_boleto", None)
        return ConversationHandler.END

    if user_response in YES_ANSWERS or user_response in YES_RECURRING_ANSWERS:
        pending_boleto["is_recurring"] = user_response in YES_RECURRING_ANSWERS
        await save_and_reply(update, session, pending_boleto)
        context.user_data.pop("pending_boleto", None)
        return ConversationHandler.END

    elif user_response in NO_ANSWERS:
        context.user_data.pop("pending_boleto", None)
        await update.message.reply_text(
            "Tudo bem, descartei esses dados. Você pode mandar o texto de novo ou usar `/adicionar`. ✍️",
            reply_markup=ReplyKeyboardRemove(),
            parse_mode="Markdown",
        )
        return ConversationHandler.END

    else:
        keyboard = [["Sim ✅", "Não ❌"], ["Sim, recorrente 🔁"]]
        reply_markup = ReplyKeyboardMarkup(keyboard, one_time_keyboard=True, resize_keyboard=True)
        await update.message.reply_text(
            "Por favor, responda apenas 'Sim ✅', 'Não ❌' ou 'Sim, recorrente 🔁'.",
            reply_markup=reply_markup,
        )
        return ASKING_CONFIRMATION
