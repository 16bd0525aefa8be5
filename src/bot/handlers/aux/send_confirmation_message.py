from typing import Any, Dict
from telegram import Update, ReplyKeyboardMarkup
from telegram.ext import ContextTypes
from telegram.helpers import escape_markdown

from src.core.notifications import format_currency

CATEGORY_EMOJIS = {
    "Moradia": "🏠",
    "Saúde": "💊",
    "Educação": "📚",
    "Lazer": "🎉",
    "Alimentação": "🍔",
    "Transporte": "🚌",
    "Assinaturas": "📺",
    "Cartão de Crédito": "💳",
    "Impostos": "🏛️",
    "Pets": "🐾",
}


async def send_confirmation_message(update: Update, context: ContextTypes.DEFAULT_TYPE, boleto_info: Dict[str, Any]) -> None:
    """Mostra os dados extraídos do boleto e pede confirmação."""
    category = boleto_info.get("category") or "Outros"
    emoji = CATEGORY_EMOJIS.get(category, "🧾")
    year, month, day = boleto_info["due_date"].split("-")

    message_text = (
        f"Confirma o *boleto*? {emoji}\n"
        f"📝 Título: *{escape_markdown(boleto_info['title'])}*\n"
        f"💰 Valor: *{format_currency(boleto_info['amount'])}*\n"
        f"📅 Vencimento: *{day}/{month}/{year}*\n"
        f"🏷️ Categoria: *{escape_markdown(category)}*\n"
        f"🔢 Código de barras: *{escape_markdown(boleto_info.get('barcode') or 'Não informado')}*\n"
        f"🔁 Recorrente: *{'Sim' if boleto_info.get('is_recurring') else 'Não'}*"
    )

    keyboard = [["Sim ✅", "Não ❌"], ["Sim, recorrente 🔁"]]
    reply_markup = ReplyKeyboardMarkup(keyboard, one_time_keyboard=True, resize_keyboard=True)
    await update.message.reply_text(f"{message_text}\n\n*Tudo certo?* 🤔", reply_markup=reply_markup, parse_mode='Markdown')
