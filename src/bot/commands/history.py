import asyncio

from telegram import Update
from telegram.ext import ContextTypes
from telegram.helpers import escape_markdown

from src.bot.commands.utils import require_session
from src.core import charts, db
from src.core.exceptions import StoreError


async def historico_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Mostra as últimas ações registradas nos boletos."""
    session = await require_session(update, context)
    if session is None:
        return
    try:
        logs = await asyncio.to_thread(db.get_activity_logs, session.supabase_client, session.user_id)
    except StoreError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    if not logs:
        await update.message.reply_text("Nenhuma atividade registrada ainda.")
        return

    message = "**Histórico:**\n\n"
    for entry in logs:
        when = entry.created_at[:16].replace("T", " ")
        category = f" ({escape_markdown(entry.category)})" if entry.category else ""
        message += f"- {when}: {escape_markdown(entry.action)} '{escape_markdown(entry.boleto_title or '')}'{category}\n"
    await update.message.reply_text(message, parse_mode="Markdown")


async def resumo_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Gera e envia o gráfico do total pendente por categoria."""
    session = await require_session(update, context)
    if session is None:
        return
    await session.refresh()
    chart_buffer = charts.generate_pending_by_category_chart(session.boletos)
    if chart_buffer:
        chart_buffer.name = "resumo_boletos.png"
        await update.message.reply_photo(photo=chart_buffer, caption="Aqui está quanto falta pagar por categoria:")
    else:
        await update.message.reply_text("Você não tem boletos pendentes. 🎉")
