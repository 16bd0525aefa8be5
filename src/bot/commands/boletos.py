import asyncio
import logging
from typing import Union

from telegram import Update
from telegram.ext import ContextTypes

from src.bot.commands.utils import require_session
from src.bot.session import ClientSession
from src.core import boletos as boleto_service
from src.core.exceptions import StoreError, ValidationError
from src.core.models import Boleto, STATUS_PAID, STATUS_PENDING
from src.core.notifications import format_currency

logger = logging.getLogger(__name__)

TRUE_WORDS = ("sim", "s", "true", "1", "recorrente", "yes")


def format_date_display(date_str: str) -> str:
    if not date_str:
        return "--/--"
    year, month, day = date_str.split("-")
    return f"{day}/{month}/{year}"


def format_boleto_line(position: int, boleto: Boleto) -> str:
    icon = "✅" if boleto.status == STATUS_PAID else "⏳"
    recurring = " 🔁" if boleto.is_recurring else ""
    return (
        f"{position}. {icon} {boleto.title} | {format_currency(boleto.amount)} | "
        f"vence {format_date_display(boleto.due_date)} ({boleto.category}){recurring}"
    )


def parse_boleto_args(text: str, usage: str = "/adicionar") -> dict:
    """'titulo; valor; AAAA-MM-DD; categoria; recorrente' -> campos do boleto."""
    parts = [part.strip() for part in text.split(";")]
    if len(parts) < 3:
        raise ValidationError(f"Uso: `{usage} titulo; valor; AAAA-MM-DD; categoria; recorrente`")
    fields = {"title": parts[0], "amount": parts[1], "due_date": parts[2]}
    if len(parts) > 3 and parts[3]:
        fields["category"] = parts[3]
    if len(parts) > 4:
        fields["is_recurring"] = parts[4].lower() in TRUE_WORDS
    return fields


async def _pick_boleto(update: Update, context: ContextTypes.DEFAULT_TYPE, session: ClientSession, usage: str) -> Union[Boleto, None]:
    listed = session.listed_boletos()
    try:
        position = int(context.args[0])
        if position < 1:
            raise IndexError
        return listed[position - 1]
    except (IndexError, ValueError, TypeError):
        await update.message.reply_text(f"Uso: `{usage} [número]`. Veja os números em /boletos.", parse_mode="Markdown")
        return None


async def boletos_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Lista os boletos do usuário: pendentes primeiro, por vencimento."""
    session = await require_session(update, context)
    if session is None:
        return
    await session.refresh()
    listed = session.listed_boletos()
    if not listed:
        await update.message.reply_text("Nenhum boleto cadastrado ainda. Mande o texto de um boleto para começar!")
        return

    lines = [format_boleto_line(i, b) for i, b in enumerate(listed, start=1)]
    total = boleto_service.pending_total(session.boletos)
    next_due = next((b for b in listed if b.status == STATUS_PENDING), None)
    lines.append("")
    lines.append(f"💰 Total pendente: {format_currency(total)}")
    if next_due:
        lines.append(f"📅 Próximo vencimento: {format_date_display(next_due.due_date)}")
    await update.message.reply_text("\n".join(lines))


async def save_and_reply(update: Update, session: ClientSession, fields: dict, boleto_id: Union[str, None] = None) -> None:
    try:
        boleto = await asyncio.to_thread(
            boleto_service.save_boleto, session.supabase_client, session.user_id, fields, boleto_id, session.calendar
        )
    except ValidationError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return
    except StoreError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    verb = "atualizado" if boleto_id else "salvo"
    await session.refresh()
    await update.message.reply_text(
        f"✅ Boleto '{boleto.title}' de {format_currency(boleto.amount)} "
        f"com vencimento em {format_date_display(boleto.due_date)} {verb}! 🎉"
    )


async def adicionar_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = await require_session(update, context)
    if session is None:
        return
    try:
        fields = parse_boleto_args(" ".join(context.args or []))
    except ValidationError as e:
        await update.message.reply_text(str(e), parse_mode="Markdown")
        return
    await save_and_reply(update, session, fields)


async def editar_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """/editar [número] titulo; valor; AAAA-MM-DD; categoria; recorrente

    Categoria e recorrência omitidas mantêm os valores atuais. O status não muda.
    """
    session = await require_session(update, context)
    if session is None:
        return
    boleto = await _pick_boleto(update, context, session, "/editar")
    if boleto is None:
        return

    try:
        changes = parse_boleto_args(" ".join(context.args[1:]), usage=f"/editar {context.args[0]}")
    except ValidationError as e:
        await update.message.reply_text(str(e), parse_mode="Markdown")
        return

    fields = {
        "barcode": boleto.barcode,
        "category": boleto.category,
        "is_recurring": boleto.is_recurring,
    }
    fields.update(changes)
    await save_and_reply(update, session, fields, boleto_id=boleto.id)


async def pagar_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Alterna o status: pendente -> pago (recorrentes avançam um mês), pago -> pendente."""
    session = await require_session(update, context)
    if session is None:
        return
    boleto = await _pick_boleto(update, context, session, "/pagar")
    if boleto is None:
        return

    try:
        updated = await asyncio.to_thread(
            boleto_service.toggle_boleto_status, session.supabase_client, session.user_id, boleto
        )
    except StoreError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    await session.refresh()
    if updated.status == STATUS_PAID:
        message = f"✅ '{updated.title}' marcado como pago!"
    elif boleto.status == STATUS_PAID:
        message = f"↩️ '{updated.title}' voltou para pendente."
    else:
        message = (
            f"✅ '{updated.title}' pago! Próximo vencimento: {format_date_display(updated.due_date)} 🔁"
        )
    await update.message.reply_text(message)


async def excluir_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = await require_session(update, context)
    if session is None:
        return
    boleto = await _pick_boleto(update, context, session, "/excluir")
    if boleto is None:
        return

    try:
        await asyncio.to_thread(
            boleto_service.remove_boleto, session.supabase_client, session.user_id, boleto, session.calendar
        )
    except StoreError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    await session.refresh()
    await update.message.reply_text(f"🗑️ Boleto '{boleto.title}' excluído.")
