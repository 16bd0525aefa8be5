import asyncio

from telegram import Update
from telegram.ext import ContextTypes

from src.bot.commands.utils import get_sessions, require_session
from src.bot.session import ClientSession, create_realtime_client
from src.core import auth, db
from src.core.exceptions import AuthError, ValidationError
from src.core.google_calendar import CalendarMirror


async def _open_session(update: Update, context: ContextTypes.DEFAULT_TYPE, supabase_client, user_id: str) -> ClientSession:
    chat_id = update.effective_chat.id
    sessions = get_sessions(context)
    previous = sessions.pop(chat_id, None)
    if previous is not None:
        await previous.close()

    realtime_client = await create_realtime_client(supabase_client)
    session = ClientSession(chat_id, context.bot, supabase_client, user_id, realtime_client)
    await session.open()
    sessions[chat_id] = session
    return session


async def cadastrar_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """/cadastrar nome email senha"""
    if not context.args or len(context.args) < 3:
        await update.message.reply_text("Uso: `/cadastrar nome email senha`", parse_mode="Markdown")
        return

    name = " ".join(context.args[:-2])
    email, password = context.args[-2], context.args[-1]
    supabase_client = db.get_supabase_client()
    try:
        user_id = await asyncio.to_thread(auth.sign_up, supabase_client, name, email, password)
    except (ValidationError, AuthError) as e:
        await update.message.reply_text(f"❌ {e}")
        return

    await update.message.reply_text("✅ Conta criada com sucesso! 🎉")
    if supabase_client.auth.get_session() is not None:
        await _open_session(update, context, supabase_client, user_id)
        await update.message.reply_text("Você já está conectado. Mande o texto de um boleto para começar!")
    else:
        await update.message.reply_text("Confirme seu e-mail e depois use `/entrar email senha`.", parse_mode="Markdown")


async def entrar_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """/entrar email senha"""
    if not context.args or len(context.args) != 2:
        await update.message.reply_text("Uso: `/entrar email senha`", parse_mode="Markdown")
        return

    email, password = context.args
    supabase_client = db.get_supabase_client()
    try:
        user_id = await asyncio.to_thread(auth.sign_in, supabase_client, email, password)
    except (ValidationError, AuthError) as e:
        await update.message.reply_text(f"❌ {e}")
        return

    session = await _open_session(update, context, supabase_client, user_id)
    await update.message.reply_text(
        f"✅ Bem-vindo! Você tem {len(session.boletos)} boleto(s). Use /boletos para ver a lista."
    )


async def sair_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = get_sessions(context).pop(update.effective_chat.id, None)
    if session is None:
        await update.message.reply_text("Você não está conectado.")
        return
    await session.close()
    await update.message.reply_text("Até logo! Os lembretes deste chat foram desligados. 👋")


async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = await require_session(update, context)
    if session is None:
        return
    realtime = "🟢 conectado" if session.realtime_connected else "🔴 desconectado"
    calendar = "ligado" if session.calendar else "desligado"
    await update.message.reply_text(
        f"Tempo real: {realtime}\nGoogle Agenda: {calendar}\nBoletos carregados: {len(session.boletos)}"
    )


async def agenda_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """/agenda [token] liga o espelhamento; sem token, desliga."""
    session = await require_session(update, context)
    if session is None:
        return
    if not context.args:
        session.calendar = None
        await update.message.reply_text("Espelhamento no Google Agenda desligado.")
        return
    session.calendar = CalendarMirror(context.args[0])
    await update.message.reply_text("📅 Novos boletos serão adicionados ao seu Google Agenda.")
