# src/bot/bot_setup.py
import logging

from telegram.ext import Application, MessageHandler, filters, CommandHandler, ConversationHandler

from src.bot.commands import ALL_COMMANDS, get_sessions
from src.bot.handlers import handle_initial_message, handle_confirmation, ASKING_CONFIRMATION

logger = logging.getLogger(__name__)


async def close_all_sessions(application: Application) -> None:
    """Cancela lembretes e canais realtime de todos os chats ao desligar o bot."""
    sessions = application.bot_data.get("sessions", {})
    for chat_id in list(sessions):
        session = sessions.pop(chat_id)
        try:
            await session.close()
        except Exception as e:
            logger.error("Erro ao fechar sessão do chat %s: %s", chat_id, e)


def setup_bot(config: dict) -> Application:
    """
    Configura a aplicação do bot do Telegram (Handlers, Comandos, Conversas).
    Retorna o objeto Application configurado, pronto para webhook ou polling.
    """
    application = (
        Application.builder()
        .token(config["TELEGRAM_BOT_TOKEN"])
        .post_shutdown(close_all_sessions)
        .build()
    )
    get_sessions(application)

    for name, command in ALL_COMMANDS.items():
        application.add_handler(CommandHandler(name, command))

    # Texto livre = texto de um boleto para o Gemini ler
    conv_handler = ConversationHandler(
        entry_points=[MessageHandler(filters.TEXT & ~filters.COMMAND, handle_initial_message)],
        states={
            ASKING_CONFIRMATION: [
                MessageHandler(filters.TEXT & ~filters.COMMAND, handle_confirmation)
            ],
        },
        fallbacks=[CommandHandler("cancel", lambda update, context: ConversationHandler.END)],
    )
    application.add_handler(conv_handler)

    logger.info("Bot Telegram configurado com %d comandos.", len(ALL_COMMANDS))
    return application
