from typing import Union
from telegram import Update
from telegram.ext import ContextTypes

from src.bot.session import ClientSession

SESSIONS_KEY = "sessions"


def get_sessions(context: ContextTypes.DEFAULT_TYPE) -> dict:
    return context.bot_data.setdefault(SESSIONS_KEY, {})


async def require_session(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Union[ClientSession, None]:
    """Retorna a sessão do chat ou avisa que é preciso entrar primeiro."""
    session = get_sessions(context).get(update.effective_chat.id)
    if session is None:
        await update.message.reply_text("Você precisa entrar primeiro: `/entrar email senha`", parse_mode="Markdown")
    return session


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Envia uma mensagem quando o comando /start é emitido."""
    await update.message.reply_text(
        "Olá! Sou seu bot de boletos. Eu guardo suas contas e aviso no dia do vencimento. 🔔\n\n"
        "Para começar:\n"
        "- `/cadastrar nome email senha` para criar sua conta.\n"
        "- `/entrar email senha` se você já tem conta.\n\n"
        "Depois é só me mandar o texto do boleto (ou a linha digitável) que eu preencho tudo para você!\n"
        "Use `/help` para ver todos os comandos.",
        parse_mode="Markdown",
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Envia uma mensagem quando o comando /help é emitido."""
    await update.message.reply_text(
        "**Como usar:**\n"
        "Cole o texto de um boleto ou fatura e eu extraio título, valor, vencimento e categoria.\n\n"
        "**Conta:**\n"
        "- `/cadastrar nome email senha`: Cria sua conta.\n"
        "- `/entrar email senha`: Entra e liga os lembretes.\n"
        "- `/sair`: Sai e desliga os lembretes.\n"
        "- `/status`: Mostra se a sincronização em tempo real está ativa.\n\n"
        "**Boletos:**\n"
        "- `/boletos`: Lista seus boletos numerados.\n"
        "- `/adicionar titulo; valor; AAAA-MM-DD; categoria; recorrente`: Cadastra manualmente "
        "(ex: `/adicionar Conta de Luz; 150,50; 2024-03-15; Moradia; nao`).\n"
        "- `/editar [número] titulo; valor; AAAA-MM-DD; categoria; recorrente`: Corrige os dados "
        "(categoria e recorrente são opcionais).\n"
        "- `/pagar [número]`: Marca como pago (recorrentes avançam um mês) ou volta para pendente.\n"
        "- `/excluir [número]`: Exclui o boleto permanentemente.\n"
        "- `/agenda [token]`: Liga o espelhamento dos vencimentos no Google Agenda.\n\n"
        "**Relatórios:**\n"
        "- `/historico`: Últimas 20 ações.\n"
        "- `/resumo`: Gráfico do total a pagar por categoria.",
        parse_mode="Markdown",
    )
