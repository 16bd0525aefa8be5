# src/bot/commands/__init__.py

from .utils import start_command, help_command, get_sessions, require_session
from .account import (
    agenda_command,
    cadastrar_command,
    entrar_command,
    sair_command,
    status_command,
)
from .boletos import (
    adicionar_command,
    boletos_command,
    editar_command,
    excluir_command,
    pagar_command,
)
from .history import historico_command, resumo_command

ALL_COMMANDS = {
    "start": start_command,
    "help": help_command,
    "cadastrar": cadastrar_command,
    "entrar": entrar_command,
    "sair": sair_command,
    "status": status_command,
    "agenda": agenda_command,
    "boletos": boletos_command,
    "adicionar": adicionar_command,
    "editar": editar_command,
    "pagar": pagar_command,
    "excluir": excluir_command,
    "historico": historico_command,
    "resumo": resumo_command,
}
