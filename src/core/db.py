# src/core/db.py
import datetime
import logging
from typing import Any, Dict, List

from supabase import create_client, Client

from src.config import SUPABASE_URL, SUPABASE_KEY, SUPABASE_SERVICE_ROLE_KEY
from src.core.exceptions import StoreError
from src.core.models import (
    Boleto, ActivityLogEntry, PushSubscription, STATUS_PENDING, format_due_date,
)

logger = logging.getLogger(__name__)

BOLETOS_TABLE = "boletos"
LOGS_TABLE = "boleto_logs"
PUSH_TABLE = "push_subscriptions"
PROFILES_TABLE = "profiles"

ACTIVITY_LOG_LIMIT = 20


def get_supabase_client() -> Client:
    """Retorna uma instância do cliente Supabase (chave anônima, sujeita ao RLS)."""
    return create_client(SUPABASE_URL, SUPABASE_KEY)


def get_service_client() -> Client:
    """Cliente com a service role, usado apenas pelo job de push."""
    return create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)


def _check_owner(user_id: str, fields: Dict[str, Any]) -> None:
    owner = fields.get("user_id")
    if owner is not None and owner != user_id:
        raise StoreError("Não é permitido gravar boletos de outro usuário.")


# --- Funções para Boletos ---
def list_boletos(supabase_client: Client, user_id: str) -> List[Boleto]:
    """Obtém os boletos do usuário, do vencimento mais próximo ao mais distante."""
    try:
        response = (
            supabase_client.table(BOLETOS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("due_date", desc=False)
            .execute()
        )
    except Exception as e:
        logger.error("Erro ao obter boletos do Supabase: %s", e)
        raise StoreError("Não foi possível carregar seus boletos.") from e
    return [Boleto.from_row(row) for row in response.data or []]


def create_boleto(supabase_client: Client, user_id: str, fields: Dict[str, Any]) -> Boleto:
    """Insere um novo boleto pendente do usuário e retorna o registro gravado."""
    _check_owner(user_id, fields)
    row = dict(fields)
    row["user_id"] = user_id
    row["status"] = STATUS_PENDING
    try:
        response = supabase_client.table(BOLETOS_TABLE).insert(row).execute()
    except Exception as e:
        logger.error("Erro ao adicionar boleto ao Supabase: %s", e)
        raise StoreError("Erro ao salvar boleto.") from e
    if not response.data:
        raise StoreError("Erro ao salvar boleto.")
    return Boleto.from_row(response.data[0])


def update_boleto(supabase_client: Client, user_id: str, boleto_id: str, fields: Dict[str, Any]) -> Boleto:
    """
    Atualiza um boleto em uma única escrita, filtrando por id e dono.
    Nenhuma linha afetada significa que o boleto não existe ou é de outro usuário.
    """
    _check_owner(user_id, fields)
    try:
        response = (
            supabase_client.table(BOLETOS_TABLE)
            .update(fields)
            .eq("id", boleto_id)
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        logger.error("Erro ao atualizar boleto %s: %s", boleto_id, e)
        raise StoreError("Erro ao atualizar boleto.") from e
    if not response.data:
        raise StoreError("Boleto não encontrado.")
    return Boleto.from_row(response.data[0])


def delete_boleto(supabase_client: Client, user_id: str, boleto_id: str) -> None:
    """Exclui um boleto do usuário. Irreversível."""
    try:
        response = (
            supabase_client.table(BOLETOS_TABLE)
            .delete()
            .eq("id", boleto_id)
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        logger.error("Erro ao excluir boleto %s: %s", boleto_id, e)
        raise StoreError(f"Erro ao excluir boleto: {e}") from e
    if not response.data:
        raise StoreError("Boleto não encontrado.")


def list_pending_boletos_due(supabase_client: Client, day: datetime.date) -> List[Boleto]:
    """Todos os boletos pendentes que vencem em `day`, de todos os usuários (service role)."""
    try:
        response = (
            supabase_client.table(BOLETOS_TABLE)
            .select("*")
            .eq("due_date", format_due_date(day))
            .eq("status", STATUS_PENDING)
            .execute()
        )
    except Exception as e:
        logger.error("Erro ao buscar boletos que vencem em %s: %s", day, e)
        raise StoreError("Erro ao buscar boletos do dia.") from e
    return [Boleto.from_row(row) for row in response.data or []]


# --- Funções para o Histórico ---
def get_activity_logs(supabase_client: Client, user_id: str, limit: int = ACTIVITY_LOG_LIMIT) -> List[ActivityLogEntry]:
    """Últimas ações do usuário, das mais recentes às mais antigas."""
    limit = min(limit, ACTIVITY_LOG_LIMIT)
    try:
        response = (
            supabase_client.table(LOGS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception as e:
        logger.error("Erro ao obter histórico do Supabase: %s", e)
        raise StoreError("Não foi possível carregar o histórico.") from e
    return [ActivityLogEntry.from_row(row) for row in response.data or []]


# --- Funções para Perfis ---
def ensure_profile(supabase_client: Client, user_id: str, name: str, email: str) -> None:
    """Cria o perfil do usuário caso ainda não exista."""
    try:
        existing = supabase_client.table(PROFILES_TABLE).select("id").eq("id", user_id).execute().data
        if existing:
            return
        supabase_client.table(PROFILES_TABLE).insert({"id": user_id, "name": name, "email": email}).execute()
    except Exception as e:
        logger.error("Erro ao sincronizar perfil %s: %s", user_id, e)
        raise StoreError("Erro ao criar perfil.") from e


# --- Funções para Inscrições de Push ---
def upsert_push_subscription(supabase_client: Client, user_id: str, endpoint: str, p256dh: str, auth: str) -> None:
    """Grava a inscrição; o mesmo endpoint reinscrito atualiza a linha existente."""
    try:
        supabase_client.table(PUSH_TABLE).upsert(
            {"user_id": user_id, "endpoint": endpoint, "p256dh": p256dh, "auth": auth},
            on_conflict="endpoint",
        ).execute()
    except Exception as e:
        logger.error("Erro ao salvar inscrição de push: %s", e)
        raise StoreError("Erro ao salvar inscrição de push.") from e


def list_push_subscriptions(supabase_client: Client, user_id: str) -> List[PushSubscription]:
    try:
        response = supabase_client.table(PUSH_TABLE).select("*").eq("user_id", user_id).execute()
    except Exception as e:
        logger.error("Erro ao obter inscrições de push do usuário %s: %s", user_id, e)
        raise StoreError("Erro ao obter inscrições de push.") from e
    return [PushSubscription.from_row(row) for row in response.data or []]


def delete_push_subscription(supabase_client: Client, subscription_id: str) -> None:
    try:
        supabase_client.table(PUSH_TABLE).delete().eq("id", subscription_id).execute()
    except Exception as e:
        logger.error("Erro ao remover inscrição de push %s: %s", subscription_id, e)
        raise StoreError("Erro ao remover inscrição de push.") from e
