# src/core/realtime.py
import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from supabase import AsyncClient

from src.core.notifications import deliver, new_boleto_message

logger = logging.getLogger(__name__)

BOLETOS_CHANNEL = "db-changes"
LOGS_CHANNEL = "public:boleto_logs"
SUBSCRIBED = "SUBSCRIBED"


def normalize_change(payload: Dict[str, Any]) -> Tuple[str, Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
    """
    Extrai (evento, registro novo, registro antigo) de um payload de postgres_changes.
    Aceita tanto o formato do realtime-py ({"data": {"type", "record", "old_record"}})
    quanto o formato do supabase-js ({"eventType", "new", "old"}).
    """
    data = payload.get("data", payload)
    event_type = (data.get("type") or data.get("eventType") or "").upper()
    new = data.get("record", data.get("new")) or None
    old = data.get("old_record", data.get("old")) or None
    return event_type, new, old


class RealtimeSyncListener:
    """
    Escuta as mudanças na tabela de boletos e mantém o cliente sincronizado.

    Cada evento do usuário agenda um recarregamento (com debounce, para agrupar
    rajadas); inserts também geram o aviso de "Novo Boleto!".
    """

    def __init__(
        self,
        realtime_client: AsyncClient,
        user_id: str,
        refetch: Callable[[], Any],
        notify: Callable[[str, str], Any],
        on_activity: Optional[Callable[[], Any]] = None,
        debounce: float = 0.3,
    ):
        self._client = realtime_client
        self._user_id = user_id
        self._refetch = refetch
        self._notify = notify
        self._on_activity = on_activity
        self._debounce = debounce
        self._channels = []
        self._pending_refetch: Optional[asyncio.TimerHandle] = None
        self._tasks = set()
        self.is_connected = False

    @property
    def started(self) -> bool:
        return bool(self._channels)

    def _on_status(self, status, error=None) -> None:
        self.is_connected = status == SUBSCRIBED
        logger.info("Realtime status: %s", status)
        if error:
            logger.warning("Realtime erro: %s", error)

    def _belongs_to_user(self, new, old) -> bool:
        return bool(
            (new and new.get("user_id") == self._user_id)
            or (old and old.get("user_id") == self._user_id)
        )

    def _spawn(self, callback: Callable, *args) -> None:
        result = callback(*args)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception():
            logger.error("Erro no callback do realtime: %s", task.exception())

    def _fire_refetch(self) -> None:
        self._pending_refetch = None
        self._spawn(self._refetch)

    def schedule_refetch(self) -> None:
        if self._pending_refetch is not None:
            self._pending_refetch.cancel()
        loop = asyncio.get_running_loop()
        self._pending_refetch = loop.call_later(self._debounce, self._fire_refetch)

    def handle_change(self, payload: Dict[str, Any]) -> bool:
        """Processa um evento da tabela de boletos. Retorna True se o evento era do usuário."""
        event_type, new, old = normalize_change(payload)
        if not self._belongs_to_user(new, old):
            return False

        logger.debug("Realtime: mudança detectada (%s)", event_type)
        self.schedule_refetch()
        if event_type == "INSERT":
            title, body = new_boleto_message(new)
            self._spawn(deliver, self._notify, title, body)
        return True

    def handle_activity(self, payload: Dict[str, Any]) -> None:
        if self._on_activity is not None:
            self._spawn(self._on_activity)

    async def start(self) -> None:
        """Inscreve nos canais. Chamar de novo com os canais ativos não duplica handlers."""
        if self.started:
            return

        boletos_channel = self._client.channel(BOLETOS_CHANNEL)
        boletos_channel.on_postgres_changes(
            "*", schema="public", table="boletos", callback=self.handle_change
        )
        await self._subscribe(boletos_channel, self._on_status)

        if self._on_activity is not None:
            logs_channel = self._client.channel(LOGS_CHANNEL)
            logs_channel.on_postgres_changes(
                "INSERT",
                schema="public",
                table="boleto_logs",
                filter=f"user_id=eq.{self._user_id}",
                callback=self.handle_activity,
            )
            try:
                await self._subscribe(logs_channel)
            except Exception:
                await self.stop()
                raise

    async def _subscribe(self, channel, *args) -> None:
        """Inscreve o canal; se falhar, remove o canal antes de propagar o erro."""
        try:
            await channel.subscribe(*args)
        except Exception:
            try:
                await self._client.remove_channel(channel)
            except Exception as e:
                logger.warning("Erro ao remover canal realtime: %s", e)
            raise
        self._channels.append(channel)

    async def stop(self) -> None:
        if self._pending_refetch is not None:
            self._pending_refetch.cancel()
            self._pending_refetch = None
        channels, self._channels = self._channels, []
        for channel in channels:
            try:
                await self._client.remove_channel(channel)
            except Exception as e:
                logger.warning("Erro ao remover canal realtime: %s", e)
        for task in list(self._tasks):
            task.cancel()
        self.is_connected = False
