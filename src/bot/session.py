# src/bot/session.py
import asyncio
import logging
from typing import List, Optional

from supabase import acreate_client, AsyncClient, Client
from telegram import Bot

from src.config import (
    SUPABASE_URL, SUPABASE_KEY, DUE_CHECK_INTERVAL_SECONDS, REALTIME_DEBOUNCE_SECONDS,
)
from src.core import db
from src.core.auth import sign_out
from src.core.boletos import sort_for_display
from src.core.exceptions import StoreError
from src.core.google_calendar import CalendarMirror
from src.core.models import Boleto
from src.core.notifications import DueSoonScheduler
from src.core.realtime import RealtimeSyncListener

logger = logging.getLogger(__name__)


class ClientSession:
    """
    Estado de um usuário logado em um chat: cliente Supabase autenticado,
    boletos em cache, verificação de vencimentos e escuta do realtime.

    open() é o único ponto que cria as tarefas; close() o único que as cancela.
    """

    def __init__(
        self,
        chat_id: int,
        bot: Bot,
        supabase_client: Client,
        user_id: str,
        realtime_client: Optional[AsyncClient] = None,
    ):
        self.chat_id = chat_id
        self.bot = bot
        self.supabase_client = supabase_client
        self.user_id = user_id
        self.realtime_client = realtime_client
        self.calendar: Optional[CalendarMirror] = None
        self.boletos: List[Boleto] = []
        self.scheduler = DueSoonScheduler(
            get_boletos=lambda: self.boletos,
            notify=self.notify,
            interval=DUE_CHECK_INTERVAL_SECONDS,
        )
        self.listener: Optional[RealtimeSyncListener] = None
        if realtime_client is not None:
            self.listener = RealtimeSyncListener(
                realtime_client,
                user_id,
                refetch=self.refresh,
                notify=self.notify,
                debounce=REALTIME_DEBOUNCE_SECONDS,
            )

    @property
    def realtime_connected(self) -> bool:
        return self.listener is not None and self.listener.is_connected

    def listed_boletos(self) -> List[Boleto]:
        """Boletos na ordem em que aparecem em /boletos (o número do item é a posição + 1)."""
        return sort_for_display(self.boletos)

    async def notify(self, title: str, body: str) -> None:
        await self.bot.send_message(chat_id=self.chat_id, text=f"🔔 {title}\n{body}")

    async def refresh(self) -> List[Boleto]:
        """Recarrega os boletos e reavalia os vencimentos de hoje."""
        try:
            self.boletos = await asyncio.to_thread(db.list_boletos, self.supabase_client, self.user_id)
        except StoreError as e:
            logger.error("Erro ao recarregar boletos do chat %s: %s", self.chat_id, e)
            return self.boletos
        if self.scheduler.running:
            await self.scheduler.check_due_soon()
        return self.boletos

    async def open(self) -> None:
        await self.refresh()
        self.scheduler.start()
        if self.listener is not None:
            try:
                await self.listener.start()
            except Exception as e:
                logger.error("Realtime indisponível para o chat %s: %s", self.chat_id, e)

    async def close(self) -> None:
        await self.scheduler.stop()
        if self.listener is not None:
            await self.listener.stop()
        await asyncio.to_thread(sign_out, self.supabase_client)


async def create_realtime_client(supabase_client: Client) -> Optional[AsyncClient]:
    """Cliente assíncrono autenticado com a mesma sessão, usado só para o realtime."""
    session = supabase_client.auth.get_session()
    if session is None:
        return None
    try:
        client = await acreate_client(SUPABASE_URL, SUPABASE_KEY)
        await client.auth.set_session(session.access_token, session.refresh_token)
        return client
    except Exception as e:
        logger.error("Erro ao conectar ao realtime: %s", e)
        return None
