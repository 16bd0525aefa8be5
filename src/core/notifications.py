# src/core/notifications.py
import asyncio
import datetime
import inspect
import logging
from typing import Any, Callable, Dict, Iterable, Optional, Set, Tuple

from src.core.models import Boleto, STATUS_PENDING, format_due_date

logger = logging.getLogger(__name__)

DUE_TODAY_TITLE = "Boleto Vence Hoje!"
NEW_BOLETO_TITLE = "Novo Boleto!"


def format_currency(amount: float) -> str:
    """Formata em reais no padrão pt-BR: 1234.5 -> 'R$ 1.234,50' (com espaço não separável)."""
    formatted = f"{abs(amount):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    sign = "-" if amount < 0 else ""
    return f"{sign}R$\xa0{formatted}"


def due_today_message(boleto: Boleto) -> Tuple[str, str]:
    return (
        DUE_TODAY_TITLE,
        f'Sua conta "{boleto.title}" vence hoje no valor de {format_currency(boleto.amount)}.',
    )


def new_boleto_message(record: Dict[str, Any]) -> Tuple[str, str]:
    return NEW_BOLETO_TITLE, f'O boleto "{record.get("title", "")}" foi adicionado.'


async def deliver(notify: Callable, title: str, body: str) -> None:
    """Chama o callback de notificação, seja ele síncrono ou corrotina."""
    result = notify(title, body)
    if inspect.isawaitable(result):
        await result


class DueSoonScheduler:
    """
    Verifica periodicamente os boletos que vencem hoje e avisa uma única vez por boleto.

    O conjunto de ids já avisados vive só enquanto este objeto existir; um novo
    processo avisa de novo, o que é esperado.
    """

    def __init__(
        self,
        get_boletos: Callable[[], Iterable[Boleto]],
        notify: Callable[[str, str], Any],
        interval: float = 3600,
        today: Callable[[], datetime.date] = datetime.date.today,
    ):
        self._get_boletos = get_boletos
        self._notify = notify
        self._interval = interval
        self._today = today
        self._notified: Set[str] = set()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def was_notified(self, boleto_id: str) -> bool:
        return boleto_id in self._notified

    async def check_due_soon(self) -> int:
        """Uma varredura. Retorna quantos avisos foram emitidos."""
        today = format_due_date(self._today())
        sent = 0
        for boleto in list(self._get_boletos()):
            if boleto.status != STATUS_PENDING or boleto.due_date != today:
                continue
            if boleto.id in self._notified:
                continue
            title, body = due_today_message(boleto)
            # marca antes de entregar: uma falha de envio não gera aviso repetido
            self._notified.add(boleto.id)
            try:
                await deliver(self._notify, title, body)
            except Exception as e:
                logger.error("Erro ao enviar aviso de vencimento do boleto %s: %s", boleto.id, e)
                continue
            sent += 1
        return sent

    async def _run(self) -> None:
        while True:
            try:
                await self.check_due_soon()
            except Exception as e:
                logger.error("Erro na verificação de vencimentos: %s", e)
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        """Agenda a verificação (imediata e depois a cada intervalo). Idempotente."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Verificação de vencimentos iniciada (intervalo %ss)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
