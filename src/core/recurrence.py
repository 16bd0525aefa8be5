# src/core/recurrence.py
"""
Regras de transição de status dos boletos.

Boletos recorrentes nunca ficam como 'paid': ao serem pagos voltam para
'pending' com o vencimento avançado em um mês, na mesma escrita.
"""
import calendar
import datetime
from typing import Any, Dict, NamedTuple

from src.core.models import (
    Boleto, STATUS_PENDING, STATUS_PAID, format_due_date, parse_due_date,
)


class StatusChange(NamedTuple):
    new_status: str
    new_due_date: str

    def as_update(self) -> Dict[str, Any]:
        """Payload de um único update com status e vencimento juntos."""
        return {"status": self.new_status, "due_date": self.new_due_date}


def add_one_month(day: datetime.date) -> datetime.date:
    """
    Mesmo dia no mês seguinte. Se o mês seguinte for mais curto,
    usa o último dia dele (31/01 -> 28/02 ou 29/02).
    """
    year = day.year + day.month // 12
    month = day.month % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, min(day.day, last_day))


def apply_status_toggle(boleto: Boleto) -> StatusChange:
    """Calcula o novo status e vencimento de um boleto ao marcar/desmarcar como pago."""
    if boleto.status == STATUS_PAID:
        return StatusChange(STATUS_PENDING, boleto.due_date)

    # pending ou overdue: pagar
    if boleto.is_recurring:
        next_due = add_one_month(parse_due_date(boleto.due_date))
        return StatusChange(STATUS_PENDING, format_due_date(next_due))
    return StatusChange(STATUS_PAID, boleto.due_date)


def is_overdue(boleto: Boleto, today: datetime.date) -> bool:
    return boleto.status != STATUS_PAID and parse_due_date(boleto.due_date) < today
