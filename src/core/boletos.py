# src/core/boletos.py
import logging
from typing import Any, Dict, List, Optional, Union

from supabase import Client

from src.core import db
from src.core.exceptions import ValidationError
from src.core.google_calendar import CalendarMirror
from src.core.models import (
    Boleto, CATEGORIES, DEFAULT_CATEGORY, STATUS_PAID, STATUS_PENDING, format_due_date, parse_due_date,
)
from src.core.recurrence import apply_status_toggle

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "amount", "due_date", "barcode", "category", "is_recurring")


def validate_boleto_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Valida e normaliza os campos de um boleto antes de qualquer chamada ao Supabase.
    Título, valor e vencimento são obrigatórios.
    """
    title = (fields.get("title") or "").strip()
    if not title:
        raise ValidationError("Informe o título do boleto.")

    amount = fields.get("amount")
    if amount is None or amount == "":
        raise ValidationError("Informe o valor do boleto.")
    try:
        amount = float(str(amount).replace(",", ".")) if isinstance(amount, str) else float(amount)
    except ValueError:
        raise ValidationError(f"Valor inválido: '{fields.get('amount')}'.")
    if amount < 0:
        raise ValidationError("O valor do boleto não pode ser negativo.")

    if not fields.get("due_date"):
        raise ValidationError("Informe a data de vencimento.")
    due_date = format_due_date(parse_due_date(fields["due_date"]))

    category = fields.get("category") or DEFAULT_CATEGORY
    if category not in CATEGORIES:
        raise ValidationError(f"Categoria desconhecida: '{category}'.")

    return {
        "title": title,
        "amount": amount,
        "due_date": due_date,
        "barcode": (fields.get("barcode") or "").strip() or None,
        "category": category,
        "is_recurring": bool(fields.get("is_recurring", False)),
    }


def save_boleto(
    supabase_client: Client,
    user_id: str,
    fields: Dict[str, Any],
    boleto_id: Optional[str] = None,
    calendar: Optional[CalendarMirror] = None,
) -> Boleto:
    """Cria (ou edita, se boleto_id for informado) um boleto e espelha na agenda quando possível."""
    data = validate_boleto_fields(fields)

    if boleto_id:
        boleto = db.update_boleto(supabase_client, user_id, boleto_id, data)
        if calendar and boleto.calendar_event_id:
            calendar.update_event(boleto)
        return boleto

    boleto = db.create_boleto(supabase_client, user_id, data)
    if calendar:
        event_id = calendar.create_event(boleto)
        if event_id:
            boleto = db.update_boleto(supabase_client, user_id, boleto.id, {"calendar_event_id": event_id})
    return boleto


def toggle_boleto_status(supabase_client: Client, user_id: str, boleto: Boleto) -> Boleto:
    """Marca como pago / pendente. Status e vencimento vão na mesma escrita."""
    change = apply_status_toggle(boleto)
    logger.info(
        "Boleto %s: %s -> %s (vencimento %s -> %s)",
        boleto.id, boleto.status, change.new_status, boleto.due_date, change.new_due_date,
    )
    return db.update_boleto(supabase_client, user_id, boleto.id, change.as_update())


def remove_boleto(
    supabase_client: Client, user_id: str, boleto: Boleto, calendar: Optional[CalendarMirror] = None
) -> None:
    """Exclui o boleto. A remoção do evento da agenda é best-effort."""
    if calendar and boleto.calendar_event_id:
        try:
            calendar.delete_event(boleto.calendar_event_id)
        except Exception as e:
            logger.warning("Falha ao remover evento %s da agenda: %s", boleto.calendar_event_id, e)
    db.delete_boleto(supabase_client, user_id, boleto.id)


def pending_total(boletos: List[Boleto]) -> float:
    return sum(b.amount for b in boletos if b.status == STATUS_PENDING)


def sort_for_display(boletos: List[Boleto]) -> List[Boleto]:
    """Pendentes primeiro, pagos no fim; dentro de cada grupo, por vencimento."""
    return sorted(boletos, key=lambda b: (b.status == STATUS_PAID, b.due_date))


def find_boleto(boletos: List[Boleto], boleto_id: str) -> Union[Boleto, None]:
    for boleto in boletos:
        if boleto.id == boleto_id:
            return boleto
    return None
