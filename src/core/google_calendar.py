# src/core/google_calendar.py
import logging
from typing import Any, Dict, Union

import requests

from src.core.models import Boleto

logger = logging.getLogger(__name__)

CALENDAR_EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"
REQUEST_TIMEOUT = 10


def build_event(boleto: Boleto, with_reminders: bool = True) -> Dict[str, Any]:
    """Evento de dia inteiro na data de vencimento."""
    event = {
        "summary": f"Vencimento: {boleto.title}",
        "description": (
            "Lembrete de pagamento do boleto.\n"
            f"Valor: R$ {boleto.amount:.2f}\n"
            f"Código de barras: {boleto.barcode or 'Não informado'}"
        ),
        "start": {"date": boleto.due_date},
        "end": {"date": boleto.due_date},
    }
    if with_reminders:
        event["reminders"] = {
            "useDefault": False,
            "overrides": [
                {"method": "popup", "minutes": 24 * 60},
                {"method": "email", "minutes": 24 * 60},
            ],
        }
    return event


class CalendarMirror:
    """
    Espelha os vencimentos na agenda do Google do usuário.
    Tudo aqui é best-effort: erros são logados e nunca interrompem a operação do boleto.
    """

    def __init__(self, access_token: str):
        self.access_token = access_token

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}", "Content-Type": "application/json"}

    def create_event(self, boleto: Boleto) -> Union[str, None]:
        try:
            response = requests.post(
                CALENDAR_EVENTS_URL, headers=self.headers, json=build_event(boleto), timeout=REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()["id"]
        except (requests.exceptions.RequestException, KeyError, ValueError) as e:
            logger.warning("Erro ao criar evento na agenda: %s", e)
            return None

    def update_event(self, boleto: Boleto) -> bool:
        if not boleto.calendar_event_id:
            return False
        try:
            response = requests.patch(
                f"{CALENDAR_EVENTS_URL}/{boleto.calendar_event_id}",
                headers=self.headers,
                json=build_event(boleto, with_reminders=False),
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.warning("Erro ao atualizar evento na agenda: %s", e)
            return False

    def delete_event(self, event_id: str) -> bool:
        try:
            response = requests.delete(
                f"{CALENDAR_EVENTS_URL}/{event_id}", headers=self.headers, timeout=REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.warning("Erro ao remover evento da agenda: %s", e)
            return False
