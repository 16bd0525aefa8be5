# src/core/push.py
import datetime
import json
import logging
from typing import Any, Callable, Dict, List, Optional

import requests
from pywebpush import webpush, WebPushException
from supabase import Client

from src.config import VAPID_PRIVATE_KEY, VAPID_CLAIMS_EMAIL
from src.core import db
from src.core.exceptions import DeliveryError, StoreError, ValidationError
from src.core.models import PushSubscription
from src.core.notifications import DUE_TODAY_TITLE, format_currency

logger = logging.getLogger(__name__)


def register_push_subscription(supabase_client: Client, user_id: str, subscription_json: Dict[str, Any]) -> None:
    """
    Salva a inscrição enviada pelo navegador (PushSubscription.toJSON()).
    Reinscrever o mesmo navegador atualiza a linha, sem duplicar.
    """
    endpoint = subscription_json.get("endpoint")
    keys = subscription_json.get("keys") or {}
    if not endpoint or not keys.get("p256dh") or not keys.get("auth"):
        raise ValidationError("Inscrição de push inválida: endpoint e chaves são obrigatórios.")
    db.upsert_push_subscription(supabase_client, user_id, endpoint, keys["p256dh"], keys["auth"])


def send_webpush(subscription: PushSubscription, payload: Dict[str, Any]) -> None:
    """
    Envia um push via pywebpush. Erros viram DeliveryError com o status HTTP,
    ou sem status quando a rede falha ou as chaves salvas são inválidas.
    """
    try:
        webpush(
            subscription_info=subscription.to_webpush_info(),
            data=json.dumps(payload),
            vapid_private_key=VAPID_PRIVATE_KEY,
            vapid_claims={"sub": VAPID_CLAIMS_EMAIL},
        )
    except WebPushException as e:
        status_code = e.response.status_code if e.response is not None else None
        raise DeliveryError(str(e), status_code=status_code) from e
    except (requests.exceptions.RequestException, ValueError) as e:
        raise DeliveryError(str(e)) from e


def due_today_payload(title: str, amount: float) -> Dict[str, str]:
    return {
        "title": DUE_TODAY_TITLE,
        "body": f'Sua conta "{title}" vence hoje no valor de {format_currency(amount)}.',
        "url": "/",
    }


def send_due_today_pushes(
    supabase_client: Client,
    today: Optional[datetime.date] = None,
    sender: Callable[[PushSubscription, Dict[str, Any]], None] = send_webpush,
) -> List[Dict[str, Any]]:
    """
    Job agendado: envia um push por (boleto que vence hoje, inscrição do dono).

    Não guarda estado entre execuções; rodar mais de uma vez no mesmo dia
    repete os pushes.
    """
    today = today or datetime.date.today()
    boletos = db.list_pending_boletos_due(supabase_client, today)
    logger.info("Job de push: %d boleto(s) vencendo em %s", len(boletos), today)

    results = []
    for boleto in boletos:
        try:
            subscriptions = db.list_push_subscriptions(supabase_client, boleto.user_id)
        except StoreError:
            continue

        payload = due_today_payload(boleto.title, boleto.amount)
        for sub in subscriptions:
            try:
                sender(sub, payload)
                results.append({"boleto_id": boleto.id, "endpoint": sub.endpoint, "success": True})
            except DeliveryError as e:
                logger.error("Erro ao enviar push para %s: %s", sub.endpoint, e)
                if e.is_gone:
                    try:
                        db.delete_push_subscription(supabase_client, sub.id)
                        logger.info("Inscrição %s removida (endpoint expirado)", sub.id)
                    except StoreError:
                        pass
                results.append(
                    {"boleto_id": boleto.id, "endpoint": sub.endpoint, "success": False, "error": str(e)}
                )
            except Exception as e:
                logger.exception("Erro inesperado ao enviar push para %s", sub.endpoint)
                results.append(
                    {"boleto_id": boleto.id, "endpoint": sub.endpoint, "success": False, "error": str(e)}
                )
    return results
