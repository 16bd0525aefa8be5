# src/main.py
"""
Aplicação web (WSGI): registro de inscrições de push vindas do navegador
e o gatilho do job diário de push. O bot roda separado (src/run_bot.py).
"""
import hmac
import logging
from typing import Optional

from flask import Flask, request, jsonify

from src.config import VAPID_PUBLIC_KEY, PUSH_JOB_SECRET, setup_logging
from src.core import db
from src.core.exceptions import StoreError, ValidationError
from src.core.push import register_push_subscription, send_due_today_pushes

setup_logging()
logger = logging.getLogger(__name__)

flask_app = Flask(__name__)


def _authenticated_user_id(supabase_client) -> Optional[str]:
    """Resolve o usuário a partir do header 'Authorization: Bearer <access_token>'."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    try:
        response = supabase_client.auth.get_user(header[len("Bearer "):])
    except Exception as e:
        logger.warning("Token inválido no registro de push: %s", e)
        return None
    return response.user.id if response and response.user else None


@flask_app.route("/push/vapid-public-key", methods=["GET"])
def vapid_public_key():
    return jsonify({"publicKey": VAPID_PUBLIC_KEY})


@flask_app.route("/push/subscribe", methods=["POST"])
def push_subscribe():
    if not request.is_json:
        return jsonify({"status": "error", "message": "Request must be JSON"}), 400

    supabase_client = db.get_service_client()
    user_id = _authenticated_user_id(supabase_client)
    if not user_id:
        return jsonify({"status": "error", "message": "Não autenticado"}), 401

    try:
        register_push_subscription(supabase_client, user_id, request.get_json())
    except ValidationError as e:
        return jsonify({"status": "error", "message": str(e)}), 400
    except StoreError as e:
        return jsonify({"status": "error", "message": str(e)}), 500
    return jsonify({"status": "ok"}), 200


@flask_app.route("/jobs/send-push-notifications", methods=["POST"])
def send_push_notifications():
    secret = request.headers.get("X-Job-Secret", "")
    if not PUSH_JOB_SECRET or not hmac.compare_digest(secret, PUSH_JOB_SECRET):
        return jsonify({"status": "error", "message": "Forbidden"}), 403

    try:
        results = send_due_today_pushes(db.get_service_client())
    except StoreError as e:
        return jsonify({"error": str(e)}), 500
    return jsonify({"results": results}), 200


wsgi_app = flask_app
