# src/core/auth.py
import logging

from supabase import Client

from src.core import db
from src.core.exceptions import AuthError, StoreError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

AUTH_MESSAGES = {
    "User already registered": "Este e-mail já está cadastrado.",
    "Invalid login credentials": "E-mail ou senha incorretos.",
}
RATE_LIMIT_MESSAGE = "Muitas tentativas. Tente novamente mais tarde."
UNKNOWN_MESSAGE = "Ocorreu um erro inesperado."


def auth_error_message(error: Exception) -> str:
    """Traduz um erro do Supabase Auth para uma mensagem amigável."""
    message = getattr(error, "message", None) or str(error)
    if message in AUTH_MESSAGES:
        return AUTH_MESSAGES[message]
    if getattr(error, "status", None) == 429:
        return RATE_LIMIT_MESSAGE
    return message or UNKNOWN_MESSAGE


def _validate_credentials(email: str, password: str) -> None:
    if not email or "@" not in email:
        raise ValidationError("Informe um e-mail válido.")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres.")


def sign_up(supabase_client: Client, name: str, email: str, password: str) -> str:
    """Cadastra o usuário e cria seu perfil. Retorna o id do usuário."""
    if not name or not name.strip():
        raise ValidationError("Informe seu nome.")
    _validate_credentials(email, password)
    try:
        response = supabase_client.auth.sign_up(
            {"email": email, "password": password, "options": {"data": {"name": name}}}
        )
    except Exception as e:
        logger.warning("Erro de cadastro para %s: %s", email, e)
        raise AuthError(auth_error_message(e)) from e

    if response.user is None:
        raise AuthError(UNKNOWN_MESSAGE)
    try:
        db.ensure_profile(supabase_client, response.user.id, name.strip(), email)
    except StoreError:
        # o perfil é recriado no próximo login
        pass
    return response.user.id


def sign_in(supabase_client: Client, email: str, password: str) -> str:
    """Autentica o cliente Supabase com e-mail e senha. Retorna o id do usuário."""
    _validate_credentials(email, password)
    try:
        response = supabase_client.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as e:
        logger.warning("Erro de login para %s: %s", email, e)
        raise AuthError(auth_error_message(e)) from e

    user = response.user
    if user is None:
        raise AuthError(UNKNOWN_MESSAGE)
    try:
        name = (user.user_metadata or {}).get("name") or email.split("@")[0]
        db.ensure_profile(supabase_client, user.id, name, email)
    except StoreError:
        pass
    return user.id


def sign_out(supabase_client: Client) -> None:
    try:
        supabase_client.auth.sign_out()
    except Exception as e:
        logger.warning("Erro ao sair: %s", e)
