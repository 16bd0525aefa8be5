# src/core/exceptions.py
"""Erros de domínio do bot de boletos."""

from typing import Optional


class BoletoError(Exception):
    """Base para todos os erros da aplicação."""

    pass


class ValidationError(BoletoError):
    """Campo obrigatório ausente ou inválido. Verificado antes de qualquer chamada de rede."""

    pass


class StoreError(BoletoError):
    """Falha ao ler ou gravar no Supabase."""

    pass


class AuthError(BoletoError):
    """Falha de cadastro/login, com mensagem pronta para o usuário."""

    pass


class DeliveryError(BoletoError):
    """Falha ao enviar um push para uma inscrição."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_gone(self) -> bool:
        # 404/410: o endpoint não existe mais
        return self.status_code in (404, 410)


class ExtractionError(BoletoError):
    """O Gemini não devolveu dados utilizáveis."""

    pass
