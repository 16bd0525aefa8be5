# src/config.py
import os
import logging
from dotenv import load_dotenv

load_dotenv()

# Configurações do Telegram
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")

# Configurações do Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

# Configurações do Gemini API
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

# Web Push (VAPID)
VAPID_PUBLIC_KEY = os.getenv("VAPID_PUBLIC_KEY")
VAPID_PRIVATE_KEY = os.getenv("VAPID_PRIVATE_KEY")
VAPID_CLAIMS_EMAIL = os.getenv("VAPID_CLAIMS_EMAIL", "mailto:contato@boletoflow.com")
PUSH_JOB_SECRET = os.getenv("PUSH_JOB_SECRET")

# Lembretes e sincronização
DUE_CHECK_INTERVAL_SECONDS = float(os.getenv("DUE_CHECK_INTERVAL_SECONDS") or 3600)
REALTIME_DEBOUNCE_SECONDS = float(os.getenv("REALTIME_DEBOUNCE_SECONDS") or 0.3)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configura o logging da aplicação (uma vez, no startup)."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx loga cada requisição do Supabase em INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
