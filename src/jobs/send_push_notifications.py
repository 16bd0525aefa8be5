# src/jobs/send_push_notifications.py
"""
Envia os pushes de "vence hoje". Agende no máximo uma vez por dia (cron):
não há controle de duplicidade entre execuções.

    python -m src.jobs.send_push_notifications
"""
import json
import logging
import sys

from src.config import setup_logging
from src.core import db
from src.core.exceptions import StoreError
from src.core.push import send_due_today_pushes

logger = logging.getLogger(__name__)


def main() -> int:
    setup_logging()
    try:
        results = send_due_today_pushes(db.get_service_client())
    except StoreError as e:
        logger.error("Job de push falhou: %s", e)
        return 1
    sent = sum(1 for r in results if r["success"])
    logger.info("Job de push concluído: %d enviado(s), %d falha(s)", sent, len(results) - sent)
    print(json.dumps({"results": results}, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
