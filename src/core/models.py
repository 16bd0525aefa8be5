# src/core/models.py
import datetime
from typing import Any, Dict, Optional, Union

from src.core.exceptions import ValidationError

STATUS_PENDING = "pending"
STATUS_PAID = "paid"
STATUS_OVERDUE = "overdue"
STATUSES = (STATUS_PENDING, STATUS_PAID, STATUS_OVERDUE)

CATEGORIES = [
    "Moradia", "Saúde", "Educação", "Lazer", "Serviços",
    "Alimentação", "Transporte", "Assinaturas", "Cartão de Crédito",
    "Impostos", "Seguros", "Investimentos", "Trabalho", "Pets", "Outros",
]
DEFAULT_CATEGORY = "Outros"

DATE_FORMAT = "%Y-%m-%d"


def parse_due_date(value: Union[str, datetime.date]) -> datetime.date:
    """Converte 'AAAA-MM-DD' em date. Levanta ValidationError se o formato for inválido."""
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.datetime.strptime(str(value).strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Data de vencimento inválida: '{value}'. Use AAAA-MM-DD.")


def format_due_date(day: datetime.date) -> str:
    return day.strftime(DATE_FORMAT)


class Boleto:
    """Uma conta a pagar. Espelha uma linha da tabela 'boletos'."""

    # Colunas do Supabase -> atributos do domínio
    COLUMNS = (
        "id", "user_id", "title", "amount", "due_date", "barcode",
        "category", "is_recurring", "status", "calendar_event_id", "created_at",
    )

    def __init__(
        self,
        id: str,
        user_id: str,
        title: str,
        amount: float,
        due_date: str,
        barcode: Optional[str] = None,
        category: str = DEFAULT_CATEGORY,
        is_recurring: bool = False,
        status: str = STATUS_PENDING,
        calendar_event_id: Optional[str] = None,
        created_at: Optional[str] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.title = title
        self.amount = amount
        self.due_date = due_date
        self.barcode = barcode
        self.category = category
        self.is_recurring = is_recurring
        self.status = status
        self.calendar_event_id = calendar_event_id
        self.created_at = created_at

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Boleto":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            amount=float(row["amount"]),
            due_date=row["due_date"],
            barcode=row.get("barcode"),
            category=row.get("category") or DEFAULT_CATEGORY,
            is_recurring=bool(row.get("is_recurring", False)),
            status=row.get("status", STATUS_PENDING),
            calendar_event_id=row.get("calendar_event_id"),
            created_at=row.get("created_at"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {column: getattr(self, column) for column in self.COLUMNS}

    @property
    def due(self) -> datetime.date:
        return parse_due_date(self.due_date)

    def __eq__(self, other):
        if not isinstance(other, Boleto):
            return NotImplemented
        return self.to_row() == other.to_row()

    def __repr__(self):
        return f"Boleto(id={self.id!r}, title={self.title!r}, due_date={self.due_date!r}, status={self.status!r})"


class ActivityLogEntry:
    """Registro do histórico (tabela 'boleto_logs'). Somente leitura."""

    def __init__(self, id: str, user_id: str, action: str, boleto_title: str,
                 category: Optional[str], created_at: str):
        self.id = id
        self.user_id = user_id
        self.action = action
        self.boleto_title = boleto_title
        self.category = category
        self.created_at = created_at

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ActivityLogEntry":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            action=row["action"],
            boleto_title=row.get("boleto_title", ""),
            category=row.get("category"),
            created_at=row["created_at"],
        )


class PushSubscription:
    """Endpoint de push registrado por um navegador/dispositivo."""

    def __init__(self, id: str, user_id: str, endpoint: str, p256dh: str, auth: str):
        self.id = id
        self.user_id = user_id
        self.endpoint = endpoint
        self.p256dh = p256dh
        self.auth = auth

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PushSubscription":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            endpoint=row["endpoint"],
            p256dh=row["p256dh"],
            auth=row["auth"],
        )

    def to_webpush_info(self) -> Dict[str, Any]:
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
