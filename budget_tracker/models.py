from dataclasses import dataclass
from datetime import datetime

INCOME = "income"
EXPENSE = "expense"
KINDS = (INCOME, EXPENSE)


@dataclass(frozen=True)
class Transaction:
    id: str
    description: str
    amount_cents: int
    date: datetime
    category: str
    kind: str


@dataclass(frozen=True)
class Notification:
    message: str
    level: str = "info"
