"""Financial data models read by the advisor tools."""

from dataclasses import dataclass, field
from typing import Any, Literal

TransactionType = Literal["income", "expense", "scheduled_expense"]


@dataclass
class Transaction:
    """A single ledger movement on the user's account."""

    id: str
    type: TransactionType
    category: str
    description: str
    amount: float
    date: str  # ISO date
    carbon_footprint: float | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return the transaction as a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "type": self.type,
            "category": self.category,
            "description": self.description,
            "amount": self.amount,
            "date": self.date,
        }


@dataclass
class Asset:
    """An investment holding."""

    name: str
    value: float
    category: str | None = None
    esg_rating: int | None = None
    performance_ytd: float | None = None


@dataclass
class LedgerAccountBalance:
    """A balance expressed in minor units."""

    amount: int
    currency: str
    currency_exponent: int = 2
    credits: int = 0
    debits: int = 0

    @property
    def value(self) -> float:
        return self.amount / 10**self.currency_exponent


@dataclass
class LedgerAccount:
    """A corporate treasury ledger account."""

    id: str
    name: str
    description: str | None
    normal_balance: Literal["debit", "credit"]
    available_balance: LedgerAccountBalance
    posted_balance: LedgerAccountBalance
    pending_balance: LedgerAccountBalance | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
