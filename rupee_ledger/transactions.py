"""
Transaction Record Module

Immutable records of balance-affecting events. Each account keeps its own
log of these, most recent first.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass
from typing import Any, Dict, Optional
from enum import Enum

from .currency import format_inr, to_amount


class TransactionKind(Enum):
    """Kinds of balance-affecting events"""
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"

    @property
    def is_credit(self) -> bool:
        """Check if this kind increases the balance"""
        return self in (TransactionKind.DEPOSIT, TransactionKind.TRANSFER_IN)


@dataclass(frozen=True)
class TransactionRecord:
    """
    One entry in an account's transaction log

    balance_after is the account balance immediately after the event was
    applied, captured inside the same critical section as the mutation.
    """
    kind: TransactionKind
    amount: Decimal
    timestamp: datetime
    balance_after: Decimal
    note: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'amount', to_amount(self.amount))
        object.__setattr__(self, 'balance_after', to_amount(self.balance_after))

        if self.amount <= Decimal('0'):
            raise ValueError("Transaction amount must be positive")

    def render(self) -> str:
        """Human-readable single line"""
        return (
            f"{self.timestamp.isoformat(timespec='seconds')} | {self.kind.value} | "
            f"{format_inr(self.amount)} | Balance: {format_inr(self.balance_after)} | "
            f"{self.note or ''}"
        ).rstrip()

    def __str__(self) -> str:
        return self.render()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {
            'kind': self.kind.value,
            'amount': str(self.amount),
            'timestamp': self.timestamp.isoformat(),
            'balance_after': str(self.balance_after),
            'note': self.note
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TransactionRecord':
        """Create record from dictionary"""
        return cls(
            kind=TransactionKind(data['kind']),
            amount=Decimal(data['amount']),
            timestamp=datetime.fromisoformat(data['timestamp']),
            balance_after=Decimal(data['balance_after']),
            note=data.get('note')
        )
