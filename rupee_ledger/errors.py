"""
Operation Results and Errors

Business-rule rejections are returned as OperationResult values, never
raised. Only storage failures surface as exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RejectionReason(Enum):
    """Why a ledger operation was rejected"""
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"          # Minimum balance floor
    DAILY_LIMIT_EXCEEDED = "daily_limit_exceeded"
    AUTHENTICATION_FAILED = "authentication_failed"    # Unknown account or wrong PIN
    TARGET_NOT_FOUND = "target_not_found"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a deposit, withdrawal or transfer"""
    success: bool
    reason: Optional[RejectionReason] = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, message: str = "") -> 'OperationResult':
        return cls(success=True, message=message)

    @classmethod
    def rejected(cls, reason: RejectionReason, message: str) -> 'OperationResult':
        return cls(success=False, reason=reason, message=message)


class PersistenceError(Exception):
    """Raised when a ledger snapshot cannot be read from or written to storage"""
    pass
