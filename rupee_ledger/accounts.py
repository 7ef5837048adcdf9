"""
Account Module

A bank account owns its balance, PIN, withdrawal policy and transaction log.
Every read-modify-write of balance or daily withdrawal state runs under the
account's own lock, so operations on different accounts never contend.
"""

from decimal import Decimal
from datetime import date, datetime, timezone
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
import hmac
import threading

from .currency import AmountLike, format_inr, to_amount
from .errors import OperationResult, RejectionReason
from .transactions import TransactionKind, TransactionRecord
from .logging_config import get_logger, log_action


DEFAULT_MINIMUM_BALANCE = Decimal('500.00')
DEFAULT_DAILY_WITHDRAWAL_LIMIT = Decimal('10000.00')

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current time as an aware datetime in the local timezone"""
    return datetime.now(timezone.utc).astimezone()


@dataclass(frozen=True)
class WithdrawalPolicy:
    """Limits applied to withdrawals and transfers out"""
    minimum_balance: Decimal = DEFAULT_MINIMUM_BALANCE
    daily_limit: Decimal = DEFAULT_DAILY_WITHDRAWAL_LIMIT

    def __post_init__(self):
        object.__setattr__(self, 'minimum_balance', to_amount(self.minimum_balance))
        object.__setattr__(self, 'daily_limit', to_amount(self.daily_limit))

        if self.minimum_balance < Decimal('0'):
            raise ValueError("Minimum balance cannot be negative")
        if self.daily_limit <= Decimal('0'):
            raise ValueError("Daily withdrawal limit must be positive")

    @classmethod
    def from_config(cls, config) -> 'WithdrawalPolicy':
        """Build policy from LedgerConfig settings"""
        return cls(
            minimum_balance=config.minimum_balance,
            daily_limit=config.daily_withdrawal_limit
        )


class Account:
    """
    Bank account with PIN authentication and withdrawal limits

    A new account records its opening balance as a DEPOSIT with the note
    "Initial deposit". Accounts restored from a snapshot pass their saved
    transaction log instead and get no opening record.
    """

    DEBIT_KINDS = (TransactionKind.WITHDRAW, TransactionKind.TRANSFER_OUT)
    CREDIT_KINDS = (TransactionKind.DEPOSIT, TransactionKind.TRANSFER_IN)

    def __init__(
        self,
        account_number: str,
        customer_name: str,
        balance: AmountLike,
        pin: str,
        policy: Optional[WithdrawalPolicy] = None,
        clock: Optional[Clock] = None,
        transactions: Optional[List[TransactionRecord]] = None,
        daily_withdrawn: AmountLike = Decimal('0'),
        last_withdraw_date: Optional[date] = None
    ):
        opening_balance = to_amount(balance)
        if opening_balance < Decimal('0'):
            raise ValueError("Opening balance cannot be negative")

        self._account_number = str(account_number)
        self.customer_name = customer_name
        self._balance = opening_balance
        self._pin = pin
        self.policy = policy or WithdrawalPolicy()
        self._clock = clock or local_now
        self._daily_withdrawn = to_amount(daily_withdrawn)
        self._last_withdraw_date = last_withdraw_date
        self._lock = threading.RLock()
        self.logger = get_logger("rupee_ledger.accounts")

        if transactions is not None:
            self._transactions = list(transactions)
        else:
            self._transactions = []
            if opening_balance > Decimal('0'):
                self._append(TransactionKind.DEPOSIT, opening_balance, "Initial deposit")

    @property
    def account_number(self) -> str:
        return self._account_number

    @property
    def daily_withdrawn(self) -> Decimal:
        with self._lock:
            return self._daily_withdrawn

    @property
    def last_withdraw_date(self) -> Optional[date]:
        with self._lock:
            return self._last_withdraw_date

    def authenticate(self, entered_pin: str) -> bool:
        """Check entered PIN against the stored plain-text PIN"""
        if not isinstance(entered_pin, str):
            return False
        return hmac.compare_digest(self._pin.encode('utf-8'), entered_pin.encode('utf-8'))

    def get_balance(self) -> Decimal:
        with self._lock:
            return self._balance

    def deposit(
        self,
        amount: AmountLike,
        kind: TransactionKind = TransactionKind.DEPOSIT,
        note: Optional[str] = None
    ) -> OperationResult:
        """
        Credit the account

        Args:
            amount: Amount to credit, must be positive
            kind: DEPOSIT, or TRANSFER_IN when called by a transfer
            note: Optional note stored on the transaction record

        Returns:
            OperationResult, rejected with INVALID_AMOUNT for non-positive amounts
        """
        if kind not in self.CREDIT_KINDS:
            raise ValueError(f"{kind.value} is not a credit transaction kind")

        value = self._parse_amount(amount)
        if value is None:
            return self._reject(RejectionReason.INVALID_AMOUNT, "Amount must be positive.", kind, amount)

        with self._lock:
            self._balance += value
            record = self._append(kind, value, note)

        log_action(
            self.logger, "info", "Account credited",
            action=kind.value.lower(), resource=self._account_number,
            extra={"amount": str(value), "balance_after": str(record.balance_after)}
        )
        return OperationResult.ok(f"Deposited {format_inr(value)} successfully.")

    def withdraw(
        self,
        amount: AmountLike,
        kind: TransactionKind = TransactionKind.WITHDRAW,
        note: Optional[str] = None
    ) -> OperationResult:
        """
        Debit the account, enforcing the daily limit and minimum balance

        Both checks run before any state changes, so a rejection leaves
        balance, daily total and log untouched.

        Args:
            amount: Amount to debit, must be positive
            kind: WITHDRAW, or TRANSFER_OUT when called by a transfer
            note: Optional note stored on the transaction record

        Returns:
            OperationResult with INVALID_AMOUNT, DAILY_LIMIT_EXCEEDED or
            INSUFFICIENT_FUNDS on rejection
        """
        if kind not in self.DEBIT_KINDS:
            raise ValueError(f"{kind.value} is not a debit transaction kind")

        value = self._parse_amount(amount)
        if value is None:
            return self._reject(RejectionReason.INVALID_AMOUNT, "Amount must be positive.", kind, amount)

        remaining = None
        record = None
        with self._lock:
            self._roll_daily_window()

            if self._daily_withdrawn + value > self.policy.daily_limit:
                remaining = self.policy.daily_limit - self._daily_withdrawn
            elif value <= self._balance - self.policy.minimum_balance:
                self._balance -= value
                self._daily_withdrawn += value
                record = self._append(kind, value, note)

        if remaining is not None:
            return self._reject(
                RejectionReason.DAILY_LIMIT_EXCEEDED,
                f"Daily withdrawal limit exceeded! Remaining limit: {format_inr(remaining)}",
                kind, value
            )
        if record is None:
            return self._reject(
                RejectionReason.INSUFFICIENT_FUNDS,
                f"Cannot withdraw. Minimum balance requirement of "
                f"{format_inr(self.policy.minimum_balance)} must be maintained.",
                kind, value
            )

        log_action(
            self.logger, "info", "Account debited",
            action=kind.value.lower(), resource=self._account_number,
            extra={"amount": str(value), "balance_after": str(record.balance_after)}
        )
        return OperationResult.ok(f"Withdrew {format_inr(value)} successfully.")

    def remaining_daily_limit(self) -> Decimal:
        """Amount that can still be withdrawn today"""
        with self._lock:
            if self._last_withdraw_date != self._clock().date():
                return self.policy.daily_limit
            return self.policy.daily_limit - self._daily_withdrawn

    def add_transaction(self, record: TransactionRecord) -> None:
        """Prepend a record so the most recent appears first"""
        with self._lock:
            self._transactions.insert(0, record)

    def recent_transactions(self, n: int) -> List[TransactionRecord]:
        """Return up to n records, most recent first"""
        with self._lock:
            return self._transactions[:max(n, 0)]

    @property
    def transaction_count(self) -> int:
        with self._lock:
            return len(self._transactions)

    def summary(self, recent: int = 5) -> str:
        """Multi-line account information with recent transactions"""
        with self._lock:
            balance = self._balance
            records = self._transactions[:recent]

        lines = [
            f"Account Number: {self._account_number}",
            f"Customer Name:  {self.customer_name}",
            f"Balance:        {format_inr(balance)}",
            "Recent Transactions:"
        ]
        if not records:
            lines.append("  No transactions yet.")
        else:
            lines.extend(f"  {record.render()}" for record in records)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of account state for persistence"""
        with self._lock:
            return {
                'account_number': self._account_number,
                'customer_name': self.customer_name,
                'balance': str(self._balance),
                'pin': self._pin,
                'daily_withdrawn': str(self._daily_withdrawn),
                'last_withdraw_date': (
                    self._last_withdraw_date.isoformat() if self._last_withdraw_date else None
                ),
                'transactions': [record.to_dict() for record in self._transactions]
            }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        policy: Optional[WithdrawalPolicy] = None,
        clock: Optional[Clock] = None
    ) -> 'Account':
        """Restore an account from a persistence snapshot"""
        last_date = data.get('last_withdraw_date')
        return cls(
            account_number=data['account_number'],
            customer_name=data['customer_name'],
            balance=Decimal(data['balance']),
            pin=data['pin'],
            policy=policy,
            clock=clock,
            transactions=[TransactionRecord.from_dict(t) for t in data.get('transactions', [])],
            daily_withdrawn=Decimal(data.get('daily_withdrawn', '0')),
            last_withdraw_date=date.fromisoformat(last_date) if last_date else None
        )

    def __repr__(self) -> str:
        return f"Account(account_number={self._account_number!r}, customer_name={self.customer_name!r})"

    def _parse_amount(self, amount: AmountLike) -> Optional[Decimal]:
        """Return the amount as paise-rounded Decimal, or None if not positive"""
        try:
            value = to_amount(amount)
        except ValueError:
            return None
        if value <= Decimal('0'):
            return None
        return value

    def _roll_daily_window(self) -> None:
        """Reset the daily total the first time a withdrawal is tried on a new day"""
        today = self._clock().date()
        if today != self._last_withdraw_date:
            self._daily_withdrawn = Decimal('0')
            self._last_withdraw_date = today

    def _append(self, kind: TransactionKind, amount: Decimal, note: Optional[str]) -> TransactionRecord:
        # Caller holds the lock (or is still constructing the account)
        timestamp = self._clock()
        if self._transactions and timestamp < self._transactions[0].timestamp:
            timestamp = self._transactions[0].timestamp

        record = TransactionRecord(
            kind=kind,
            amount=amount,
            timestamp=timestamp,
            balance_after=self._balance,
            note=note
        )
        self._transactions.insert(0, record)
        return record

    def _reject(self, reason: RejectionReason, message: str,
                kind: TransactionKind, amount: Any) -> OperationResult:
        log_action(
            self.logger, "warning", message,
            action=kind.value.lower(), resource=self._account_number,
            extra={"reason": reason.value, "amount": str(amount)}
        )
        return OperationResult.rejected(reason, message)
