"""
Ledger Module

The Ledger owns every account keyed by account number, mints new account
numbers, authenticates callers and orchestrates transfers.

Transfers are two separate critical sections: the debit runs under the source
account's lock and the credit under the destination's. Between them the
amount is in flight, debited but not yet credited. The ledger lock only
guards the account map and the number counter.
"""

from decimal import Decimal
from typing import Dict, Optional, Set
import threading

from .accounts import Account, Clock, WithdrawalPolicy
from .currency import AmountLike, format_inr, to_amount
from .errors import OperationResult, RejectionReason
from .transactions import TransactionKind
from .logging_config import get_logger, log_action


INITIAL_ACCOUNT_COUNTER = 103

DEMO_ACCOUNTS = (
    ("101", "John Doe", Decimal('1000.00'), "1234"),
    ("102", "Jane Smith", Decimal('1500.00'), "5678"),
)


class Ledger:
    """
    Collection of accounts plus the account number counter

    The counter is kept at least one past the highest numeric account
    number, so auto-assigned numbers never collide with seeded ones.
    """

    def __init__(
        self,
        policy: Optional[WithdrawalPolicy] = None,
        clock: Optional[Clock] = None,
        account_counter: int = INITIAL_ACCOUNT_COUNTER
    ):
        self.policy = policy or WithdrawalPolicy()
        self.clock = clock
        self._accounts: Dict[str, Account] = {}
        self._account_counter = account_counter
        self._lock = threading.RLock()
        self.logger = get_logger("rupee_ledger.ledger")

    @classmethod
    def with_demo_accounts(
        cls,
        policy: Optional[WithdrawalPolicy] = None,
        clock: Optional[Clock] = None
    ) -> 'Ledger':
        """Fresh ledger seeded with the two sample accounts (101, 102)"""
        ledger = cls(policy=policy, clock=clock)
        for account_number, name, balance, pin in DEMO_ACCOUNTS:
            ledger.add_account(account_number, name, balance, pin)
        return ledger

    @property
    def account_counter(self) -> int:
        with self._lock:
            return self._account_counter

    def add_account(self, account_number: str, customer_name: str,
                    balance: AmountLike, pin: str) -> Account:
        """
        Insert an account with an explicit account number

        Replaces any existing account with the same number.
        """
        account = Account(
            account_number=account_number,
            customer_name=customer_name,
            balance=balance,
            pin=pin,
            policy=self.policy,
            clock=self.clock
        )
        self.insert_account(account)
        return account

    def insert_account(self, account: Account) -> None:
        """Insert an already built account (used when restoring snapshots)"""
        with self._lock:
            self._accounts[account.account_number] = account
            self._bump_counter_past(account.account_number)

    def create_account(self, customer_name: str, pin: str, initial_deposit: AmountLike) -> str:
        """
        Open a new account with the next number from the counter

        The PIN format is the caller's responsibility.

        Returns:
            The new account number
        """
        with self._lock:
            account_number = str(self._account_counter)
            while account_number in self._accounts:
                self._account_counter += 1
                account_number = str(self._account_counter)

            self._account_counter += 1
            account = self.add_account(account_number, customer_name, initial_deposit, pin)

        log_action(
            self.logger, "info", "Account created",
            action="create_account", resource=account_number,
            extra={"initial_deposit": str(account.get_balance())}
        )
        return account_number

    def get_account(self, account_number: str) -> Optional[Account]:
        """Plain lookup without authentication"""
        with self._lock:
            return self._accounts.get(account_number)

    def authenticated_lookup(self, account_number: str, pin: str) -> Optional[Account]:
        """
        Return the account only if it exists and the PIN matches

        An unknown account and a wrong PIN both return None so callers
        cannot tell them apart.
        """
        account = self.get_account(account_number)
        if account is not None and account.authenticate(pin):
            return account
        return None

    def transfer(self, from_account_number: str, pin: str,
                 to_account_number: str, amount: AmountLike) -> OperationResult:
        """
        Move money between two accounts

        The source is debited through Account.withdraw, so a transfer is
        subject to the same minimum balance and daily limit as a cash
        withdrawal and counts against that daily limit. Each side gets
        exactly one record: TRANSFER_OUT on the source, TRANSFER_IN on the
        destination.

        Args:
            from_account_number: Source account, authenticated with pin
            pin: PIN of the source account
            to_account_number: Destination account, no PIN needed
            amount: Amount to move

        Returns:
            OperationResult; rejections leave both accounts unchanged
        """
        source = self.authenticated_lookup(from_account_number, pin)
        if source is None:
            log_action(
                self.logger, "warning", "Transfer authentication failed",
                action="transfer", resource=from_account_number
            )
            return OperationResult.rejected(
                RejectionReason.AUTHENTICATION_FAILED,
                "Authentication failed or 'from' account not found."
            )

        target = self.get_account(to_account_number)
        if target is None:
            log_action(
                self.logger, "warning", "Transfer target not found",
                action="transfer", resource=from_account_number,
                extra={"to": to_account_number}
            )
            return OperationResult.rejected(
                RejectionReason.TARGET_NOT_FOUND, "Target account not found."
            )

        debit = source.withdraw(
            amount, kind=TransactionKind.TRANSFER_OUT, note=f"To: {to_account_number}"
        )
        if not debit:
            return debit

        # In flight: debited from source, not yet credited to target
        credit = target.deposit(
            amount, kind=TransactionKind.TRANSFER_IN, note=f"From: {from_account_number}"
        )
        if not credit:
            # withdraw accepted the amount, so deposit cannot reject it
            raise RuntimeError(f"Credit to {to_account_number} failed after debit: {credit.message}")

        value = to_amount(amount)
        log_action(
            self.logger, "info", "Transfer completed",
            action="transfer", resource=from_account_number,
            extra={"to": to_account_number, "amount": str(value)}
        )
        return OperationResult.ok(
            f"Transferred {format_inr(value)} from {from_account_number} to {to_account_number}."
        )

    def list_account_numbers(self) -> Set[str]:
        """Snapshot of all account numbers"""
        with self._lock:
            return set(self._accounts)

    def accounts(self):
        """Snapshot list of accounts, ordered by account number"""
        with self._lock:
            return [self._accounts[number] for number in sorted(self._accounts)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

    def __contains__(self, account_number: str) -> bool:
        with self._lock:
            return account_number in self._accounts

    def _bump_counter_past(self, account_number: str) -> None:
        # Caller holds the lock
        try:
            number = int(account_number)
        except ValueError:
            return
        if number >= self._account_counter:
            self._account_counter = number + 1
