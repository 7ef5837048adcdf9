"""
Interactive Banking Console

Text menu over a Ledger. Input and output functions are injectable so the
console can be driven from tests.
"""

from typing import Callable, Optional
import argparse
import getpass
import re
import sys

from .config import LedgerConfig, get_config
from .currency import decimal_from_string, format_inr
from .errors import PersistenceError
from .ledger import Ledger
from .persistence import LedgerRepository, load_or_bootstrap
from .logging_config import setup_logging


PIN_PATTERN = re.compile(r'^\d{4}$')

MENU = """
===== Rupee Ledger Menu =====
1. Deposit
2. Withdraw
3. Transfer
4. Balance Inquiry & Recent Transactions
5. Create New Account
6. List All Account Numbers
7. Save & Exit"""


def is_valid_pin(pin: str) -> bool:
    """A PIN is exactly four decimal digits"""
    return bool(PIN_PATTERN.match(pin))


def read_masked_pin(prompt: str) -> str:
    """Read a PIN without echo, falling back to visible input off a terminal"""
    if sys.stdin is not None and sys.stdin.isatty():
        return getpass.getpass(prompt)
    return input(f"(input hidden not available here) {prompt}")


class BankingConsole:
    """Menu loop: gathers input, calls the ledger, prints the outcome"""

    def __init__(
        self,
        ledger: Ledger,
        repository: Optional[LedgerRepository] = None,
        input_func: Optional[Callable[[str], str]] = None,
        output: Optional[Callable[[str], None]] = None,
        pin_reader: Optional[Callable[[str], str]] = None,
        recent_count: int = 5
    ):
        self.ledger = ledger
        self.repository = repository
        self.input = input_func or input
        self.output = output or print
        self.read_pin = pin_reader or read_masked_pin
        self.recent_count = recent_count
        self._handlers = {
            "1": self.deposit,
            "2": self.withdraw,
            "3": self.transfer,
            "4": self.balance_inquiry,
            "5": self.create_account,
            "6": self.list_accounts,
        }

    def run(self) -> None:
        """Loop until Save & Exit; end of input or Ctrl+C also saves"""
        try:
            while True:
                self.output(MENU)
                choice = self.input("Enter choice: ").strip()
                if choice == "7":
                    self.output("Saving data and exiting...")
                    self.save()
                    return
                handler = self._handlers.get(choice)
                if handler is None:
                    self.output("Invalid choice. Try again.")
                    continue
                handler()
        except (EOFError, KeyboardInterrupt):
            self.output("")
            self.save()

    def save(self) -> bool:
        """Persist the ledger; failures are reported and the process keeps going"""
        if self.repository is None:
            return False
        try:
            self.repository.save(self.ledger)
        except PersistenceError as e:
            self.output(str(e))
            return False
        self.output(f"Bank data saved to {self.repository.location}")
        return True

    def read_amount(self, prompt: str):
        """Prompt until a non-negative amount is entered"""
        while True:
            raw = self.input(prompt).strip()
            try:
                amount = decimal_from_string(raw)
            except ValueError:
                self.output("Invalid number. Try again.")
                continue
            if amount < 0:
                self.output("Enter a positive amount.")
                continue
            return amount

    def _login(self, prompt: str = "Enter account number: "):
        account_number = self.input(prompt).strip()
        pin = self.read_pin("Enter PIN: ")
        account = self.ledger.authenticated_lookup(account_number, pin)
        if account is None:
            self.output("Invalid account or PIN.")
        return account

    def deposit(self) -> None:
        account = self._login()
        if account is None:
            return
        amount = self.read_amount("Enter deposit amount (₹): ")
        result = account.deposit(amount)
        self.output(result.message if result else f"Deposit failed. {result.message}")

    def withdraw(self) -> None:
        account = self._login()
        if account is None:
            return
        amount = self.read_amount("Enter withdraw amount (₹): ")
        result = account.withdraw(amount)
        self.output(result.message if result else f"Withdrawal failed. {result.message}")

    def transfer(self) -> None:
        from_number = self.input("Enter your account number: ").strip()
        pin = self.read_pin("Enter your PIN: ")
        to_number = self.input("Enter target account number: ").strip()
        amount = self.read_amount("Enter transfer amount (₹): ")
        result = self.ledger.transfer(from_number, pin, to_number, amount)
        if result:
            self.output("Transfer successful.")
        else:
            self.output(f"Transfer failed. {result.message}")

    def balance_inquiry(self) -> None:
        account = self._login()
        if account is None:
            return
        self.output(account.summary(self.recent_count))
        self.output(f"Remaining daily withdrawal limit: {format_inr(account.remaining_daily_limit())}")

    def create_account(self) -> None:
        name = self.input("Enter your full name: ").strip()
        while True:
            pin = self.read_pin("Set a 4-digit PIN: ")
            if is_valid_pin(pin):
                break
            self.output("PIN must be exactly 4 digits.")
        initial = self.read_amount("Enter initial deposit amount (₹): ")
        account_number = self.ledger.create_account(name, pin, initial)
        self.output(f"Account created successfully! Your account number: {account_number}")

    def list_accounts(self) -> None:
        numbers = sorted(self.ledger.list_account_numbers(), key=lambda n: (len(n), n))
        self.output(f"Accounts: {', '.join(numbers) if numbers else '(none)'}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rupee-ledger",
        description="Interactive rupee banking ledger"
    )
    parser.add_argument("--data-file", help="SQLite snapshot file (default: LEDGER_DATA_FILE or bank_data.db)")
    parser.add_argument("--log-level", help="Log level (default: LEDGER_LOG_LEVEL or INFO)")
    return parser


def main(argv=None, config: Optional[LedgerConfig] = None) -> int:
    """Console entry point"""
    args = build_parser().parse_args(argv)
    config = config or get_config()

    setup_logging(
        level=args.log_level or config.log_level,
        fmt=config.log_format,
        log_file=config.log_file
    )

    repository = LedgerRepository(data_file=args.data_file or config.data_file)
    ledger = load_or_bootstrap(repository, config)

    console = BankingConsole(
        ledger,
        repository=repository,
        recent_count=config.recent_transactions_count
    )
    try:
        console.run()
    finally:
        repository.close()
    return 0
