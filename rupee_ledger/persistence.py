"""
Ledger Persistence Module

Saves and restores the full ledger (accounts, transaction logs and the
account number counter) through a StorageInterface backend. A missing or
unreadable snapshot loads as None and the caller seeds the demo accounts.
A data file that is not a database is moved aside so the next save succeeds.
"""

from datetime import datetime, timezone
from decimal import InvalidOperation
from pathlib import Path
from typing import Optional, Union
import sqlite3

from .accounts import Account, Clock, WithdrawalPolicy
from .config import LedgerConfig, get_config
from .errors import PersistenceError
from .ledger import Ledger
from .storage import StorageInterface, SQLiteStorage
from .logging_config import get_logger, log_action


SNAPSHOT_FORMAT_VERSION = 1

ACCOUNTS_TABLE = "accounts"
META_TABLE = "ledger_meta"
META_ID = "ledger"


class LedgerRepository:
    """
    Load/save gateway for ledger snapshots

    Either pass a ready storage backend, or a data_file path; the SQLite
    file is then opened on first use so that an unreadable file is reported
    through load()/save() instead of at construction.
    """

    def __init__(
        self,
        storage: Optional[StorageInterface] = None,
        data_file: Optional[Union[str, Path]] = None
    ):
        if storage is None and data_file is None:
            raise ValueError("Either storage or data_file is required")
        self._storage = storage
        self.data_file = str(data_file) if data_file is not None else None
        self.logger = get_logger("rupee_ledger.persistence")

    @property
    def location(self) -> str:
        return self.data_file or type(self._storage).__name__

    def _get_storage(self) -> StorageInterface:
        if self._storage is None:
            try:
                self._storage = self._open_file()
            except sqlite3.Error as e:
                raise PersistenceError(f"Cannot open {self.data_file}: {e}") from e
        return self._storage

    def _open_file(self) -> SQLiteStorage:
        """
        Open the SQLite data file

        A file that is not a database is renamed to <data_file>.corrupt and a
        fresh database takes its place. Files that cannot be opened at all
        (missing directory, no permission) still raise.
        """
        try:
            return SQLiteStorage(self.data_file)
        except sqlite3.OperationalError:
            raise
        except sqlite3.DatabaseError as e:
            path = Path(self.data_file)
            if not path.is_file():
                raise
            quarantine = path.with_name(path.name + ".corrupt")
            try:
                path.replace(quarantine)
            except OSError as move_error:
                raise PersistenceError(
                    f"Cannot open {self.data_file}: {e}; moving it aside failed: {move_error}"
                ) from move_error
            log_action(
                self.logger, "warning", f"Data file is not a database, moved to {quarantine}",
                action="quarantine", resource=self.location,
                extra={"error": str(e)}
            )
            return SQLiteStorage(self.data_file)

    def load(
        self,
        policy: Optional[WithdrawalPolicy] = None,
        clock: Optional[Clock] = None
    ) -> Optional[Ledger]:
        """
        Read the persisted ledger

        Returns:
            The restored Ledger, or None if there is no snapshot or it
            cannot be read
        """
        try:
            storage = self._get_storage()
            meta = storage.load(META_TABLE, META_ID)
            if meta is None:
                return None

            version = meta.get('format_version')
            if version != SNAPSHOT_FORMAT_VERSION:
                log_action(
                    self.logger, "warning", "Unknown snapshot format, ignoring saved data",
                    action="load", resource=self.location,
                    extra={"format_version": version}
                )
                return None

            ledger = Ledger(
                policy=policy,
                clock=clock,
                account_counter=int(meta['account_counter'])
            )
            for data in storage.load_all(ACCOUNTS_TABLE):
                ledger.insert_account(Account.from_dict(data, policy=ledger.policy, clock=clock))

        except (PersistenceError, sqlite3.Error, KeyError, TypeError,
                ValueError, InvalidOperation) as e:
            log_action(
                self.logger, "error", f"Failed to load saved data: {e}",
                action="load", resource=self.location
            )
            return None

        log_action(
            self.logger, "info", "Loaded ledger snapshot",
            action="load", resource=self.location,
            extra={"accounts": len(ledger), "account_counter": ledger.account_counter}
        )
        return ledger

    def save(self, ledger: Ledger) -> None:
        """
        Write the full ledger snapshot, replacing any previous one

        Raises:
            PersistenceError: If the storage backend fails
        """
        accounts = [account.to_dict() for account in ledger.accounts()]
        meta = {
            'format_version': SNAPSHOT_FORMAT_VERSION,
            'account_counter': ledger.account_counter,
            'saved_at': datetime.now(timezone.utc).isoformat()
        }

        storage = self._get_storage()
        try:
            with storage.atomic():
                storage.clear_table(ACCOUNTS_TABLE)
                for data in accounts:
                    storage.save(ACCOUNTS_TABLE, data['account_number'], data)
                storage.save(META_TABLE, META_ID, meta)
        except (sqlite3.Error, OSError) as e:
            log_action(
                self.logger, "error", f"Failed to save bank data: {e}",
                action="save", resource=self.location
            )
            raise PersistenceError(f"Failed to save bank data: {e}") from e

        log_action(
            self.logger, "info", "Saved ledger snapshot",
            action="save", resource=self.location,
            extra={"accounts": len(accounts), "account_counter": meta['account_counter']}
        )

    def close(self) -> None:
        if self._storage is not None:
            self._storage.close()


def load_or_bootstrap(
    repository: LedgerRepository,
    config: Optional[LedgerConfig] = None,
    clock: Optional[Clock] = None
) -> Ledger:
    """
    Load the saved ledger, or start fresh

    A fresh ledger gets the demo accounts 101 and 102 unless
    seed_demo_accounts is disabled.
    """
    config = config or get_config()
    policy = WithdrawalPolicy.from_config(config)

    ledger = repository.load(policy=policy, clock=clock)
    if ledger is not None:
        return ledger

    logger = get_logger("rupee_ledger.persistence")
    if config.seed_demo_accounts:
        log_action(logger, "info", "Started with sample accounts (101, 102)", action="bootstrap")
        return Ledger.with_demo_accounts(policy=policy, clock=clock)

    log_action(logger, "info", "Started with an empty ledger", action="bootstrap")
    return Ledger(policy=policy, clock=clock)
