"""
Tests for configuration and structured logging
"""

import io
import json
import logging
import sys
from decimal import Decimal

import pytest
from pydantic import ValidationError

from rupee_ledger.accounts import Account, WithdrawalPolicy
from rupee_ledger.config import LedgerConfig, get_config, reload_config
from rupee_ledger.logging_config import JSONFormatter, setup_logging, get_logger, log_action


class TestLedgerConfig:
    """Test pydantic-settings configuration"""

    def test_defaults(self, monkeypatch):
        for name in ("LEDGER_DATA_FILE", "LEDGER_MINIMUM_BALANCE", "LEDGER_DAILY_WITHDRAWAL_LIMIT"):
            monkeypatch.delenv(name, raising=False)

        config = LedgerConfig(_env_file=None)

        assert config.data_file == "bank_data.db"
        assert config.minimum_balance == Decimal("500.00")
        assert config.daily_withdrawal_limit == Decimal("10000.00")
        assert config.recent_transactions_count == 5
        assert config.seed_demo_accounts is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LEDGER_DATA_FILE", "/tmp/other.db")
        monkeypatch.setenv("LEDGER_DAILY_WITHDRAWAL_LIMIT", "2500.00")

        config = reload_config()

        assert get_config() is config
        assert config.data_file == "/tmp/other.db"
        assert WithdrawalPolicy.from_config(config).daily_limit == Decimal('2500.00')

        monkeypatch.delenv("LEDGER_DATA_FILE")
        monkeypatch.delenv("LEDGER_DAILY_WITHDRAWAL_LIMIT")
        reload_config()

    @pytest.mark.parametrize("name", ["LEDGER_MINIMUM_BALANCE", "LEDGER_DAILY_WITHDRAWAL_LIMIT"])
    def test_malformed_money_setting_is_a_validation_error(self, monkeypatch, name):
        monkeypatch.setenv(name, "five hundred")

        with pytest.raises(ValidationError):
            LedgerConfig(_env_file=None)

    def test_money_settings_parse_as_decimal(self, monkeypatch):
        monkeypatch.setenv("LEDGER_MINIMUM_BALANCE", "750.5")

        config = LedgerConfig(_env_file=None)

        assert config.minimum_balance == Decimal('750.5')
        assert WithdrawalPolicy.from_config(config).minimum_balance == Decimal('750.50')


class TestStructuredLogging:
    """Test JSON log output"""

    def setup_method(self):
        self.logger = setup_logging("DEBUG", logger_name="rupee_ledger", fmt="json")
        self.stream = io.StringIO()
        self.logger.handlers[0].setStream(self.stream)

    def teardown_method(self):
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

    def records(self):
        return [json.loads(line) for line in self.stream.getvalue().splitlines()]

    def test_log_action_fields(self):
        log_action(
            get_logger("rupee_ledger.test"), "info", "Account credited",
            action="deposit", resource="101", extra={"amount": "10.00"}
        )

        [entry] = self.records()
        assert entry["level"] == "INFO"
        assert entry["logger"] == "rupee_ledger.test"
        assert entry["message"] == "Account credited"
        assert entry["action"] == "deposit"
        assert entry["resource"] == "101"
        assert entry["extra"] == {"amount": "10.00"}

    def test_rejections_logged_without_pin(self, clock):
        account = Account("101", "John Doe", Decimal('1000'), "1234", clock=clock)

        account.withdraw(Decimal('900'))

        entries = self.records()
        warning = [e for e in entries if e["level"] == "WARNING"][0]
        assert warning["extra"]["reason"] == "insufficient_funds"
        for entry in entries:
            entry.pop("timestamp")
            assert "1234" not in json.dumps(entry)

    def test_level_filtering(self):
        self.logger.setLevel(logging.WARNING)

        log_action(get_logger("rupee_ledger.test"), "info", "hidden")
        log_action(get_logger("rupee_ledger.test"), "error", "shown")

        assert [e["message"] for e in self.records()] == ["shown"]

    def test_exception_info(self):
        formatter = JSONFormatter()
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.getLogger("x").makeRecord(
                "x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )

        entry = json.loads(formatter.format(record))
        assert "RuntimeError: boom" in entry["exception"]

    def test_text_format(self):
        logger = setup_logging("INFO", logger_name="rupee_ledger", fmt="text")
        stream = io.StringIO()
        logger.handlers[0].setStream(stream)

        get_logger("rupee_ledger.test").info("plain line")

        assert "INFO rupee_ledger.test: plain line" in stream.getvalue()
