"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from decimal import Decimal
from typing import Optional


class LedgerConfig(BaseSettings):
    """Rupee ledger configuration"""
    
    # Persistence configuration
    data_file: str = "bank_data.db"  # SQLite snapshot file
    seed_demo_accounts: bool = True  # Seed 101/102 when no snapshot loads
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr
    
    # Business rules configuration
    minimum_balance: Decimal = Decimal("500.00")
    daily_withdrawal_limit: Decimal = Decimal("10000.00")
    recent_transactions_count: int = 5
    
    class Config:
        env_prefix = "LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
