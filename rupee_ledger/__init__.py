"""
Rupee Ledger

A single-process banking ledger with PIN-authorized accounts, minimum balance
and daily withdrawal limits, transfers, and per-account transaction history.
All monetary values use Decimal.
"""

__version__ = "1.0.0"
