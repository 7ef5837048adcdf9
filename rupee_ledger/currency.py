"""
Rupee Amount Module

Decimal helpers for rupee amounts and en-IN currency rendering.
NEVER uses float for monetary values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Union
import re

# Set global decimal context for financial precision
getcontext().prec = 28

RUPEE_SYMBOL = "₹"
PAISE = Decimal('0.01')

AmountLike = Union[Decimal, int, str]


def to_amount(value: AmountLike) -> Decimal:
    """
    Convert a value to a Decimal rounded to paise

    Floats go through str() so that 0.1 stays 0.10 instead of its binary
    expansion.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Cannot convert '{value}' to Decimal")

    if not amount.is_finite():
        raise ValueError(f"Amount must be finite, got {value}")

    return amount.quantize(PAISE, rounding=ROUND_HALF_UP)


def decimal_from_string(value: str) -> Decimal:
    """
    Safely convert user input to Decimal, handling common formats

    Accepts "1500", "1,500.50", "₹ 1,50,000" and similar. Grouping commas
    are dropped regardless of where they sit, so Indian and Western
    grouping both parse.

    Args:
        value: String representation of number

    Returns:
        Decimal value rounded to paise

    Raises:
        ValueError: If string cannot be converted to valid Decimal
    """
    if not value or not isinstance(value, str):
        raise ValueError("Value must be a non-empty string")

    # Remove currency symbols, whitespace and grouping separators
    clean_value = re.sub(r'[^\d.\-+]', '', value.strip())
    if not clean_value or clean_value.count('.') > 1:
        raise ValueError(f"Cannot convert '{value}' to Decimal")

    return to_amount(clean_value)


def group_indian(digits: str) -> str:
    """
    Group an integer digit string the en-IN way

    The last three digits form one group and the rest are grouped in
    twos: 12345678 -> 1,23,45,678.
    """
    if len(digits) <= 3:
        return digits

    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_inr(amount: AmountLike) -> str:
    """
    Format an amount as Indian Rupees for display

    Examples:
        format_inr(Decimal('1500')) -> '₹1,500.00'
        format_inr(Decimal('12345678.5')) -> '₹1,23,45,678.50'
        format_inr(Decimal('-250')) -> '-₹250.00'
    """
    value = to_amount(amount)
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")
    return f"{sign}{RUPEE_SYMBOL}{group_indian(whole)}.{fraction}"
