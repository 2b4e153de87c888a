"""Display formatting for dollar amounts and rates"""

import math
from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float) -> int:
    """Nearest integer with exact halves rounded up: 12.5 -> 13, -2.5 -> -2"""
    return math.floor(value + 0.5)


def _quantize(value: float, decimals: int) -> Decimal:
    # Exact binary value of the float, halves away from zero
    return Decimal(value).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def format_fixed(value: float, decimals: int = 1) -> str:
    """Fixed-point string with halves rounded away from zero: 12.5 -> '13' at 0 decimals"""
    return f"{_quantize(value, decimals):f}"


def format_currency(value: float) -> str:
    """Whole-dollar currency string, e.g. 1234.5 -> '$1,235', -50 -> '-$50'"""
    sign = "-" if value < 0 else ""
    return f"{sign}${_quantize(abs(value), 0):,f}"


def format_percent(value: float, decimals: int = 1) -> str:
    """Fraction to percentage string: 0.853 -> '85.3%'"""
    return f"{format_fixed(value * 100, decimals)}%"
