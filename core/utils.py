# core/utils.py
from typing import Optional

from .config import CURRENCY_SYMBOLS, DEFAULT_CURRENCY
from .schemas import PaymentFrequency


def currency_symbol(currency: Optional[str]) -> str:
    code = (currency or DEFAULT_CURRENCY).upper()
    return CURRENCY_SYMBOLS.get(code, code + " ")


def money(x: float, currency: Optional[str] = None, decimals: int = 2) -> str:
    try:
        return f"{currency_symbol(currency)}{x:,.{decimals}f}"
    except (TypeError, ValueError):
        return f"{currency_symbol(currency)}{x}"


def occurrence_label(total_occurrences: Optional[int], frequency: PaymentFrequency) -> str:
    if total_occurrences is None:
        return "-"
    if total_occurrences < 0:
        return "Payment too low"
    return f"{total_occurrences} {frequency.value} payments"
