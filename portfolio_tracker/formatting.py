"""Presentation helpers for chart labels and log lines."""

from datetime import date
from decimal import Decimal
from typing import Union

from .models import Period


def format_display_date(value: date, period: Union[Period, str]) -> str:
    """Chart label such as ``Jan 5``, or ``Jan 5, 24`` for the 1Y period."""
    label = f"{value.strftime('%b')} {value.day}"
    if Period(period) == Period.ONE_YEAR:
        label += f", {value.strftime('%y')}"
    return label


def format_signed_currency(amount: Decimal) -> str:
    """Format an amount as ``+$1,234.50`` or ``-$4.00``."""
    sign = "+" if amount >= 0 else "-"
    return f"{sign}${abs(amount):,.2f}"
