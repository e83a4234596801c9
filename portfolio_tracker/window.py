"""Chart window resolution and symbol activity lookups."""

from datetime import date
from typing import Iterable, Union

import pandas as pd

from .models import Period, PeriodWindow, Transaction

# Fixed fetch lengths for the rolling periods
ONE_MONTH_DAYS = 30
ONE_YEAR_DAYS = 365


def _shift(today: date, **offset) -> date:
    # DateOffset clamps the day to the end of shorter months (Mar 31 -> Feb 29)
    return (pd.Timestamp(today) - pd.DateOffset(**offset)).date()


def period_window(period: Union[Period, str], today: date) -> PeriodWindow:
    """Resolve the start date and fetch length for a chart period.

    Args:
        period: One of 1M, YTD, 1Y
        today: The date the window ends on

    Returns:
        PeriodWindow covering ``[start_date, today]``

    Raises:
        ValueError: If the period tag is unknown
    """
    period = Period(period)

    if period == Period.ONE_MONTH:
        start_date = _shift(today, months=1)
        day_count = ONE_MONTH_DAYS
    elif period == Period.YEAR_TO_DATE:
        start_date = date(today.year, 1, 1)
        # Never ask the price feed for zero days on January 1st
        day_count = max((today - start_date).days, 1)
    else:
        start_date = _shift(today, years=1)
        day_count = ONE_YEAR_DAYS

    return PeriodWindow(start_date=start_date, end_date=today, day_count=day_count)


def symbols_active_as_of(ledger: Iterable[Transaction], as_of: date) -> set[str]:
    """Symbols with at least one transaction on or before a date."""
    return {t.symbol for t in ledger if t.date <= as_of}


def ledger_symbols(ledger: Iterable[Transaction]) -> list[str]:
    """All distinct symbols in the ledger, in first-seen order."""
    return list(dict.fromkeys(t.symbol for t in ledger))
