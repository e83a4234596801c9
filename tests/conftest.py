from datetime import date, timedelta
from decimal import Decimal
from itertools import count

import pytest

from portfolio_tracker.models import HistoricalPricePoint, Transaction

_ids = count(1)


def txn(symbol, action, quantity, price, on):
    """Build a ledger entry with an auto-incremented id."""
    return Transaction(
        id=f"t{next(_ids)}",
        symbol=symbol,
        action=action,
        quantity=Decimal(str(quantity)),
        price=Decimal(str(price)),
        date=on,
    )


def daily_series(start, end, close, skip=()):
    """One point per calendar day in ``[start, end]`` except dates in ``skip``."""
    points = []
    current = start
    while current <= end:
        if current not in skip:
            points.append(HistoricalPricePoint(date=current, close=Decimal(str(close))))
        current += timedelta(days=1)
    return points


class StubPriceProvider:
    """Records bulk history requests and answers from a fixed mapping."""

    def __init__(self, series=None, error=None):
        self.series = series or {}
        self.error = error
        self.calls = []

    def get_bulk_historical_prices(self, symbols, days):
        self.calls.append((list(symbols), days))
        if self.error is not None:
            raise self.error
        return {s: self.series.get(s, []) for s in symbols}


@pytest.fixture()
def today():
    return date(2024, 7, 15)
