from datetime import date

import pytest

from conftest import txn
from portfolio_tracker.models import Period
from portfolio_tracker.window import ledger_symbols, period_window, symbols_active_as_of


def test_one_month_window():
    window = period_window("1M", date(2024, 7, 15))
    assert window.start_date == date(2024, 6, 15)
    assert window.end_date == date(2024, 7, 15)
    assert window.day_count == 30


def test_ytd_window(today):
    window = period_window(Period.YEAR_TO_DATE, today)
    assert window.start_date == date(2024, 1, 1)
    assert window.day_count == (today - date(2024, 1, 1)).days


def test_ytd_on_new_year_still_requests_a_day():
    window = period_window("YTD", date(2025, 1, 1))
    assert window.start_date == date(2025, 1, 1)
    assert window.day_count == 1


def test_one_year_window():
    window = period_window("1Y", date(2024, 7, 15))
    assert window.start_date == date(2023, 7, 15)
    assert window.day_count == 365


@pytest.mark.parametrize("period,today,expected", [
    ("1M", date(2024, 3, 31), date(2024, 2, 29)),
    ("1M", date(2023, 3, 31), date(2023, 2, 28)),
    ("1M", date(2024, 5, 31), date(2024, 4, 30)),
    ("1M", date(2024, 1, 15), date(2023, 12, 15)),
    ("1Y", date(2024, 2, 29), date(2023, 2, 28)),
])
def test_month_end_overflow_clamps_to_last_valid_day(period, today, expected):
    assert period_window(period, today).start_date == expected


def test_unknown_period_raises():
    with pytest.raises(ValueError):
        period_window("5Y", date(2024, 1, 1))


def test_symbols_active_as_of():
    ledger = [
        txn("AAPL", "buy", 1, 100, date(2024, 1, 10)),
        txn("MSFT", "buy", 1, 100, date(2024, 2, 10)),
        txn("AAPL", "sell", 1, 100, date(2024, 3, 10)),
    ]
    assert symbols_active_as_of(ledger, date(2024, 1, 9)) == set()
    assert symbols_active_as_of(ledger, date(2024, 1, 10)) == {"AAPL"}
    assert symbols_active_as_of(ledger, date(2024, 2, 10)) == {"AAPL", "MSFT"}
    # Fully sold symbols stay active
    assert symbols_active_as_of(ledger, date(2024, 12, 31)) == {"AAPL", "MSFT"}


def test_ledger_symbols_first_seen_order():
    ledger = [
        txn("TSLA", "buy", 1, 100, date(2024, 3, 1)),
        txn("AAPL", "buy", 1, 100, date(2024, 1, 1)),
        txn("TSLA", "sell", 1, 100, date(2024, 4, 1)),
    ]
    assert ledger_symbols(ledger) == ["TSLA", "AAPL"]
    assert ledger_symbols([]) == []
