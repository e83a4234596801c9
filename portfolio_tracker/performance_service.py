"""Historical portfolio performance reconstruction.

Replays a transaction ledger against daily closes to produce the blended
gain/loss of the whole portfolio for each fully priced date in a period.
"""

import logging
from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence, Union

from .errors import InvalidApiKeyError
from .formatting import format_display_date, format_signed_currency
from .ledger import financials_as_of
from .models import (
    ActionType,
    HistoricalPricePoint,
    PerformanceSummary,
    Period,
    PortfolioValuePoint,
    Transaction,
)
from .price_join import dates_with_full_coverage, index_series
from .price_service import PriceHistoryProvider
from .window import ledger_symbols, period_window, symbols_active_as_of

logger = logging.getLogger(__name__)


def _log_ledger(ledger: Sequence[Transaction], log: logging.Logger) -> None:
    buys = Counter(t.symbol for t in ledger if t.action == ActionType.BUY)
    sells = Counter(t.symbol for t in ledger if t.action == ActionType.SELL)
    for symbol in ledger_symbols(ledger):
        log.debug(f"  {symbol}: {buys[symbol]} buy, {sells[symbol]} sell")


def fetch_price_series(
    price_provider: PriceHistoryProvider,
    symbols: list[str],
    days: int,
    log: logging.Logger = logger,
) -> dict[str, list[HistoricalPricePoint]]:
    """Fetch bulk history, degrading to empty series on any soft failure.

    Raises:
        InvalidApiKeyError: Re-raised unchanged so callers can report it
    """
    try:
        fetched = price_provider.get_bulk_historical_prices(symbols, days)
    except InvalidApiKeyError:
        raise
    except Exception as e:
        log.error(f"Failed to fetch bulk historical data for {', '.join(symbols)}: {e}", exc_info=True)
        fetched = {}

    return {symbol: list(fetched.get(symbol) or []) for symbol in symbols}


def summarize_performance(points: Sequence[PortfolioValuePoint]) -> Optional[PerformanceSummary]:
    """Start/end/min/max of a series, or None when it is empty."""
    if not points:
        return None

    values = [p.absolute_value for p in points]
    return PerformanceSummary(
        start_date=points[0].date,
        end_date=points[-1].date,
        points=len(points),
        start_value=values[0],
        end_value=values[-1],
        min_value=min(values),
        max_value=max(values),
        change=values[-1] - values[0],
    )


def calculate_real_portfolio_performance(
    ledger: Sequence[Transaction],
    period: Union[Period, str],
    price_provider: PriceHistoryProvider,
    today: date,
    log: Optional[logging.Logger] = None,
) -> list[PortfolioValuePoint]:
    """Calculate portfolio gain/loss over a period from real closing prices.

    Only dates on which every symbol active by that date has a close are
    emitted. Missing or failed price data yields fewer (or no) points
    rather than an exception.

    Args:
        ledger: All transactions of one portfolio
        period: 1M, YTD or 1Y
        price_provider: Source of bulk historical closes
        today: Last date of the window
        log: Logger for progress records (defaults to this module's logger)

    Returns:
        Points in ascending date order

    Raises:
        InvalidApiKeyError: If the price backend rejects our credentials
    """
    log = log or logger
    period = Period(period)

    window = period_window(period, today)
    log.info(
        f"Performance {period.value}: {len(ledger)} transactions, "
        f"{window.start_date} to {window.end_date} ({window.day_count} days)"
    )
    _log_ledger(ledger, log)

    symbols = ledger_symbols(ledger)
    if not symbols:
        log.info("No symbols found in transactions")
        return []

    series_by_symbol = fetch_price_series(price_provider, symbols, window.day_count, log)
    log.info(
        "Historical data received: "
        + ", ".join(f"{s}={len(p)} points" for s, p in series_by_symbol.items())
    )

    covered_dates = dates_with_full_coverage(
        series_by_symbol,
        lambda d: symbols_active_as_of(ledger, d),
        window.start_date,
        today,
        log,
    )
    prices = {symbol: index_series(series) for symbol, series in series_by_symbol.items()}

    points = []
    for current_date in covered_dates:
        active = sorted(symbols_active_as_of(ledger, current_date))
        if not active:
            log.debug(f"Skipping {current_date}: no transaction activity by this date")
            continue

        total_gain_loss = Decimal("0")
        for symbol in active:
            financials = financials_as_of(ledger, symbol, current_date, prices[symbol][current_date])
            total_gain_loss += financials.gain_loss

        log.debug(f"{current_date}: total gain/loss {format_signed_currency(total_gain_loss)}")
        points.append(PortfolioValuePoint(
            date=current_date,
            absolute_value=total_gain_loss,
            display_date=format_display_date(current_date, period),
        ))

    summary = summarize_performance(points)
    if summary is None:
        log.info(f"No fully priced dates for {period.value}")
    else:
        log.info(
            f"Performance {period.value}: {summary.points} points "
            f"{summary.start_date} to {summary.end_date}, "
            f"start {format_signed_currency(summary.start_value)}, "
            f"end {format_signed_currency(summary.end_value)}, "
            f"change {format_signed_currency(summary.change)}"
        )

    return points


class PerformanceService:
    """Binds a price provider and clock to the performance calculation."""

    def __init__(self, price_provider: PriceHistoryProvider, log: Optional[logging.Logger] = None):
        self.price_provider = price_provider
        self.log = log or logger

    def calculate(
        self,
        ledger: Sequence[Transaction],
        period: Union[Period, str],
        today: Optional[date] = None,
    ) -> list[PortfolioValuePoint]:
        return calculate_real_portfolio_performance(
            ledger,
            period,
            self.price_provider,
            today or date.today(),
            self.log,
        )
