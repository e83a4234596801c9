"""Join sparse per-symbol price series on dates with complete coverage."""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Sequence

from .models import HistoricalPricePoint

logger = logging.getLogger(__name__)


def index_series(series: Iterable[HistoricalPricePoint]) -> dict[date, Decimal]:
    """Map each date of a series to its close. The first point for a date wins."""
    index: dict[date, Decimal] = {}
    for point in series:
        index.setdefault(point.date, point.close)
    return index


def dates_with_full_coverage(
    series_by_symbol: Mapping[str, Sequence[HistoricalPricePoint]],
    active_symbols_for: Callable[[date], Iterable[str]],
    start_date: date,
    end_date: date,
    log: logging.Logger = logger,
) -> list[date]:
    """Dates in range on which every active symbol has a same-day close.

    Candidate dates are the union of all series dates within
    ``[start_date, end_date]``. A date is dropped when any symbol active on
    it lacks a price for exactly that date; there is no interpolation or
    carry-forward.

    Args:
        series_by_symbol: Symbol -> sparse historical series
        active_symbols_for: Returns the symbols active as of a date
        start_date: First date to consider (inclusive)
        end_date: Last date to consider (inclusive)
        log: Logger receiving per-date coverage decisions

    Returns:
        Covered dates in ascending order
    """
    indexed = {symbol: index_series(series) for symbol, series in series_by_symbol.items()}

    candidates = sorted({
        d for prices in indexed.values() for d in prices
        if start_date <= d <= end_date
    })
    log.debug(f"{len(candidates)} candidate dates between {start_date} and {end_date}")

    covered = []
    for candidate in candidates:
        active = sorted(active_symbols_for(candidate))
        missing = [s for s in active if candidate not in indexed.get(s, {})]
        if missing:
            log.debug(f"Skipping {candidate}: missing prices for {', '.join(missing)}")
            continue
        covered.append(candidate)

    return covered
