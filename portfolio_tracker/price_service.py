"""Price service for fetching quotes and historical closes using yfinance."""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Protocol

import pandas as pd
import yfinance as yf

from .config import Settings, get_settings
from .errors import PriceFetchError
from .models import HistoricalPricePoint, StockQuote

logger = logging.getLogger(__name__)


class PriceHistoryProvider(Protocol):
    """Anything that can answer a bulk historical-price request."""

    def get_bulk_historical_prices(
        self, symbols: list[str], days: int
    ) -> dict[str, list[HistoricalPricePoint]]:
        ...


class QuoteProvider(Protocol):
    def get_quotes(self, symbols: list[str]) -> dict[str, StockQuote]:
        ...


def _close_series(data: pd.DataFrame, symbol: str, batch_size: int) -> pd.Series:
    """Extract one symbol's Close column from ``yf.download`` output.

    Depending on the yfinance version and the number of tickers, columns are
    flat, ``(ticker, field)`` or ``(field, ticker)``.
    """
    if data.empty:
        return pd.Series(dtype=float)

    cols = data.columns
    if isinstance(cols, pd.MultiIndex):
        if symbol in cols.get_level_values(0):
            close = data[symbol]["Close"]
        elif "Close" in cols.get_level_values(0) and symbol in data["Close"].columns:
            close = data["Close"][symbol]
        else:
            return pd.Series(dtype=float)
    elif batch_size == 1 and "Close" in cols:
        close = data["Close"]
    else:
        return pd.Series(dtype=float)

    if isinstance(close, pd.DataFrame):
        close = close.iloc[:, 0]
    return close.dropna()


def _to_date(ts) -> date:
    return ts.date() if hasattr(ts, "date") else ts


class PriceService:
    """Service for fetching live quotes and historical daily closes."""

    def __init__(self, cache_ttl_seconds: int = 300):
        """Initialize the price service.

        Args:
            cache_ttl_seconds: How long to cache quotes (default 5 minutes)
        """
        self.cache_ttl = timedelta(seconds=cache_ttl_seconds)
        self._quote_cache: dict[str, tuple[StockQuote, datetime]] = {}

    def _cached_quote(self, symbol: str) -> Optional[StockQuote]:
        if symbol in self._quote_cache:
            quote, cached_at = self._quote_cache[symbol]
            if datetime.now() - cached_at < self.cache_ttl:
                return quote
        return None

    @staticmethod
    def _quote_from_closes(symbol: str, closes: pd.Series) -> Optional[StockQuote]:
        if closes.empty:
            return None
        price = Decimal(str(closes.iloc[-1]))
        prev_close = Decimal(str(closes.iloc[-2])) if len(closes) >= 2 else price
        change = price - prev_close
        change_percent = (change / prev_close * 100) if prev_close > 0 else Decimal("0")
        return StockQuote(
            symbol=symbol,
            price=price,
            change=change,
            change_percent=change_percent,
        )

    def get_quote(self, symbol: str) -> StockQuote:
        """Get the latest quote for a symbol.

        Args:
            symbol: Yahoo Finance ticker symbol

        Returns:
            StockQuote, zeroed if no data is available
        """
        cached = self._cached_quote(symbol)
        if cached is not None:
            return cached

        try:
            history = yf.Ticker(symbol).history(period="5d")
            quote = self._quote_from_closes(symbol, history["Close"].dropna()) if not history.empty else None
            if quote is None:
                logger.warning(f"No price data available for {symbol}")
                return StockQuote.fallback(symbol)
            self._quote_cache[symbol] = (quote, datetime.now())
            return quote

        except Exception as e:
            logger.error(f"Error fetching price for {symbol}: {e}")
            return StockQuote.fallback(symbol)

    def get_quotes(self, symbols: list[str]) -> dict[str, StockQuote]:
        """Get quotes for multiple symbols.

        Args:
            symbols: List of Yahoo Finance ticker symbols

        Returns:
            Dictionary mapping every symbol to a quote (zeroed if unavailable)
        """
        results: dict[str, StockQuote] = {}
        uncached_symbols = []

        for symbol in symbols:
            cached = self._cached_quote(symbol)
            if cached is not None:
                results[symbol] = cached
            else:
                uncached_symbols.append(symbol)

        if not uncached_symbols:
            return results

        try:
            data = yf.download(
                uncached_symbols,
                period="5d",
                progress=False,
                group_by="ticker",
            )
            for symbol in uncached_symbols:
                try:
                    quote = self._quote_from_closes(
                        symbol, _close_series(data, symbol, len(uncached_symbols))
                    )
                    if quote is not None:
                        self._quote_cache[symbol] = (quote, datetime.now())
                        results[symbol] = quote
                except Exception as e:
                    logger.error(f"Error processing price for {symbol}: {e}")

        except Exception as e:
            logger.error(f"Error in batch price fetch: {e}")

        # Fall back to individual fetching for any missing symbols
        for symbol in uncached_symbols:
            if symbol not in results:
                results[symbol] = self.get_quote(symbol)

        return results

    def get_bulk_historical_prices(
        self, symbols: list[str], days: int
    ) -> dict[str, list[HistoricalPricePoint]]:
        """Get daily closes for several symbols over the last ``days`` days.

        Args:
            symbols: List of Yahoo Finance ticker symbols
            days: Number of calendar days to look back from today

        Returns:
            Symbol -> ascending list of points; symbols without data map to []

        Raises:
            PriceFetchError: If the download itself fails
        """
        results: dict[str, list[HistoricalPricePoint]] = {s: [] for s in symbols}
        if not symbols:
            return results

        end_d = date.today()
        start_d = end_d - timedelta(days=days)

        try:
            data = yf.download(
                symbols,
                start=start_d,
                end=end_d + timedelta(days=1),
                progress=False,
                group_by="ticker",
            )
        except Exception as e:
            raise PriceFetchError(f"Error fetching historical prices for {', '.join(symbols)}: {e}") from e

        for symbol in symbols:
            try:
                closes = _close_series(data, symbol, len(symbols))
                results[symbol] = [
                    HistoricalPricePoint(date=_to_date(ts), close=Decimal(str(close)))
                    for ts, close in closes.items()
                ]
            except Exception as e:
                logger.error(f"Error processing historical prices for {symbol}: {e}")

        logger.info(
            f"Fetched history for {len(symbols)} symbols over {days} days: "
            + ", ".join(f"{s}={len(p)}" for s, p in results.items())
        )
        return results

    def clear_cache(self) -> None:
        """Clear all cached data."""
        self._quote_cache.clear()


def get_price_provider(settings: Optional[Settings] = None):
    """Return the configured quote/history backend."""
    settings = settings or get_settings()
    if settings.price_provider == "stock_api":
        from .stock_api_client import StockApiClient

        return StockApiClient.from_settings(settings)
    return PriceService(cache_ttl_seconds=settings.quote_cache_ttl_seconds)
