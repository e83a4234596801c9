"""Client for the stock REST backend (live quotes and bulk history)."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .config import Settings
from .errors import InvalidApiKeyError, PriceFetchError
from .models import HistoricalPricePoint, StockQuote

logger = logging.getLogger(__name__)


class StockApiClient:
    """Synchronous client for ``/api/stock`` endpoints."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or ""
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StockApiClient":
        return cls(
            base_url=settings.stock_api_base_url,
            api_key=settings.stock_api_key,
            timeout=settings.request_timeout_seconds,
        )

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise PriceFetchError(f"{method} {path} failed: {e}") from e

        if response.status_code in (401, 403):
            raise InvalidApiKeyError()
        if response.is_error:
            raise PriceFetchError(f"HTTP error! status: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise PriceFetchError(f"Malformed response from {path}: {e}") from e

    def get_quote(self, symbol: str) -> StockQuote:
        """Fetch a live quote.

        Raises:
            InvalidApiKeyError: On 401/403
            PriceFetchError: On any other failure
        """
        data = self._request(
            "GET", "/api/stock", params={"symbol": symbol, "apiKey": self.api_key}
        )
        if not isinstance(data, dict):
            raise PriceFetchError(f"Quote response for {symbol} is not an object")

        try:
            return StockQuote(
                symbol=data.get("symbol") or symbol.upper(),
                price=Decimal(str(data.get("price") or 0)),
                change=Decimal(str(data.get("change") or 0)),
                change_percent=Decimal(str(data.get("percentChange") or 0)),
            )
        except (InvalidOperation, TypeError, ValueError) as e:
            raise PriceFetchError(f"Malformed quote for {symbol}: {e}") from e

    def get_quotes(self, symbols: list[str]) -> dict[str, StockQuote]:
        """Fetch quotes for several symbols.

        Soft failures produce a zeroed quote for that symbol; an invalid key
        aborts the whole batch.
        """
        results = {}
        for symbol in symbols:
            try:
                results[symbol] = self.get_quote(symbol)
            except PriceFetchError as e:
                logger.error(f"Error fetching stock price for {symbol}: {e}")
                results[symbol] = StockQuote.fallback(symbol)
        return results

    def get_bulk_historical_prices(
        self, symbols: list[str], days: int
    ) -> dict[str, list[HistoricalPricePoint]]:
        """Fetch daily closes for several symbols in one request.

        Returns:
            Symbol -> list of points; symbols absent from the response map to [].
            Malformed points are logged and skipped, the rest of the series is kept.

        Raises:
            InvalidApiKeyError: On 401/403
            PriceFetchError: On transport errors, other HTTP errors or bad payloads
        """
        payload = self._request(
            "POST",
            "/api/stock/history-bulk",
            json={"symbols": symbols, "days": days, "apiKey": self.api_key},
        )
        if not isinstance(payload, dict):
            raise PriceFetchError("Bulk history response is not an object")

        results: dict[str, list[HistoricalPricePoint]] = {}
        for symbol in symbols:
            points = payload.get(symbol) or []
            if not isinstance(points, list):
                logger.error(f"Discarding history for {symbol}: expected a list of points")
                results[symbol] = []
                continue

            series = []
            for raw in points:
                try:
                    series.append(HistoricalPricePoint.model_validate(raw))
                except ValidationError as e:
                    logger.warning(f"Skipping malformed price point for {symbol}: {raw!r} ({e.error_count()} errors)")
            results[symbol] = series
        return results

    def close(self) -> None:
        self._client.close()
