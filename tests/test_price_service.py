"""yfinance-backed price service tests (downloads are stubbed)."""

from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from portfolio_tracker import price_service as price_module
from portfolio_tracker.config import Settings
from portfolio_tracker.errors import PriceFetchError
from portfolio_tracker.price_service import PriceService, get_price_provider
from portfolio_tracker.stock_api_client import StockApiClient


def grouped_frame(closes: dict[str, list[float]], dates: list[str]) -> pd.DataFrame:
    """Imitate ``yf.download(..., group_by="ticker")`` output."""
    index = pd.DatetimeIndex(pd.to_datetime(dates), name="Date")
    frames = {
        symbol: pd.DataFrame({"Open": values, "Close": values}, index=index)
        for symbol, values in closes.items()
    }
    return pd.concat(frames, axis=1)


def test_bulk_history_parses_grouped_download(monkeypatch):
    frame = grouped_frame(
        {"AAPL": [190.0, 191.5, 192.25], "MSFT": [400.0, float("nan"), 402.0]},
        ["2024-07-01", "2024-07-02", "2024-07-03"],
    )
    calls = []

    def fake_download(symbols, **kwargs):
        calls.append((symbols, kwargs))
        return frame

    monkeypatch.setattr(price_module.yf, "download", fake_download)

    result = PriceService().get_bulk_historical_prices(["AAPL", "MSFT", "GONE"], 30)

    assert [p.date for p in result["AAPL"]] == [date(2024, 7, 1), date(2024, 7, 2), date(2024, 7, 3)]
    assert result["AAPL"][1].close == Decimal("191.5")
    assert [p.date for p in result["MSFT"]] == [date(2024, 7, 1), date(2024, 7, 3)]
    assert result["GONE"] == []
    assert calls[0][1]["group_by"] == "ticker"


def test_bulk_history_download_failure_raises(monkeypatch):
    def broken_download(symbols, **kwargs):
        raise ConnectionError("offline")

    monkeypatch.setattr(price_module.yf, "download", broken_download)

    with pytest.raises(PriceFetchError, match="offline"):
        PriceService().get_bulk_historical_prices(["AAPL"], 30)


def test_bulk_history_empty_download(monkeypatch):
    monkeypatch.setattr(price_module.yf, "download", lambda symbols, **kwargs: pd.DataFrame())
    assert PriceService().get_bulk_historical_prices(["AAPL"], 30) == {"AAPL": []}


def test_quotes_from_download_and_cache(monkeypatch):
    frame = grouped_frame({"AAPL": [100.0, 110.0]}, ["2024-07-01", "2024-07-02"])
    calls = []

    def fake_download(symbols, **kwargs):
        calls.append(symbols)
        return frame

    monkeypatch.setattr(price_module.yf, "download", fake_download)
    service = PriceService()

    quote = service.get_quotes(["AAPL"])["AAPL"]
    assert quote.price == Decimal("110.0")
    assert quote.change == Decimal("10.0")
    assert quote.change_percent == Decimal("10")

    service.get_quotes(["AAPL"])
    assert len(calls) == 1


def test_get_price_provider_selects_backend():
    assert isinstance(get_price_provider(Settings(price_provider="yfinance")), PriceService)
    client = get_price_provider(Settings(price_provider="stock_api", stock_api_base_url="http://x", stock_api_key="k"))
    assert isinstance(client, StockApiClient)
    assert client.api_key == "k"
