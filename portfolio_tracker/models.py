"""Data models for the portfolio tracker."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_calendar_date(value):
    """Truncate datetimes and ISO date-time strings to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        value = value.strip()
        if "T" in value or " " in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return value


class ActionType(str, Enum):
    """Transaction action types."""
    BUY = "buy"
    SELL = "sell"


class Period(str, Enum):
    """Performance chart periods."""
    ONE_MONTH = "1M"
    YEAR_TO_DATE = "YTD"
    ONE_YEAR = "1Y"


class Transaction(BaseModel):
    """A single immutable ledger entry."""
    model_config = ConfigDict(frozen=True)

    id: str
    symbol: str
    action: ActionType
    quantity: Decimal = Field(gt=0)
    price: Decimal = Field(gt=0)
    date: date

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        """Normalize ticker symbol to uppercase."""
        return v.upper().strip()

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("date", mode="before")
    @classmethod
    def truncate_date(cls, v):
        """Drop any time-of-day component."""
        return _to_calendar_date(v)

    @property
    def value(self) -> Decimal:
        return self.quantity * self.price


class HistoricalPricePoint(BaseModel):
    """One daily close from a historical price series."""
    model_config = ConfigDict(frozen=True)

    date: date
    close: Decimal = Field(ge=0)

    @field_validator("date", mode="before")
    @classmethod
    def truncate_date(cls, v):
        return _to_calendar_date(v)


class SymbolFinancials(BaseModel):
    """Blended cost figures for one symbol as of a date.

    ``true_cost`` is total buy value minus total sell value and
    ``gain_loss`` is ``market_value - true_cost``. No lot matching is done,
    so a fully liquidated position still reports its realized result.
    """
    symbol: str
    shares: Decimal
    total_buy_value: Decimal
    total_sell_value: Decimal
    market_value: Decimal
    true_cost: Decimal
    gain_loss: Decimal


class PeriodWindow(BaseModel):
    """Calendar window resolved for a chart period."""
    start_date: date
    end_date: date
    day_count: int


class PortfolioValuePoint(BaseModel):
    """Portfolio-wide gain/loss on one date."""
    date: date
    absolute_value: Decimal
    display_date: str


class PerformanceSummary(BaseModel):
    """Aggregate view of a performance series."""
    start_date: date
    end_date: date
    points: int
    start_value: Decimal
    end_value: Decimal
    min_value: Decimal
    max_value: Decimal
    change: Decimal


class StockQuote(BaseModel):
    """Live quote for a symbol."""
    symbol: str
    price: Decimal = Decimal("0")
    change: Decimal = Decimal("0")
    change_percent: Decimal = Decimal("0")

    @property
    def previous_close(self) -> Decimal:
        return self.price - self.change

    @classmethod
    def fallback(cls, symbol: str) -> "StockQuote":
        """Zeroed quote used when the feed has nothing for a symbol."""
        return cls(symbol=symbol.upper())


class Holding(BaseModel):
    """Current position in a symbol, valued at a live quote."""
    symbol: str
    shares: Decimal
    avg_price: Decimal
    current_price: Decimal
    market_value: Decimal
    total_buy_value: Decimal
    total_sell_value: Decimal
    true_cost: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal
    change: Decimal = Decimal("0")
    change_percent: Decimal = Decimal("0")
    todays_gain_loss: Decimal = Decimal("0")


class LedgerMetrics(BaseModel):
    """Transaction-only totals for a ledger."""
    total_buy_value: Decimal
    total_sell_value: Decimal
    net_invested: Decimal
    total_transactions: int
    buy_transactions: int
    sell_transactions: int


class PortfolioSummary(BaseModel):
    """Overall portfolio summary at live prices."""
    total_market_value: Decimal
    total_true_cost: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percent: Decimal
    todays_gain_loss: Decimal
    holdings: list[Holding]
    as_of: Optional[date] = None
