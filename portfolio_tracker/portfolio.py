"""Portfolio holdings and ledger metrics."""

import logging
from datetime import date
from decimal import Decimal
from typing import Mapping, Optional

from .ledger import financials_as_of
from .models import (
    ActionType,
    Holding,
    LedgerMetrics,
    PortfolioSummary,
    StockQuote,
    Transaction,
)
from .window import ledger_symbols

logger = logging.getLogger(__name__)


def _percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    return (numerator / denominator) * 100 if denominator != 0 else Decimal("0")


class Portfolio:
    """One portfolio's transaction ledger and the views derived from it."""

    def __init__(self, name: str = "default"):
        self.name = name
        # All transactions sorted by date
        self._transactions: list[Transaction] = []

    def add_transactions(self, transactions: list[Transaction]) -> None:
        """Add transactions to the ledger.

        Args:
            transactions: Transactions to append; the ledger is re-sorted by date
        """
        self._transactions = sorted(self._transactions + list(transactions), key=lambda t: t.date)

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def symbols(self) -> list[str]:
        return ledger_symbols(self._transactions)

    def transactions_for_symbol(self, symbol: str) -> list[Transaction]:
        """Transactions for one symbol, newest first."""
        symbol = symbol.upper()
        return sorted(
            (t for t in self._transactions if t.symbol == symbol),
            key=lambda t: t.date,
            reverse=True,
        )

    def get_ledger_metrics(self) -> LedgerMetrics:
        """Totals computed from transaction records only (no prices)."""
        buys = [t for t in self._transactions if t.action == ActionType.BUY]
        sells = [t for t in self._transactions if t.action == ActionType.SELL]
        total_buy_value = sum((t.value for t in buys), Decimal("0"))
        total_sell_value = sum((t.value for t in sells), Decimal("0"))

        return LedgerMetrics(
            total_buy_value=total_buy_value,
            total_sell_value=total_sell_value,
            net_invested=total_buy_value - total_sell_value,
            total_transactions=len(self._transactions),
            buy_transactions=len(buys),
            sell_transactions=len(sells),
        )

    def get_holdings(self, quotes: Mapping[str, StockQuote], as_of: Optional[date] = None) -> list[Holding]:
        """Value every ledger symbol at its live quote.

        Args:
            quotes: Symbol -> quote; missing symbols are valued at zero
            as_of: Ledger cutoff date (defaults to today)

        Returns:
            Holdings sorted by symbol, including fully sold positions
        """
        if as_of is None:
            as_of = date.today()

        holdings = []
        for symbol in self.symbols:
            quote = quotes.get(symbol) or StockQuote.fallback(symbol)
            financials = financials_as_of(self._transactions, symbol, as_of, quote.price)

            bought = sum(
                (t.quantity for t in self._transactions
                 if t.symbol == symbol and t.action == ActionType.BUY and t.date <= as_of),
                Decimal("0"),
            )
            avg_price = financials.total_buy_value / bought if bought > 0 else Decimal("0")

            holdings.append(Holding(
                symbol=symbol,
                shares=financials.shares,
                avg_price=avg_price,
                current_price=quote.price,
                market_value=financials.market_value,
                total_buy_value=financials.total_buy_value,
                total_sell_value=financials.total_sell_value,
                true_cost=financials.true_cost,
                gain_loss=financials.gain_loss,
                gain_loss_percent=_percent(financials.gain_loss, financials.true_cost),
                change=quote.change,
                change_percent=quote.change_percent,
                todays_gain_loss=financials.shares * quote.change,
            ))

        return sorted(holdings, key=lambda h: h.symbol)

    def get_summary(self, quotes: Mapping[str, StockQuote], as_of: Optional[date] = None) -> PortfolioSummary:
        """Totals across all holdings at live prices."""
        holdings = self.get_holdings(quotes, as_of)

        total_market_value = sum((h.market_value for h in holdings), Decimal("0"))
        total_true_cost = sum((h.true_cost for h in holdings), Decimal("0"))
        total_gain_loss = sum((h.gain_loss for h in holdings), Decimal("0"))

        return PortfolioSummary(
            total_market_value=total_market_value,
            total_true_cost=total_true_cost,
            total_gain_loss=total_gain_loss,
            total_gain_loss_percent=_percent(total_gain_loss, total_true_cost),
            todays_gain_loss=sum((h.todays_gain_loss for h in holdings), Decimal("0")),
            holdings=holdings,
            as_of=as_of or date.today(),
        )
