"""Ledger accounting primitives.

Pure functions over an immutable transaction list. Nothing here reads the
clock or touches the network, so every result is a function of its
arguments alone.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable

from .models import ActionType, SymbolFinancials, Transaction


def _transactions_as_of(
    ledger: Iterable[Transaction], symbol: str, as_of: date
) -> list[Transaction]:
    """Transactions for a symbol on or before a date, oldest first.

    ``sorted`` is stable, so same-day entries keep their ledger order.
    """
    relevant = [t for t in ledger if t.symbol == symbol and t.date <= as_of]
    return sorted(relevant, key=lambda t: t.date)


def shares_as_of(ledger: Iterable[Transaction], symbol: str, as_of: date) -> Decimal:
    """Net share count for a symbol as of a date (inclusive).

    Over-selling is not rejected; the result may be zero or negative.
    """
    shares = Decimal("0")
    for txn in _transactions_as_of(ledger, symbol, as_of):
        if txn.action == ActionType.BUY:
            shares += txn.quantity
        elif txn.action == ActionType.SELL:
            shares -= txn.quantity
    return shares


def financials_as_of(
    ledger: Iterable[Transaction],
    symbol: str,
    as_of: date,
    price: Decimal,
) -> SymbolFinancials:
    """Blended cost financials for a symbol as of a date.

    Args:
        ledger: Transactions for one portfolio
        symbol: Ticker to evaluate
        as_of: Cutoff date (inclusive)
        price: Close price used for the market value

    Returns:
        SymbolFinancials with ``true_cost = buys - sells`` and
        ``gain_loss = shares * price - true_cost``
    """
    shares = Decimal("0")
    total_buy_value = Decimal("0")
    total_sell_value = Decimal("0")

    for txn in _transactions_as_of(ledger, symbol, as_of):
        if txn.action == ActionType.BUY:
            shares += txn.quantity
            total_buy_value += txn.value
        elif txn.action == ActionType.SELL:
            shares -= txn.quantity
            total_sell_value += txn.value

    market_value = shares * price
    true_cost = total_buy_value - total_sell_value

    return SymbolFinancials(
        symbol=symbol,
        shares=shares,
        total_buy_value=total_buy_value,
        total_sell_value=total_sell_value,
        market_value=market_value,
        true_cost=true_cost,
        gain_loss=market_value - true_cost,
    )
