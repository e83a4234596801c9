"""FastAPI application entry point."""

import logging
from datetime import date
from typing import Optional

from fastapi import Body, FastAPI, HTTPException, Query

from .config import get_settings
from .csv_parser import CSVParseError, parse_csv_file
from .errors import InvalidApiKeyError
from .models import Period, PortfolioValuePoint, Transaction
from .performance_service import PerformanceService, summarize_performance
from .portfolio import Portfolio
from .price_service import get_price_provider

settings = get_settings()

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Portfolio Tracker",
    description="Track portfolio gain/loss against historical and live prices",
    version="1.0.0",
)

# Global portfolio instance (reloaded from CSV files)
portfolio: Optional[Portfolio] = None
price_provider = get_price_provider(settings)


def load_portfolio() -> Portfolio:
    """Load the ledger from all CSV files in the data directory (including subfolders)."""
    global portfolio
    portfolio = Portfolio()

    data_dir = settings.data_dir
    csv_files = sorted(data_dir.glob("**/*.csv")) if data_dir.exists() else []
    if not csv_files:
        logger.info(f"No CSV files found in {data_dir}")
        return portfolio

    all_transactions = []
    for csv_file in csv_files:
        relative_path = csv_file.relative_to(data_dir)
        try:
            transactions = parse_csv_file(csv_file)
            all_transactions.extend(transactions)
            logger.info(f"Loaded {len(transactions)} transactions from {relative_path}")
        except CSVParseError as e:
            logger.error(f"Error parsing {relative_path}: {e}")

    if all_transactions:
        portfolio.add_transactions(all_transactions)
        logger.info(f"Total: {len(all_transactions)} transactions loaded and sorted by date")

    return portfolio


def _parse_period(period: str) -> Period:
    try:
        return Period(period)
    except ValueError:
        valid = ", ".join(p.value for p in Period)
        raise HTTPException(status_code=400, detail=f"Invalid period. Must be one of: {valid}")


def _invalid_key() -> HTTPException:
    return HTTPException(status_code=502, detail="Invalid API key for the price backend")


def _serialize_series(period: Period, points: list[PortfolioValuePoint]) -> dict:
    summary = summarize_performance(points)
    return {
        "period": period.value,
        "performance": [
            {
                "date": p.date.isoformat(),
                "absolute_value": float(p.absolute_value),
                "display_date": p.display_date,
            }
            for p in points
        ],
        "summary": {
            "start_date": summary.start_date.isoformat(),
            "end_date": summary.end_date.isoformat(),
            "points": summary.points,
            "start_value": float(summary.start_value),
            "end_value": float(summary.end_value),
            "min_value": float(summary.min_value),
            "max_value": float(summary.max_value),
            "change": float(summary.change),
        } if summary else None,
    }


def _performance_response(ledger: list[Transaction], period: Period) -> dict:
    try:
        service = PerformanceService(price_provider)
        points = service.calculate(ledger, period, today=date.today())
        return _serialize_series(period, points)
    except InvalidApiKeyError:
        raise _invalid_key()
    except Exception as e:
        logger.error(f"Error calculating performance: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.on_event("startup")
async def startup_event():
    """Load portfolio data on startup."""
    logger.info(f"Settings: {settings.dict_for_logging()}")
    load_portfolio()


@app.get("/api/performance")
async def get_performance(
    period: str = Query("1M", description="Chart period (1M, YTD, 1Y)"),
):
    """Get historical gain/loss for the loaded ledger."""
    if portfolio is None:
        load_portfolio()
    return _performance_response(portfolio.transactions, _parse_period(period))


@app.post("/api/performance")
async def post_performance(
    transactions: list[Transaction] = Body(..., description="Ledger of one portfolio"),
    period: str = Query("1M", description="Chart period (1M, YTD, 1Y)"),
):
    """Get historical gain/loss for a ledger supplied in the request body."""
    return _performance_response(transactions, _parse_period(period))


@app.get("/api/holdings")
async def get_holdings():
    """Get holdings valued at live quotes."""
    if portfolio is None:
        load_portfolio()

    try:
        quotes = price_provider.get_quotes(portfolio.symbols)
        summary = portfolio.get_summary(quotes)
        return {
            "total_market_value": float(summary.total_market_value),
            "total_true_cost": float(summary.total_true_cost),
            "total_gain_loss": float(summary.total_gain_loss),
            "total_gain_loss_percent": float(summary.total_gain_loss_percent),
            "todays_gain_loss": float(summary.todays_gain_loss),
            "holdings": [
                {
                    "symbol": h.symbol,
                    "shares": float(h.shares),
                    "avg_price": float(h.avg_price),
                    "current_price": float(h.current_price),
                    "market_value": float(h.market_value),
                    "true_cost": float(h.true_cost),
                    "gain_loss": float(h.gain_loss),
                    "gain_loss_percent": float(h.gain_loss_percent),
                    "change": float(h.change),
                    "change_percent": float(h.change_percent),
                    "todays_gain_loss": float(h.todays_gain_loss),
                }
                for h in summary.holdings
            ],
        }
    except InvalidApiKeyError:
        raise _invalid_key()
    except Exception as e:
        logger.error(f"Error fetching holdings: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/ledger/metrics")
async def get_ledger_metrics():
    """Get buy/sell totals from transaction records only."""
    if portfolio is None:
        load_portfolio()

    metrics = portfolio.get_ledger_metrics()
    return {
        "total_buy_value": float(metrics.total_buy_value),
        "total_sell_value": float(metrics.total_sell_value),
        "net_invested": float(metrics.net_invested),
        "total_transactions": metrics.total_transactions,
        "buy_transactions": metrics.buy_transactions,
        "sell_transactions": metrics.sell_transactions,
    }


@app.post("/api/reload")
async def reload_portfolio():
    """Reload the ledger from CSV files."""
    try:
        load_portfolio()
        if hasattr(price_provider, "clear_cache"):
            price_provider.clear_cache()
        return {"message": "Portfolio reloaded successfully"}
    except Exception as e:
        logger.error(f"Error reloading portfolio: {e}")
        raise HTTPException(status_code=500, detail=str(e))
