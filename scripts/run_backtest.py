#!/usr/bin/env python3
"""
Run the walk-forward ARIMA direction backtest.

Usage:
    python scripts/run_backtest.py --csv data/HistoricalData.csv

    # Fetch prices from yfinance instead
    python scripts/run_backtest.py --symbol AAPL --start 2020-01-01 --end 2024-12-31

    # Machine-readable report
    python scripts/run_backtest.py --csv data/HistoricalData.csv --json
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import structlog
from dotenv import load_dotenv

from directional.config import load_config
from directional.data.ingestion.price_loader import fetch_prices_yfinance, load_prices_csv
from directional.errors import BacktestError
from directional.utils.log_config import configure_logging
from research.backtesting.pipeline import DirectionalBacktest
from research.backtesting.performance import PerformanceReport

logger = structlog.get_logger(__name__)


def format_report(report: PerformanceReport) -> str:
    """Human-readable performance summary."""
    lines = [
        "",
        "=== Strategy Performance ===",
        f"Direction Accuracy: {report.accuracy * 100:.1f}%",
        f"Annualized Sharpe: {report.sharpe_ratio:.2f}",
        f"Sortino Ratio: {report.sortino_ratio:.2f}",
        f"Win Rate: {report.win_rate:.1f}%",
        f"Profit Factor: {report.profit_factor:.2f}",
        f"Max Drawdown: {report.max_drawdown * 100:.2f}%",
        f"Total Return (additive): {report.total_return * 100:.2f}%",
        "",
        "Confusion Matrix (rows = actual, columns = predicted):",
        report.confusion_frame.to_string(),
    ]
    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(description="Walk-forward ARIMA direction backtest")
    parser.add_argument("--config", default="config/settings.yaml")
    parser.add_argument("--csv", type=str, help="CSV file with daily closing prices")
    parser.add_argument("--symbol", type=str, help="Ticker to fetch from yfinance")
    parser.add_argument("--start", type=str, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", type=str, help="End date (YYYY-MM-DD)")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--log-level", type=str, help="Override configured log level")

    args = parser.parse_args()

    load_dotenv()
    config = load_config(args.config)
    configure_logging(
        level=args.log_level or config.logging.level,
        json_format=config.logging.json,
    )

    csv_path = args.csv or config.data.csv_path
    symbol = args.symbol or config.data.symbol

    try:
        if csv_path:
            prices = load_prices_csv(
                csv_path,
                price_column=config.data.price_column,
                date_column=config.data.date_column,
            )
        elif symbol:
            end = datetime.fromisoformat(args.end) if args.end else datetime.now()
            start = datetime.fromisoformat(args.start) if args.start else datetime(end.year - 5, 1, 1)
            prices = fetch_prices_yfinance(symbol, start, end)
        else:
            parser.error("one of --csv or --symbol is required")

        logger.info(
            "backtest_starting",
            prices=len(prices),
            years=round(len(prices) / config.trading_days_per_year, 1),
        )

        outcome = DirectionalBacktest(config).run(prices)

    except BacktestError as e:
        logger.error(
            "backtest_failed",
            error_type=type(e).__name__,
            error=str(e),
            **e.context,
        )
        sys.exit(1)

    if args.json:
        print(json.dumps(outcome.report.to_dict(), indent=2))
    else:
        print(f"Train: {outcome.split.train_size} days, Test: {outcome.split.test_size} days")
        print(format_report(outcome.report))


if __name__ == "__main__":
    main()
