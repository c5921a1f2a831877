"""
Daily closing-price loaders.

Two sources:
- CSV exports (Nasdaq historical-data format: newest first, "$"-prefixed
  prices in a "Close/Last" column)
- yfinance (no API key needed)

Both return a chronologically ordered pandas Series of closes. Values are
not filtered here; the preprocessor drops non-positive and non-finite
prices.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union
import structlog

import numpy as np
import pandas as pd
import yfinance as yf

from directional.errors import InsufficientDataError, MissingDataError

logger = structlog.get_logger(__name__)


def load_prices_csv(
    path: Union[str, Path],
    price_column: str = "Close/Last",
    date_column: Optional[str] = "Date",
) -> pd.Series:
    """
    Load closing prices from a CSV file.

    Args:
        path: CSV file path
        price_column: Column holding the closing price
        date_column: Optional date column used for chronological ordering

    Returns:
        Series of prices in chronological order

    Raises:
        MissingDataError: If the price column is absent
    """
    df = pd.read_csv(path)

    if price_column not in df.columns:
        available = [str(c) for c in df.columns]
        raise MissingDataError(
            f"Price column not found. Available columns: {', '.join(available)}",
            missing_field=price_column,
            available_fields=available,
            context={"path": str(path)},
        )

    prices = _parse_prices(df[price_column])

    if date_column and date_column in df.columns:
        dates = pd.to_datetime(df[date_column], errors="coerce")
        prices.index = dates
        prices = prices[~prices.index.isna()]
        prices = prices[~prices.index.duplicated(keep="first")]
        prices = prices.sort_index()
    else:
        prices = prices.reset_index(drop=True)

    prices.name = "close"

    logger.info(
        "prices_loaded_from_csv",
        path=str(path),
        rows=len(df),
        prices=len(prices),
    )
    return prices


def fetch_prices_yfinance(
    symbol: str,
    start: datetime,
    end: datetime,
) -> pd.Series:
    """
    Fetch daily closing prices from yfinance.

    Raises:
        InsufficientDataError: If yfinance returns no rows
    """
    ticker = yf.Ticker(symbol)
    df = ticker.history(
        start=start,
        end=end,
        interval="1d",
        auto_adjust=False,
        prepost=False,
    )

    if df.empty or "Close" not in df.columns:
        raise InsufficientDataError(
            f"No price data returned for {symbol}",
            required_count=1,
            available_count=0,
            context={"symbol": symbol},
        )

    prices = df["Close"].astype(float)
    prices = prices[~prices.index.duplicated(keep="first")].sort_index()
    prices.name = "close"

    logger.info(
        "prices_fetched_from_yfinance",
        symbol=symbol,
        start=str(start),
        end=str(end),
        prices=len(prices),
    )
    return prices


def _parse_prices(column: pd.Series) -> pd.Series:
    """Convert a price column to floats, stripping currency formatting."""
    if pd.api.types.is_numeric_dtype(column):
        return column.astype(float)

    cleaned = (
        column.astype(str)
        .str.replace("$", "", regex=False)
        .str.replace(",", "", regex=False)
        .str.strip()
    )
    return pd.to_numeric(cleaned, errors="coerce").astype(np.float64)
