"""Daily closing-price loaders."""

from directional.data.ingestion.price_loader import fetch_prices_yfinance, load_prices_csv

__all__ = ["fetch_prices_yfinance", "load_prices_csv"]
