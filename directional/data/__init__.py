"""
Price data handling.

- Ingestion: CSV exports and yfinance
- Preprocessing: price filtering, returns, stationarity handling
"""

from directional.data.preprocessing import SeriesPreprocessor, StationarityDecision

__all__ = ["SeriesPreprocessor", "StationarityDecision"]
