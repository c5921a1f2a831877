"""
Forecast models.

ForecastModel is the protocol the engine talks to; ARIMAModelAdapter is
the statsmodels-backed implementation.
"""

from directional.models.base import ForecastModel, Model, Order, min_history_for
from directional.models.arima import ARIMAModelAdapter, FittedARIMA

__all__ = [
    "ForecastModel",
    "Model",
    "Order",
    "min_history_for",
    "ARIMAModelAdapter",
    "FittedARIMA",
]
