"""
Forecast model interface.

The walk-forward engine depends only on this protocol, so any backend
(classical ARIMA, a Kalman-filter state-space form, or a stub in tests)
can be swapped in without touching the engine.
"""

from typing import Any, Protocol, Sequence, runtime_checkable

import numpy as np

# Opaque fitted model; only the adapter that produced it can use it.
Model = Any
Order = tuple[int, int, int]


@runtime_checkable
class ForecastModel(Protocol):
    """Fit/forecast capability used by the walk-forward engine."""

    def fit(self, history: np.ndarray, order: Order) -> Model:
        """Fit `order` from scratch on `history`."""
        ...

    def forecast_one(self, model: Model, history: np.ndarray) -> float:
        """One-step-ahead forecast for the observation after `history`."""
        ...


def min_history_for(order: Sequence[int]) -> int:
    """Fewest observations an ARIMA(p, d, q) fit accepts: p + q + 1."""
    p, _, q = order
    return int(p) + int(q) + 1
