"""
Model estimation and forecasting errors.

When raised inside a walk-forward run, the engine annotates the error
with the failing step and the records produced before it. Those records
are diagnostics only and never become a performance report.
"""

from typing import Any, Optional

from directional.errors.data_quality import BacktestError


class ModelError(BacktestError):
    """Base class for failures of the forecasting backend."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.step_index: Optional[int] = None
        self.partial_records: tuple[Any, ...] = ()


class EstimationError(ModelError):
    """Model fitting failed to converge or had too little history."""

    def __init__(
        self,
        message: str,
        order: Optional[tuple[int, int, int]] = None,
        history_length: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.order = order
        self.history_length = history_length


class ForecastError(ModelError):
    """Forecast requested on empty or invalid history."""

    def __init__(
        self,
        message: str,
        history_length: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.history_length = history_length
