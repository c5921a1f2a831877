"""
Data quality errors.

Raised while loading prices or preparing the return series, before any
model is fitted.
"""

from typing import Any, Optional


class BacktestError(Exception):
    """Base class for every error raised by the backtest."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class DataQualityError(BacktestError):
    """Input data cannot support the requested computation."""


class InsufficientDataError(DataQualityError):
    """Not enough observations to proceed."""

    def __init__(
        self,
        message: str,
        required_count: Optional[int] = None,
        available_count: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.required_count = required_count
        self.available_count = available_count


class MissingDataError(DataQualityError):
    """A required column or field is absent from the source."""

    def __init__(
        self,
        message: str,
        missing_field: Optional[str] = None,
        available_fields: Optional[list[str]] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.missing_field = missing_field
        self.available_fields = available_fields or []
