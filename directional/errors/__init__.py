"""
Error hierarchy for the directional backtest.

Every error is unrecoverable at the point it is raised and propagates
to the caller of the walk-forward run. Degenerate numeric cases
(zero variance, no losses) are not errors.
"""

from directional.errors.data_quality import (
    BacktestError,
    DataQualityError,
    InsufficientDataError,
    MissingDataError,
)
from directional.errors.model_failures import (
    ModelError,
    EstimationError,
    ForecastError,
)

__all__ = [
    "BacktestError",
    # Data quality
    "DataQualityError",
    "InsufficientDataError",
    "MissingDataError",
    # Model failures
    "ModelError",
    "EstimationError",
    "ForecastError",
]
