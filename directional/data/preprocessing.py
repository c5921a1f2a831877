"""
Price series preprocessing.

Turns a raw price sequence into the return series the model is fitted on:

1. Drop non-positive and non-finite prices (silently, order preserved)
2. One-period returns (log or simple, never mixed)
3. Unit-root test; if it fails to reject non-stationarity, difference ONCE

Differencing is a fixed single pass. If the differenced series is still
non-stationary it is used as is; looping until stationary would change
the statistical meaning of the results.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union
import warnings
import structlog

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import adfuller

from directional.errors import InsufficientDataError

logger = structlog.get_logger(__name__)

StationarityTest = Callable[[np.ndarray], float]


def adf_pvalue(
    series: np.ndarray,
    regression: str = "n",
    max_lag: Optional[int] = 0,
    autolag: Optional[str] = None,
) -> float:
    """Augmented Dickey-Fuller p-value (null hypothesis: unit root)."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        result = adfuller(
            series,
            maxlag=max_lag,
            regression=regression,
            autolag=autolag,
        )
    return float(result[1])


def filter_prices(prices: Union[Sequence[float], np.ndarray, pd.Series]) -> np.ndarray:
    """Keep strictly positive, finite prices in their original order."""
    values = np.asarray(prices, dtype=np.float64).ravel()
    return values[np.isfinite(values) & (values > 0)]


def compute_returns(prices: np.ndarray, return_type: str = "log") -> np.ndarray:
    """One-period returns; the result is one element shorter than prices."""
    if return_type == "log":
        return np.diff(np.log(prices))
    if return_type == "simple":
        return prices[1:] / prices[:-1] - 1.0
    raise ValueError(f"Unknown return_type: {return_type}")


@dataclass(frozen=True)
class StationarityDecision:
    """Outcome of the stationarity check on a return series."""
    p_value: float
    significance_level: float
    differenced: bool
    test_error: Optional[str] = None

    @property
    def is_stationary(self) -> bool:
        return not self.differenced


class SeriesPreprocessor:
    """
    Converts prices into a (weakly) stationary return series.

    The unit-root test is injectable: any callable mapping a series to a
    p-value can stand in for the default ADF test. A test that raises or
    returns a non-finite p-value never aborts preparation; the series is
    then left undifferenced.
    """

    def __init__(
        self,
        significance_level: float = 0.05,
        min_observations: int = 30,
        return_type: str = "log",
        stationarity_test: Optional[StationarityTest] = None,
    ):
        """
        Initialize preprocessor.

        Args:
            significance_level: p-value above this means "not stationary"
            min_observations: Minimum valid prices required
            return_type: "log" or "simple"
            stationarity_test: Callable returning a unit-root p-value
                (defaults to ADF with no constant and zero lags)
        """
        if return_type not in ("log", "simple"):
            raise ValueError(f"Unknown return_type: {return_type}")

        self.significance_level = significance_level
        self.min_observations = min_observations
        self.return_type = return_type
        self.stationarity_test = stationarity_test or adf_pvalue

    def prepare(self, prices: Union[Sequence[float], np.ndarray, pd.Series]) -> np.ndarray:
        """
        Prepare the return series from raw prices.

        Raises:
            InsufficientDataError: Fewer than min_observations valid prices
        """
        clean = filter_prices(prices)
        dropped = len(np.asarray(prices).ravel()) - len(clean)

        if len(clean) < self.min_observations:
            raise InsufficientDataError(
                f"Need at least {self.min_observations} valid prices, got {len(clean)}",
                required_count=self.min_observations,
                available_count=len(clean),
            )

        if dropped:
            logger.debug("invalid_prices_dropped", count=dropped)

        returns = compute_returns(clean, self.return_type)

        decision = self.check_stationarity(returns)
        if decision.differenced:
            returns = np.diff(returns)
            logger.info(
                "differencing_applied",
                p_value=decision.p_value,
                length=len(returns),
            )

        return returns

    def check_stationarity(self, returns: np.ndarray) -> StationarityDecision:
        """Run the unit-root test and decide whether to difference."""
        try:
            p_value = float(self.stationarity_test(returns))
        except Exception as e:
            logger.warning("stationarity_test_failed", error=str(e))
            return StationarityDecision(
                p_value=float("nan"),
                significance_level=self.significance_level,
                differenced=False,
                test_error=str(e),
            )

        if not np.isfinite(p_value):
            logger.warning("stationarity_test_non_finite", p_value=p_value)
            return StationarityDecision(
                p_value=p_value,
                significance_level=self.significance_level,
                differenced=False,
                test_error="non-finite p-value",
            )

        decision = StationarityDecision(
            p_value=p_value,
            significance_level=self.significance_level,
            differenced=p_value > self.significance_level,
        )

        logger.info(
            "stationarity_checked",
            p_value=p_value,
            significance_level=self.significance_level,
            differenced=decision.differenced,
        )
        return decision
