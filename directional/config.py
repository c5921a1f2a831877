"""
Backtest configuration.

Every numeric constant of the backtest lives here rather than in the
logic: train fraction, cost per position, re-fit cadence, ARIMA order,
stationarity significance level and the annualisation constant.

Values load from config/settings.yaml; missing keys fall back to the
defaults below and ${VAR} references are expanded from the environment.
"""

import os
import re
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Optional
import structlog
import yaml

logger = structlog.get_logger(__name__)

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

VALID_RETURN_TYPES = ("log", "simple")
VALID_ADF_REGRESSIONS = ("n", "c", "ct", "ctt")


@dataclass(frozen=True)
class OptimizerSettings:
    """Explicit optimizer controls passed into every model fit."""
    method: str = "statespace"
    maxiter: int = 50
    require_convergence: bool = True


@dataclass(frozen=True)
class DataSettings:
    """Where prices come from."""
    price_column: str = "Close/Last"
    date_column: str = "Date"
    csv_path: Optional[str] = None
    symbol: Optional[str] = None


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    json: bool = False


@dataclass(frozen=True)
class BacktestConfig:
    """Complete configuration for one walk-forward run."""
    train_fraction: float = 0.7
    transaction_cost: float = 0.0005  # 5 bps per non-flat position
    refit_period: int = 21            # ~one trading month
    arima_order: tuple[int, int, int] = (2, 0, 1)
    significance_level: float = 0.05
    trading_days_per_year: int = 252
    min_observations: int = 30
    return_type: str = "log"
    adf_regression: str = "n"
    adf_max_lag: Optional[int] = 0
    adf_autolag: Optional[str] = None
    rolling_accuracy_window: int = 21

    optimizer: OptimizerSettings = field(default_factory=OptimizerSettings)
    data: DataSettings = field(default_factory=DataSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ValueError on any out-of-range setting."""
        if not 0.0 < self.train_fraction < 1.0:
            raise ValueError(f"train_fraction must be in (0, 1), got {self.train_fraction}")
        if self.transaction_cost < 0:
            raise ValueError(f"transaction_cost must be >= 0, got {self.transaction_cost}")
        if self.refit_period < 1:
            raise ValueError(f"refit_period must be >= 1, got {self.refit_period}")
        if len(self.arima_order) != 3 or any(int(x) < 0 for x in self.arima_order):
            raise ValueError(f"arima_order must be three non-negative ints, got {self.arima_order}")
        if not 0.0 < self.significance_level < 1.0:
            raise ValueError(f"significance_level must be in (0, 1), got {self.significance_level}")
        if self.trading_days_per_year < 1:
            raise ValueError("trading_days_per_year must be positive")
        if self.min_observations < 3:
            raise ValueError("min_observations must be at least 3")
        if self.return_type not in VALID_RETURN_TYPES:
            raise ValueError(f"return_type must be one of {VALID_RETURN_TYPES}")
        if self.adf_regression not in VALID_ADF_REGRESSIONS:
            raise ValueError(f"adf_regression must be one of {VALID_ADF_REGRESSIONS}")
        if self.rolling_accuracy_window < 1:
            raise ValueError("rolling_accuracy_window must be positive")
        if self.optimizer.maxiter < 1:
            raise ValueError("optimizer.maxiter must be positive")

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "BacktestConfig":
        """Build a config from a (possibly partial) nested dict."""
        raw = _expand_env_vars(dict(raw or {}))

        optimizer = OptimizerSettings(**(raw.pop("optimizer", None) or {}))
        data = DataSettings(**(raw.pop("data", None) or {}))
        logging_settings = LoggingSettings(**(raw.pop("logging", None) or {}))

        if "arima_order" in raw:
            raw["arima_order"] = tuple(int(x) for x in raw["arima_order"])

        unknown = set(raw) - {f for f in cls.__dataclass_fields__}
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")

        return cls(
            optimizer=optimizer,
            data=data,
            logging=logging_settings,
            **raw,
        )

    def to_dict(self) -> dict:
        """Convert to a plain dict (for logging and reports)."""
        out = asdict(self)
        out["arima_order"] = list(self.arima_order)
        return out


def load_config(path: str = "config/settings.yaml") -> BacktestConfig:
    """
    Load configuration from a YAML file.

    A missing file is not an error: defaults are returned and a warning
    is logged.
    """
    config_path = Path(path)

    if not config_path.exists():
        logger.warning("config_not_found_using_defaults", path=str(path))
        return BacktestConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    config = BacktestConfig.from_dict(raw)
    logger.info("config_loaded", path=str(path))
    return config


def _expand_env_vars(value: Any) -> Any:
    """Expand ${VAR} references in string values, recursively."""
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, str) and "${" in value:
        def replace_env(match):
            return os.environ.get(match.group(1), match.group(0))
        return _ENV_PATTERN.sub(replace_env, value)
    return value
