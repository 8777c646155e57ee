"""Input and result types for the analysis core.

Inputs (price bars, option contracts) are immutable pydantic models so that
malformed market data is rejected at the boundary. Results are frozen
dataclasses, built fresh for each call.
"""

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class OptionType(str, Enum):
    CALL = "call"
    PUT = "put"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


class BetaSource(str, Enum):
    MEASURED = "measured"  # regressed against a benchmark series
    ASSUMED = "assumed"    # no benchmark: beta=1, alpha=0 placeholder


class IVStatus(str, Enum):
    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    ZERO_VEGA = "zero_vega"


class VolatilityRegime(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class PriceBar(BaseModel):
    """One daily OHLCV bar."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    open: float = Field(gt=0)
    high: float = Field(gt=0)
    low: float = Field(gt=0)
    close: float = Field(gt=0)
    volume: float = Field(ge=0)

    @model_validator(mode="after")
    def _check_range(self) -> "PriceBar":
        if self.high < max(self.open, self.close):
            raise ValueError(f"high {self.high} below max(open, close) on {self.date}")
        if self.low > min(self.open, self.close):
            raise ValueError(f"low {self.low} above min(open, close) on {self.date}")
        return self


class OptionContract(BaseModel):
    """One row of an option-chain snapshot."""

    model_config = ConfigDict(frozen=True)

    strike: float = Field(gt=0)
    expiry: dt.date
    option_type: OptionType = OptionType.CALL
    price: float = Field(gt=0)
    volume: float = Field(default=0.0, ge=0)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReturnSeries:
    """Simple and log returns derived once from a bar history."""

    simple: np.ndarray
    log: np.ndarray
    dates: tuple[dt.date, ...] = ()  # date of the closing bar of each return

    def __len__(self) -> int:
        return len(self.simple)


@dataclass(frozen=True)
class GarchResult:
    variance: np.ndarray    # conditional variance h_i, aligned with returns
    volatility: np.ndarray  # sqrt(h_i)
    forecast: float         # one-step-ahead volatility
    omega: float
    alpha: float
    beta: float


@dataclass(frozen=True)
class RiskMetrics:
    var95: float
    var99: float
    expected_shortfall95: float
    expected_shortfall99: float
    volatility: float       # annualized
    skewness: float
    kurtosis: float         # excess
    sharpe_ratio: float     # annualized
    max_drawdown: float
    beta: float
    alpha: float            # annualized
    beta_source: BetaSource

    @property
    def has_benchmark(self) -> bool:
        return self.beta_source is BetaSource.MEASURED


@dataclass(frozen=True)
class ConfidenceIntervals:
    ci95: tuple[float, float]
    ci99: tuple[float, float]


@dataclass(frozen=True)
class MonteCarloResult:
    """Terminal price distribution of a GBM simulation.

    ``expected_return`` is the mean terminal *price*, not a rate of return.
    ``probabilities`` is (below target, at or above target).
    """

    scenarios: np.ndarray
    probabilities: tuple[float, float]
    confidence_intervals: ConfidenceIntervals
    expected_return: float
    worst_case: float
    best_case: float
    target_price: float
    num_paths: int
    is_partial: bool = False

    @property
    def probability_of_decline(self) -> float:
        return self.probabilities[0]


@dataclass(frozen=True)
class VolumeProfileEntry:
    price_level: float      # lower edge of the bin
    price_high: float       # upper edge of the bin
    volume: float
    percentage_of_total: float
    is_point_of_control: bool
    in_value_area: bool
    value_area_high: float
    value_area_low: float


@dataclass(frozen=True)
class GreeksProfile:
    delta: float
    gamma: float
    theta: float
    vega: float
    rho: float


@dataclass(frozen=True)
class ImpliedVolResult:
    volatility: float
    status: IVStatus
    iterations: int

    @property
    def converged(self) -> bool:
        return self.status is IVStatus.CONVERGED


@dataclass(frozen=True)
class OptionQuote:
    strike: float
    expiry: dt.date
    option_type: OptionType
    price: float
    time_to_expiry: float   # years
    implied_volatility: float
    iv_status: IVStatus
    greeks: GreeksProfile


@dataclass(frozen=True)
class VolatilitySurface:
    strikes: tuple[float, ...]
    expiries: tuple[dt.date, ...]
    implied_volatilities: np.ndarray  # shape (len(expiries), len(strikes))


@dataclass(frozen=True)
class PriceProjection:
    label: str
    days: int
    bullish: float
    bearish: float
    neutral: float
    probability: dict[TrendDirection, float] = field(default_factory=dict)
    direction: TrendDirection = TrendDirection.NEUTRAL
