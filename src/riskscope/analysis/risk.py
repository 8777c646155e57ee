"""Risk and volatility analysis module.

Pure computation functions for VaR, expected shortfall, higher moments,
Sharpe ratio, drawdown and beta/alpha. Operates on return series passed as
arguments; standard deviations are sample (ddof=1) throughout.
"""

import logging
import math
from collections.abc import Sequence

import numpy as np

from riskscope.analysis.models import BetaSource, ReturnSeries, RiskMetrics
from riskscope.analysis.normal import inverse_normal_cdf
from riskscope.analysis.returns import as_return_array
from riskscope.errors import InsufficientData, InvalidParameters, NumericDegenerate

logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252
DEFAULT_RISK_FREE_RATE = 0.02  # annual

ReturnsLike = ReturnSeries | Sequence[float] | np.ndarray


def _require(r: np.ndarray, minimum: int, what: str) -> None:
    if len(r) < minimum:
        raise InsufficientData(f"{what} needs at least {minimum} returns, got {len(r)}")


def _check_confidence(confidence: float) -> None:
    if not (0.0 < confidence < 1.0):
        raise InvalidParameters(f"confidence must lie in (0, 1), got {confidence}")


def _is_constant(r: np.ndarray) -> bool:
    return bool(np.ptp(r) == 0)


def _sample_std(r: np.ndarray, what: str) -> float:
    sigma = float(np.std(r, ddof=1))
    if sigma == 0.0 or _is_constant(r):
        raise NumericDegenerate(f"{what} is undefined for a zero-variance series")
    return sigma


def _tail_count(confidence: float, n: int) -> int:
    return math.floor((1.0 - confidence) * n)


# ---------------------------------------------------------------------------
# Value at Risk / Expected Shortfall
# ---------------------------------------------------------------------------


def historical_var(returns: ReturnsLike, confidence: float) -> float:
    """-sorted(returns)[floor((1-c)*N)], reported as a positive loss."""
    _check_confidence(confidence)
    r = as_return_array(returns)
    _require(r, 1, "historical VaR")

    ordered = np.sort(r)
    # 1 - c rounds to 1.0 for c below machine epsilon
    index = min(_tail_count(confidence, len(ordered)), len(ordered) - 1)
    return float(-ordered[index])


def parametric_var(returns: ReturnsLike, confidence: float, horizon: int = 1) -> float:
    """Gaussian VaR: -(mu + z * sigma) * sqrt(horizon), z = Phi^-1(1 - c)."""
    _check_confidence(confidence)
    if horizon < 1:
        raise InvalidParameters(f"horizon must be >= 1 day, got {horizon}")
    r = as_return_array(returns)
    _require(r, 2, "parametric VaR")

    mu = float(np.mean(r))
    sigma = float(np.std(r, ddof=1))
    z = inverse_normal_cdf(1.0 - confidence)
    return -(mu + z * sigma) * math.sqrt(horizon)


def value_at_risk(returns: ReturnsLike, confidence: float, horizon: int = 1) -> float:
    """VaR as the larger (more conservative) of the parametric and historical estimates."""
    return max(
        parametric_var(returns, confidence, horizon),
        historical_var(returns, confidence),
    )


def expected_shortfall(returns: ReturnsLike, confidence: float) -> float:
    """Mean loss over the worst floor((1-c)*N) returns.

    The tail always holds at least the single worst return, so short series
    degrade to the worst observed loss instead of an empty mean.
    """
    _check_confidence(confidence)
    r = as_return_array(returns)
    _require(r, 1, "expected shortfall")

    ordered = np.sort(r)
    cutoff = max(1, _tail_count(confidence, len(ordered)))
    return float(-np.mean(ordered[:cutoff]))


# ---------------------------------------------------------------------------
# Moments
# ---------------------------------------------------------------------------


def annualized_volatility(
    returns: ReturnsLike, periods_per_year: int = TRADING_DAYS_PER_YEAR
) -> float:
    r = as_return_array(returns)
    _require(r, 2, "volatility")
    return float(np.std(r, ddof=1) * math.sqrt(periods_per_year))


def skewness(returns: ReturnsLike) -> float:
    """Adjusted Fisher-Pearson sample skewness."""
    r = as_return_array(returns)
    _require(r, 3, "skewness")
    n = len(r)
    z = (r - np.mean(r)) / _sample_std(r, "skewness")
    return float(n / ((n - 1) * (n - 2)) * np.sum(z**3))


def excess_kurtosis(returns: ReturnsLike) -> float:
    """Sample excess kurtosis (0 for a normal distribution)."""
    r = as_return_array(returns)
    _require(r, 4, "kurtosis")
    n = len(r)
    z = (r - np.mean(r)) / _sample_std(r, "kurtosis")
    scale = n * (n + 1) / ((n - 1) * (n - 2) * (n - 3))
    correction = 3 * (n - 1) ** 2 / ((n - 2) * (n - 3))
    return float(scale * np.sum(z**4) - correction)


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


def sharpe_ratio(
    returns: ReturnsLike,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> float:
    """Annualized Sharpe ratio of daily excess returns."""
    r = as_return_array(returns)
    _require(r, 2, "Sharpe ratio")
    excess = r - risk_free_rate / periods_per_year
    sigma = _sample_std(excess, "Sharpe ratio")
    return float(np.mean(excess) / sigma * math.sqrt(periods_per_year))


def max_drawdown(returns: ReturnsLike) -> float:
    """Largest peak-to-trough decline of the compounded wealth index.

    The index starts at 1.0 before the first return, so an opening loss
    counts as a drawdown. Reported as a positive fraction.
    """
    r = as_return_array(returns)
    _require(r, 1, "max drawdown")

    wealth = np.concatenate(([1.0], np.cumprod(1.0 + r)))
    running_peak = np.maximum.accumulate(wealth)
    drawdowns = (running_peak - wealth) / running_peak
    return float(np.max(drawdowns))


def beta_alpha(
    returns: ReturnsLike,
    benchmark_returns: ReturnsLike,
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> tuple[float, float]:
    """Beta = Cov(r, b) / Var(b); alpha = (mean(r) - beta * mean(b)) annualized.

    Both series must be aligned and of equal length.
    """
    r = as_return_array(returns)
    b = as_return_array(benchmark_returns)
    if len(r) != len(b):
        raise InvalidParameters(
            f"benchmark length {len(b)} does not match return length {len(r)}"
        )
    _require(r, 2, "beta")

    bench_var = float(np.var(b, ddof=1))
    if bench_var == 0.0 or _is_constant(b):
        raise NumericDegenerate("beta is undefined for a zero-variance benchmark")

    cov = float(np.cov(r, b, ddof=1)[0, 1])
    beta = cov / bench_var
    alpha = (float(np.mean(r)) - beta * float(np.mean(b))) * periods_per_year
    return beta, alpha


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


def compute_risk_metrics(
    returns: ReturnsLike,
    benchmark_returns: ReturnsLike | None = None,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> RiskMetrics:
    """Compute the full risk profile of a return series in one call.

    Args:
        returns: Daily simple returns (chronological).
        benchmark_returns: Optional aligned benchmark returns. Without it,
            beta/alpha are reported as 1/0 with ``BetaSource.ASSUMED``.
        risk_free_rate: Annual risk-free rate for the Sharpe ratio.
        periods_per_year: Annualization factor.

    Raises:
        InsufficientData: fewer than 4 returns (kurtosis minimum).
        NumericDegenerate: zero-variance returns or benchmark.
    """
    r = as_return_array(returns)
    _require(r, 4, "risk metrics")

    if benchmark_returns is not None:
        beta, alpha = beta_alpha(r, benchmark_returns, periods_per_year)
        beta_source = BetaSource.MEASURED
    else:
        logger.debug("No benchmark supplied, beta/alpha set to assumed 1/0")
        beta, alpha = 1.0, 0.0
        beta_source = BetaSource.ASSUMED

    metrics = RiskMetrics(
        var95=value_at_risk(r, 0.95),
        var99=value_at_risk(r, 0.99),
        expected_shortfall95=expected_shortfall(r, 0.95),
        expected_shortfall99=expected_shortfall(r, 0.99),
        volatility=annualized_volatility(r, periods_per_year),
        skewness=skewness(r),
        kurtosis=excess_kurtosis(r),
        sharpe_ratio=sharpe_ratio(r, risk_free_rate, periods_per_year),
        max_drawdown=max_drawdown(r),
        beta=beta,
        alpha=alpha,
        beta_source=beta_source,
    )
    logger.debug(
        "Risk metrics: %d obs, VaR95=%.4f, vol=%.4f, MDD=%.4f",
        len(r), metrics.var95, metrics.volatility, metrics.max_drawdown,
    )
    return metrics
