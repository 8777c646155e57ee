"""GARCH(1,1) conditional volatility.

Parameters are fixed (omega=1e-5, alpha=0.08, beta=0.91) rather than fit by
maximum likelihood per series. This is a known simplification: the variance
path reacts to shocks with a generic persistence of alpha+beta=0.99.
"""

import logging
import math
from collections.abc import Sequence

import numpy as np

from riskscope.analysis.models import GarchResult, ReturnSeries
from riskscope.analysis.returns import as_return_array
from riskscope.errors import InsufficientData, InvalidParameters

logger = logging.getLogger(__name__)

DEFAULT_OMEGA = 1e-5
DEFAULT_ALPHA = 0.08
DEFAULT_BETA = 0.91


def compute_garch(
    returns: ReturnSeries | Sequence[float] | np.ndarray,
    omega: float = DEFAULT_OMEGA,
    alpha: float = DEFAULT_ALPHA,
    beta: float = DEFAULT_BETA,
) -> GarchResult:
    """Run the GARCH(1,1) recursion over a return series.

    h[0] = sample variance of the whole series
    h[i] = omega + alpha * r[i-1]^2 + beta * h[i-1]
    forecast = sqrt(omega + alpha * r[-1]^2 + beta * h[-1])

    Args:
        returns: Simple daily returns (or a ReturnSeries).
        omega, alpha, beta: Recursion weights.

    Returns:
        GarchResult with the variance/volatility path aligned to returns.
    """
    r = as_return_array(returns)
    n = len(r)
    if n == 0:
        raise InsufficientData("GARCH needs at least one return")

    _check_params(omega, alpha, beta)

    variance = np.empty(n)
    variance[0] = float(np.var(r, ddof=1)) if n > 1 else 0.0
    for i in range(1, n):
        variance[i] = omega + alpha * r[i - 1] ** 2 + beta * variance[i - 1]

    forecast = math.sqrt(omega + alpha * r[-1] ** 2 + beta * variance[-1])

    logger.debug(
        "GARCH: %d obs, h0=%.6g, last=%.6g, forecast vol=%.6g",
        n, variance[0], variance[-1], forecast,
    )
    return GarchResult(
        variance=variance,
        volatility=np.sqrt(variance),
        forecast=forecast,
        omega=omega,
        alpha=alpha,
        beta=beta,
    )


def _check_params(omega: float, alpha: float, beta: float) -> None:
    if not omega > 0:
        raise InvalidParameters(f"GARCH omega must be positive, got {omega}")
    if alpha < 0 or beta < 0:
        raise InvalidParameters(f"GARCH alpha/beta must be non-negative, got {alpha}/{beta}")
    if alpha + beta >= 1:
        raise InvalidParameters(f"GARCH alpha+beta must be < 1 for stationarity, got {alpha + beta}")
