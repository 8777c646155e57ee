"""Scenario price projections over fixed timeframes.

Blends recent trend, short-term momentum and a small seasonal term into a
drift, scales annualized volatility by regime and horizon, then samples
uniform shocks to estimate up/down/neutral probabilities per timeframe.
"""

import logging
import math
from collections.abc import Sequence

import numpy as np

from riskscope.analysis.models import (
    PriceProjection,
    ReturnSeries,
    RiskMetrics,
    TrendDirection,
    VolatilityRegime,
)
from riskscope.analysis.returns import as_return_array
from riskscope.errors import InsufficientData, InvalidParameters

logger = logging.getLogger(__name__)

DEFAULT_TIMEFRAMES = (1, 7, 30, 45, 90)
TREND_WINDOW = 60
MOMENTUM_WINDOW = 5
NUM_DRAWS = 1000
TRADING_DAYS_PER_YEAR = 252

REGIME_MULTIPLIERS = {
    VolatilityRegime.HIGH: 1.2,
    VolatilityRegime.MEDIUM: 1.0,
    VolatilityRegime.LOW: 0.8,
}


def classify_regime(annual_volatility: float) -> VolatilityRegime:
    if annual_volatility > 0.25:
        return VolatilityRegime.HIGH
    elif annual_volatility > 0.15:
        return VolatilityRegime.MEDIUM
    return VolatilityRegime.LOW


def _max_move(days: int) -> float:
    if days == 1:
        return 0.03
    elif days <= 7:
        return 0.05
    return 0.15


def _threshold(days: int) -> float:
    if days == 1:
        return 0.005
    elif days <= 7:
        return 0.01
    return 0.02


def _band_width(days: int) -> float:
    if days == 1:
        return 0.5
    elif days <= 7:
        return 0.8
    return 1.2


def _label(days: int) -> str:
    return "1 Day" if days == 1 else f"{days} Days"


def project_prices(
    current_price: float,
    metrics: RiskMetrics,
    returns: ReturnSeries | Sequence[float] | np.ndarray,
    rng: np.random.Generator | None = None,
    seed: int | None = None,
    timeframes: tuple[int, ...] = DEFAULT_TIMEFRAMES,
    num_draws: int = NUM_DRAWS,
) -> list[PriceProjection]:
    """Bullish / bearish / neutral price targets per timeframe.

    Args:
        current_price: Latest price.
        metrics: Risk metrics of the same history (annualized volatility).
        returns: Daily simple returns; the last 60 set the trend, the last 5
            the momentum.
        rng: Injected generator for the uniform shocks.
        timeframes: Horizons in calendar days.

    Returns:
        One PriceProjection per timeframe, in the given order.
    """
    if not math.isfinite(current_price) or current_price <= 0:
        raise InvalidParameters(f"current price must be positive, got {current_price}")
    r = as_return_array(returns)
    if len(r) < MOMENTUM_WINDOW:
        raise InsufficientData(f"projection needs at least {MOMENTUM_WINDOW} returns, got {len(r)}")
    if any(d < 1 for d in timeframes) or num_draws < 1:
        raise InvalidParameters("timeframes and draw count must be positive")

    if rng is None:
        rng = np.random.default_rng(seed)

    trend = float(np.mean(r[-TREND_WINDOW:]))
    momentum = float(np.mean(r[-MOMENTUM_WINDOW:]))
    regime = classify_regime(metrics.volatility)
    multiplier = REGIME_MULTIPLIERS[regime]

    logger.debug(
        "Projection inputs: trend=%.5f momentum=%.5f regime=%s", trend, momentum, regime.value
    )

    projections = []
    for days in timeframes:
        max_move = _max_move(days)
        scaled_vol = min(
            metrics.volatility * multiplier * math.sqrt(days / TRADING_DAYS_PER_YEAR), max_move
        )

        drift = (
            trend * (days / TRADING_DAYS_PER_YEAR) * 0.7
            + momentum * math.log(days + 1) * 0.3
            + math.sin(days / 365 * 2 * math.pi) * 0.005
        )

        projected = drift + (rng.random(num_draws) - 0.5) * 2 * scaled_vol
        threshold = _threshold(days)
        probability = {
            TrendDirection.UP: float(np.mean(projected > threshold)),
            TrendDirection.DOWN: float(np.mean(projected < -threshold)),
            TrendDirection.NEUTRAL: float(np.mean(np.abs(projected) <= threshold)),
        }

        band = _band_width(days)
        projections.append(
            PriceProjection(
                label=_label(days),
                days=days,
                bullish=current_price * (1 + min(drift + scaled_vol * band, max_move)),
                bearish=current_price * (1 + max(drift - scaled_vol * band, -max_move)),
                neutral=current_price * (1 + drift * 0.5),
                probability=probability,
                direction=max(probability, key=probability.get),
            )
        )
    return projections
