"""Return-series derivation.

Pure computation - operates on price bars passed as arguments.
"""

import logging
from collections.abc import Sequence

import numpy as np

from riskscope.analysis.models import PriceBar, ReturnSeries
from riskscope.errors import InsufficientData, InvalidParameters

logger = logging.getLogger(__name__)


def validate_bars(bars: Sequence[PriceBar]) -> None:
    """Check that bars are strictly chronological (no duplicate dates)."""
    for prev, cur in zip(bars, bars[1:]):
        if cur.date <= prev.date:
            raise InvalidParameters(
                f"bars must be chronological without duplicates: {prev.date} -> {cur.date}"
            )


def compute_returns(bars: Sequence[PriceBar]) -> ReturnSeries:
    """Derive simple and log returns from n >= 2 ordered bars.

    Returns:
        ReturnSeries with n-1 simple returns (c[i]-c[i-1])/c[i-1] and the
        parallel log returns ln(c[i]/c[i-1]).
    """
    if len(bars) < 2:
        raise InsufficientData(f"need at least 2 price bars, got {len(bars)}")

    validate_bars(bars)
    closes = np.array([bar.close for bar in bars], dtype=float)
    series = returns_from_closes(closes)
    return ReturnSeries(
        simple=series.simple,
        log=series.log,
        dates=tuple(bar.date for bar in bars[1:]),
    )


def returns_from_closes(closes: Sequence[float] | np.ndarray) -> ReturnSeries:
    """Same as compute_returns, for a bare close-price array."""
    closes = np.asarray(closes, dtype=float)

    if closes.ndim != 1 or len(closes) < 2:
        raise InsufficientData(f"need at least 2 closing prices, got {closes.size}")
    if not np.all(np.isfinite(closes)) or np.any(closes <= 0):
        raise InvalidParameters("closing prices must be finite and positive")

    previous = closes[:-1]
    simple = (closes[1:] - previous) / previous
    log = np.log(closes[1:] / previous)

    simple.setflags(write=False)
    log.setflags(write=False)

    logger.debug("Derived %d returns from %d closes", len(simple), len(closes))
    return ReturnSeries(simple=simple, log=log)


def as_return_array(returns: ReturnSeries | Sequence[float] | np.ndarray) -> np.ndarray:
    """Accept a ReturnSeries or any float sequence and return simple returns."""
    if isinstance(returns, ReturnSeries):
        arr = returns.simple
    else:
        arr = np.asarray(returns, dtype=float)

    if arr.ndim != 1:
        raise InvalidParameters(f"returns must be one-dimensional, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InvalidParameters("returns contain NaN or infinite values")
    return arr
