"""Pytest configuration and shared fixtures."""

from datetime import date, timedelta

import numpy as np
import pytest

from riskscope.analysis.models import PriceBar


def make_bars(closes, start=date(2024, 1, 1), volumes=None):
    """Build valid daily bars around a close series (one bar per calendar day)."""
    bars = []
    prev = closes[0]
    for i, close in enumerate(closes):
        open_ = prev
        bars.append(
            PriceBar(
                date=start + timedelta(days=i),
                open=open_,
                high=max(open_, close) * 1.01,
                low=min(open_, close) * 0.99,
                close=close,
                volume=volumes[i] if volumes is not None else 1000 + 10 * i,
            )
        )
        prev = close
    return bars


@pytest.fixture
def example_closes():
    return [100.0, 102.0, 99.0, 101.0, 105.0]


@pytest.fixture
def example_bars(example_closes):
    return make_bars(example_closes)


@pytest.fixture
def realistic_closes():
    """250 days of prices with ~25% annual volatility."""
    rng = np.random.default_rng(42)
    daily_returns = rng.normal(0.0004, 0.016, 249)
    prices = [100.0]
    for r in daily_returns:
        prices.append(prices[-1] * np.exp(r))
    return prices


@pytest.fixture
def realistic_bars(realistic_closes):
    return make_bars(realistic_closes)


@pytest.fixture
def realistic_returns(realistic_closes):
    closes = np.asarray(realistic_closes)
    return (closes[1:] - closes[:-1]) / closes[:-1]
