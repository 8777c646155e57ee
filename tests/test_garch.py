"""Unit tests for the GARCH(1,1) volatility model."""

import math

import numpy as np
import pytest

from riskscope.analysis.garch import compute_garch
from riskscope.analysis.returns import compute_returns
from riskscope.errors import InsufficientData, InvalidParameters


class TestComputeGarch:
    """Test compute_garch function."""

    def test_path_aligned_with_returns(self, realistic_returns):
        """Variance and volatility paths have one entry per return."""
        result = compute_garch(realistic_returns)
        assert len(result.variance) == len(realistic_returns)
        assert len(result.volatility) == len(realistic_returns)

    def test_initial_variance_is_sample_variance(self, realistic_returns):
        """The path starts at the sample variance."""
        result = compute_garch(realistic_returns)
        assert result.variance[0] == pytest.approx(np.var(realistic_returns, ddof=1))

    def test_recursion(self, realistic_returns):
        """Each variance follows omega + alpha r^2 + beta sigma^2."""
        result = compute_garch(realistic_returns)
        r = realistic_returns
        for i in (1, 2, 50, len(r) - 1):
            expected = 1e-5 + 0.08 * r[i - 1] ** 2 + 0.91 * result.variance[i - 1]
            assert result.variance[i] == pytest.approx(expected, rel=1e-12)

    def test_forecast(self, realistic_returns):
        """The forecast applies one more step of the recursion."""
        result = compute_garch(realistic_returns)
        expected = math.sqrt(1e-5 + 0.08 * realistic_returns[-1] ** 2 + 0.91 * result.variance[-1])
        assert result.forecast == pytest.approx(expected, rel=1e-12)

    def test_non_negative(self, realistic_returns):
        """Variance, volatility and forecast are never negative."""
        result = compute_garch(realistic_returns)
        assert np.all(result.variance >= 0)
        assert np.all(result.volatility >= 0)
        assert result.forecast >= 0

    def test_volatility_is_sqrt_variance(self, realistic_returns):
        """Volatility is the square root of variance."""
        result = compute_garch(realistic_returns)
        np.testing.assert_allclose(result.volatility, np.sqrt(result.variance))

    def test_accepts_return_series(self, example_bars):
        """A ReturnSeries is accepted in place of an array."""
        series = compute_returns(example_bars)
        result = compute_garch(series)
        assert len(result.volatility) == 4

    def test_single_return(self):
        """One return starts from zero variance."""
        result = compute_garch([0.01])
        assert result.variance[0] == 0.0
        assert result.forecast == pytest.approx(math.sqrt(1e-5 + 0.08 * 0.0001))

    def test_constant_series_stays_non_negative(self):
        """A flat series still gives a positive forecast from omega."""
        result = compute_garch(np.zeros(30))
        assert np.all(result.variance >= 0)
        assert result.forecast > 0

    def test_empty_series(self):
        """No returns should raise InsufficientData."""
        with pytest.raises(InsufficientData):
            compute_garch([])

    def test_non_stationary_params_rejected(self, realistic_returns):
        """alpha + beta >= 1 should raise InvalidParameters."""
        with pytest.raises(InvalidParameters):
            compute_garch(realistic_returns, alpha=0.2, beta=0.85)

    def test_custom_params(self, realistic_returns):
        """Overridden parameters are reported on the result."""
        result = compute_garch(realistic_returns, omega=2e-6, alpha=0.05, beta=0.9)
        assert result.alpha == 0.05
        assert result.beta == 0.9
