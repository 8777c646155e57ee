"""Unit tests for the shared normal distribution primitives."""

import math

import pytest

from riskscope.analysis.normal import inverse_normal_cdf, normal_cdf, normal_pdf
from riskscope.errors import InvalidParameters


class TestNormalCDF:
    """Test normal_cdf and normal_pdf functions."""

    def test_center(self):
        """Phi(0) is exactly one half."""
        assert normal_cdf(0.0) == 0.5

    def test_symmetry(self):
        """Phi(-x) equals 1 - Phi(x)."""
        for x in (0.1, 1.0, 2.5, 5.0):
            assert normal_cdf(-x) == pytest.approx(1.0 - normal_cdf(x), abs=1e-15)

    def test_known_values(self):
        """Phi matches tabulated values."""
        assert normal_cdf(1.959963984540054) == pytest.approx(0.975, abs=1e-12)
        assert normal_cdf(-1.0) == pytest.approx(0.15865525393145707, rel=1e-12)

    def test_deep_lower_tail_keeps_relative_precision(self):
        """Phi(-10) stays accurate instead of underflowing to zero."""
        # Phi(-10) ~ 7.62e-24; a 1 - Phi(10) form would return 0.
        assert normal_cdf(-10.0) == pytest.approx(7.619853024160527e-24, rel=1e-9)

    def test_pdf_peak(self):
        """The density peaks at 1 / sqrt(2 pi)."""
        assert normal_pdf(0.0) == pytest.approx(1.0 / math.sqrt(2 * math.pi))


class TestInverseNormalCDF:
    """Test inverse_normal_cdf function."""

    @pytest.mark.parametrize(
        "p", [1e-12, 1e-9, 1e-6, 0.001, 0.01, 0.02425, 0.05, 0.3, 0.5, 0.7, 0.95, 0.99, 0.999999]
    )
    def test_round_trip(self, p):
        """Phi(Phi^-1(p)) recovers p across both tails."""
        assert normal_cdf(inverse_normal_cdf(p)) == pytest.approx(p, rel=1e-9)

    def test_known_quantiles(self):
        """Standard quantiles match their tabulated values."""
        assert inverse_normal_cdf(0.975) == pytest.approx(1.959963984540054, abs=1e-9)
        assert inverse_normal_cdf(0.05) == pytest.approx(-1.6448536269514729, abs=1e-9)
        assert inverse_normal_cdf(0.5) == 0.0

    def test_antisymmetric(self):
        """Phi^-1(1 - p) equals -Phi^-1(p)."""
        for p in (0.001, 0.2, 0.4):
            assert inverse_normal_cdf(1 - p) == pytest.approx(-inverse_normal_cdf(p), abs=1e-9)

    def test_monotone(self):
        """Quantiles increase with p."""
        ps = [1e-8, 1e-4, 0.01, 0.1, 0.5, 0.9, 0.99, 0.9999]
        qs = [inverse_normal_cdf(p) for p in ps]
        assert qs == sorted(qs)

    @pytest.mark.parametrize("p", [0.0, 1.0, -0.1, 1.5])
    def test_out_of_range(self, p):
        """p outside (0, 1) should raise InvalidParameters."""
        with pytest.raises(InvalidParameters):
            inverse_normal_cdf(p)
