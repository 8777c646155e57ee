"""Standard normal distribution primitives.

One implementation is shared by the VaR calculator and the options module so
both see identical tail behaviour.

- normal_cdf: complementary error function form, accurate to double
  precision in both tails (no cancellation for large |x|).
- inverse_normal_cdf: Acklam's rational approximation (relative error
  ~1.15e-9) polished by one Halley step against normal_cdf, which brings
  the error down to the precision of normal_cdf itself.
"""

import math

from riskscope.errors import InvalidParameters

SQRT_2 = math.sqrt(2.0)
SQRT_2PI = math.sqrt(2.0 * math.pi)

# Acklam coefficients
_A = (
    -3.969683028665376e01,
    2.209460984245205e02,
    -2.759285104469687e02,
    1.383577518672690e02,
    -3.066479806614716e01,
    2.506628277459239e00,
)
_B = (
    -5.447609879822406e01,
    1.615858368580409e02,
    -1.556989798598866e02,
    6.680131188771972e01,
    -1.328068155288572e01,
)
_C = (
    -7.784894002430293e-03,
    -3.223964580411365e-01,
    -2.400758277161838e00,
    -2.549732539343734e00,
    4.374664141464968e00,
    2.938163982698783e00,
)
_D = (
    7.784695709041462e-03,
    3.224671290700398e-01,
    2.445134137142996e00,
    3.754408661907416e00,
)

P_LOW = 0.02425


def normal_pdf(x: float) -> float:
    return math.exp(-0.5 * x * x) / SQRT_2PI


def normal_cdf(x: float) -> float:
    """Phi(x) = P(Z <= x) for a standard normal Z."""
    return 0.5 * math.erfc(-x / SQRT_2)


def inverse_normal_cdf(p: float) -> float:
    """Quantile function: x such that normal_cdf(x) == p, for 0 < p < 1."""
    if not (0.0 < p < 1.0):
        raise InvalidParameters(f"probability must lie in (0, 1), got {p}")

    # Work in the lower half and reflect; 1 - p is exact for p >= 0.5.
    if p > 0.5:
        return -_lower_quantile(1.0 - p)
    return _lower_quantile(p)


def _lower_quantile(p: float) -> float:
    x = _acklam(p)

    # Halley refinement
    e = normal_cdf(x) - p
    u = e * SQRT_2PI * math.exp(0.5 * x * x)
    return x - u / (1.0 + 0.5 * x * u)


def _acklam(p: float) -> float:
    a, b, c, d = _A, _B, _C, _D

    if p < P_LOW:
        q = math.sqrt(-2.0 * math.log(p))
        return (((((c[0] * q + c[1]) * q + c[2]) * q + c[3]) * q + c[4]) * q + c[5]) / (
            (((d[0] * q + d[1]) * q + d[2]) * q + d[3]) * q + 1.0
        )

    q = p - 0.5
    r = q * q
    return (((((a[0] * r + a[1]) * r + a[2]) * r + a[3]) * r + a[4]) * r + a[5]) * q / (
        ((((b[0] * r + b[1]) * r + b[2]) * r + b[3]) * r + b[4]) * r + 1.0
    )
