"""Black-Scholes option pricing, Greeks and implied volatility.

European options on a non-dividend-paying underlying with a constant
risk-free rate fixed at construction. Time to expiry is in years, theta is
per year, vega and rho are per unit change of volatility and rate.
"""

import datetime as dt
import logging
import math
from collections.abc import Sequence

import numpy as np

from riskscope.analysis.models import (
    GreeksProfile,
    ImpliedVolResult,
    IVStatus,
    OptionContract,
    OptionQuote,
    OptionType,
    VolatilitySurface,
)
from riskscope.analysis.normal import normal_cdf, normal_pdf
from riskscope.errors import InvalidParameters

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_RISK_FREE_RATE = 0.05
DAYS_PER_YEAR = 365

# Implied volatility solver
IV_INITIAL_GUESS = 0.20
IV_TOLERANCE = 1e-6
IV_MAX_ITERATIONS = 100
IV_MIN_VOLATILITY = 0.001
IV_MAX_VOLATILITY = 5.0
VEGA_EPSILON = 1e-12

# VIX-style index
VIX_WINDOW_DAYS = 30
VIX_STRIKE_SPACING = 5.0

# Synthetic volatility surface
SURFACE_BASE_VOL = 0.20
SURFACE_SMILE = 0.05
SURFACE_TERM = 0.02
SURFACE_NOISE = 0.02
SURFACE_MIN_VOL = 0.05


def time_to_expiry(expiry: dt.date, as_of: dt.date) -> float:
    """Years from as_of to expiry (ACT/365), floored at zero."""
    return max(0.0, (expiry - as_of).days / DAYS_PER_YEAR)


class OptionsAnalyzer:
    """Black-Scholes analytics at a fixed risk-free rate."""

    def __init__(
        self,
        risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
        iv_tolerance: float = IV_TOLERANCE,
        iv_max_iterations: int = IV_MAX_ITERATIONS,
    ):
        if not math.isfinite(risk_free_rate):
            raise InvalidParameters(f"risk-free rate must be finite, got {risk_free_rate}")
        if iv_tolerance <= 0 or iv_max_iterations < 1:
            raise InvalidParameters("implied volatility tolerance and iteration budget must be positive")
        self.risk_free_rate = risk_free_rate
        self.iv_tolerance = iv_tolerance
        self.iv_max_iterations = iv_max_iterations

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def _d1_d2(self, spot: float, strike: float, expiry: float, vol: float) -> tuple[float, float]:
        _check_inputs(spot, strike, expiry, vol)
        sqrt_t = math.sqrt(expiry)
        d1 = (math.log(spot / strike) + (self.risk_free_rate + 0.5 * vol * vol) * expiry) / (vol * sqrt_t)
        return d1, d1 - vol * sqrt_t

    def black_scholes(
        self,
        spot: float,
        strike: float,
        expiry: float,
        vol: float,
        option_type: OptionType = OptionType.CALL,
    ) -> float:
        """Black-Scholes price of a European call or put."""
        d1, d2 = self._d1_d2(spot, strike, expiry, vol)
        discount = strike * math.exp(-self.risk_free_rate * expiry)

        if OptionType(option_type) is OptionType.CALL:
            return spot * normal_cdf(d1) - discount * normal_cdf(d2)
        return discount * normal_cdf(-d2) - spot * normal_cdf(-d1)

    # ------------------------------------------------------------------
    # Greeks
    # ------------------------------------------------------------------

    def delta(self, spot, strike, expiry, vol, option_type=OptionType.CALL) -> float:
        d1, _ = self._d1_d2(spot, strike, expiry, vol)
        if OptionType(option_type) is OptionType.CALL:
            return normal_cdf(d1)
        return normal_cdf(d1) - 1.0

    def gamma(self, spot, strike, expiry, vol) -> float:
        d1, _ = self._d1_d2(spot, strike, expiry, vol)
        return normal_pdf(d1) / (spot * vol * math.sqrt(expiry))

    def theta(self, spot, strike, expiry, vol, option_type=OptionType.CALL) -> float:
        d1, d2 = self._d1_d2(spot, strike, expiry, vol)
        decay = -(spot * normal_pdf(d1) * vol) / (2.0 * math.sqrt(expiry))
        carry = self.risk_free_rate * strike * math.exp(-self.risk_free_rate * expiry)

        if OptionType(option_type) is OptionType.CALL:
            return decay - carry * normal_cdf(d2)
        return decay + carry * normal_cdf(-d2)

    def vega(self, spot, strike, expiry, vol) -> float:
        d1, _ = self._d1_d2(spot, strike, expiry, vol)
        return spot * normal_pdf(d1) * math.sqrt(expiry)

    def rho(self, spot, strike, expiry, vol, option_type=OptionType.CALL) -> float:
        _, d2 = self._d1_d2(spot, strike, expiry, vol)
        discounted = strike * expiry * math.exp(-self.risk_free_rate * expiry)

        if OptionType(option_type) is OptionType.CALL:
            return discounted * normal_cdf(d2)
        return -discounted * normal_cdf(-d2)

    def greeks(
        self,
        spot: float,
        strike: float,
        expiry: float,
        vol: float,
        option_type: OptionType = OptionType.CALL,
    ) -> GreeksProfile:
        return GreeksProfile(
            delta=self.delta(spot, strike, expiry, vol, option_type),
            gamma=self.gamma(spot, strike, expiry, vol),
            theta=self.theta(spot, strike, expiry, vol, option_type),
            vega=self.vega(spot, strike, expiry, vol),
            rho=self.rho(spot, strike, expiry, vol, option_type),
        )

    # ------------------------------------------------------------------
    # Implied volatility
    # ------------------------------------------------------------------

    def implied_volatility(
        self,
        market_price: float,
        spot: float,
        strike: float,
        expiry: float,
        option_type: OptionType = OptionType.CALL,
        initial_guess: float = IV_INITIAL_GUESS,
    ) -> ImpliedVolResult:
        """Newton-Raphson solve of black_scholes(vol) == market_price.

        Never raises on non-convergence: the last estimate is returned with
        status MAX_ITERATIONS, or ZERO_VEGA when the slope vanishes.
        """
        if not math.isfinite(market_price) or market_price <= 0:
            raise InvalidParameters(f"market price must be positive, got {market_price}")
        _check_inputs(spot, strike, expiry, initial_guess)

        vol = initial_guess
        for iteration in range(1, self.iv_max_iterations + 1):
            diff = self.black_scholes(spot, strike, expiry, vol, option_type) - market_price
            if abs(diff) < self.iv_tolerance:
                return ImpliedVolResult(vol, IVStatus.CONVERGED, iteration)

            vega = self.vega(spot, strike, expiry, vol)
            if vega < VEGA_EPSILON:
                logger.debug("IV solver: vega vanished at vol=%.6f (iteration %d)", vol, iteration)
                return ImpliedVolResult(vol, IVStatus.ZERO_VEGA, iteration)

            vol = min(max(vol - diff / vega, IV_MIN_VOLATILITY), IV_MAX_VOLATILITY)

        logger.debug(
            "IV solver: no convergence after %d iterations (price=%.6f, vol=%.6f)",
            self.iv_max_iterations, market_price, vol,
        )
        return ImpliedVolResult(vol, IVStatus.MAX_ITERATIONS, self.iv_max_iterations)

    # ------------------------------------------------------------------
    # Chain analytics
    # ------------------------------------------------------------------

    def quote_chain(
        self,
        contracts: Sequence[OptionContract],
        underlying_price: float,
        as_of: dt.date,
    ) -> list[OptionQuote]:
        """Implied volatility and Greeks for every unexpired contract."""
        quotes = []
        for contract in contracts:
            years = time_to_expiry(contract.expiry, as_of)
            if years <= 0:
                logger.debug("Skipping expired contract %s %s", contract.strike, contract.expiry)
                continue

            iv = self.implied_volatility(
                contract.price, underlying_price, contract.strike, years, contract.option_type
            )
            quotes.append(
                OptionQuote(
                    strike=contract.strike,
                    expiry=contract.expiry,
                    option_type=contract.option_type,
                    price=contract.price,
                    time_to_expiry=years,
                    implied_volatility=iv.volatility,
                    iv_status=iv.status,
                    greeks=self.greeks(
                        underlying_price, contract.strike, years, iv.volatility, contract.option_type
                    ),
                )
            )
        return quotes

    def vix(
        self,
        quotes: Sequence[OptionQuote],
        strike_spacing: float = VIX_STRIKE_SPACING,
        window_days: int = VIX_WINDOW_DAYS,
    ) -> float:
        """VIX-style volatility index from near-term quotes.

        Contribution per option = (spacing / K^2) * e^(rT) * IV, averaged
        with weights T over options expiring within ``window_days``.
        Returns sqrt(average) * 100, or 0.0 when no option qualifies.
        """
        window = window_days / DAYS_PER_YEAR
        near_term = [q for q in quotes if 0 < q.time_to_expiry <= window]

        weighted_sum = 0.0
        weight_sum = 0.0
        for q in near_term:
            contribution = (
                strike_spacing / q.strike**2
                * math.exp(self.risk_free_rate * q.time_to_expiry)
                * q.implied_volatility
            )
            weighted_sum += q.time_to_expiry * contribution
            weight_sum += q.time_to_expiry

        if weight_sum == 0:
            return 0.0
        return math.sqrt(weighted_sum / weight_sum) * 100

    def volatility_surface(
        self,
        current_price: float,
        strikes: Sequence[float],
        expiries: Sequence[dt.date],
        as_of: dt.date,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> VolatilitySurface:
        """Synthetic implied-volatility surface with smile and term structure.

        vol = 0.20 + 0.05 (K/S - 1)^2 + 0.02 sqrt(T) + U(-0.01, 0.01),
        floored at 0.05. The noise comes from the injected generator.
        """
        if not math.isfinite(current_price) or current_price <= 0:
            raise InvalidParameters(f"current price must be positive, got {current_price}")
        if rng is None:
            rng = np.random.default_rng(seed)

        strike_arr = np.asarray(strikes, dtype=float)
        years = np.array([time_to_expiry(e, as_of) for e in expiries], dtype=float)

        smile = SURFACE_SMILE * (strike_arr / current_price - 1.0) ** 2
        term = SURFACE_TERM * np.sqrt(years)
        noise = (rng.random((len(years), len(strike_arr))) - 0.5) * SURFACE_NOISE

        surface = SURFACE_BASE_VOL + smile[np.newaxis, :] + term[:, np.newaxis] + noise
        return VolatilitySurface(
            strikes=tuple(float(k) for k in strike_arr),
            expiries=tuple(expiries),
            implied_volatilities=np.maximum(surface, SURFACE_MIN_VOL),
        )


def _check_inputs(spot: float, strike: float, expiry: float, vol: float) -> None:
    for name, value in (("spot", spot), ("strike", strike), ("time to expiry", expiry), ("volatility", vol)):
        if not math.isfinite(value) or value <= 0:
            raise InvalidParameters(f"{name} must be positive, got {value}")
