"""Quantitative analysis core.

Pure computation over supplied price bars and option quotes:
- returns: simple/log return series
- garch: GARCH(1,1) conditional volatility
- risk: VaR, expected shortfall, moments, Sharpe, drawdown, beta/alpha
- simulation: Monte Carlo GBM terminal price distribution
- projection: bullish/bearish/neutral targets per timeframe
- volume_profile: volume-at-price, Point of Control, Value Area
- options: Black-Scholes, Greeks, implied volatility, VIX-style index
"""

from riskscope.analysis.engine import RiskEngine
from riskscope.analysis.garch import compute_garch
from riskscope.analysis.models import OptionType, PriceBar
from riskscope.analysis.options import OptionsAnalyzer
from riskscope.analysis.projection import project_prices
from riskscope.analysis.returns import compute_returns
from riskscope.analysis.risk import compute_risk_metrics
from riskscope.analysis.simulation import run_monte_carlo
from riskscope.analysis.volume_profile import compute_volume_profile

__all__ = [
    "RiskEngine",
    "compute_garch",
    "OptionType",
    "PriceBar",
    "OptionsAnalyzer",
    "compute_returns",
    "compute_risk_metrics",
    "run_monte_carlo",
    "compute_volume_profile",
    "project_prices",
]
