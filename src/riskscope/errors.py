"""Custom exceptions for the risk analytics core."""


class RiskScopeError(Exception):
    """Base exception for all riskscope errors."""


class InsufficientData(RiskScopeError, ValueError):
    """Raised when a series is too short for the requested statistic."""


class InvalidParameters(RiskScopeError, ValueError):
    """Raised for non-positive prices, volatilities, expiries or counts."""


class NumericDegenerate(RiskScopeError, ArithmeticError):
    """Raised when a zero-variance input would divide by zero."""


class SimulationTimeout(RiskScopeError, TimeoutError):
    """Raised when a Monte Carlo run exceeds its time budget."""


class SimulationCancelled(RiskScopeError):
    """Raised when a Monte Carlo run is cancelled by the caller."""
