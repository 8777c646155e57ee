"""riskscope - risk metrics and price distribution analytics."""

__version__ = "0.1.0"
