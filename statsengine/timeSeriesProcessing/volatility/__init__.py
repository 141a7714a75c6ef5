"""
Conditional volatility, risk metrics and volatility regimes.
"""

__version__ = "1.0.0"

from statsengine.timeSeriesProcessing.volatility.algorithmVolatility import VolatilityAnalyzer

__all__ = ["VolatilityAnalyzer"]
