"""
Forecasting models. Each inherits the holdout / refit / interval workflow
from BaseForecastMethod and implements only its own fit.
"""

from .baseForecastMethod import BaseForecastMethod
from .naiveSeasonalMethod import NaiveSeasonalMethod
from .exponentialSmoothingMethod import ExponentialSmoothingMethod
from .holtWintersMethod import HoltWintersMethod
from .arimaMethod import ArimaMethod
from .trendExtrapolationMethod import TrendExtrapolationMethod

__all__ = [
    'BaseForecastMethod',
    'NaiveSeasonalMethod',
    'ExponentialSmoothingMethod',
    'HoltWintersMethod',
    'ArimaMethod',
    'TrendExtrapolationMethod'
]
