"""
Multi-model forecasting with a holdout-weighted ensemble.
"""

__version__ = "1.0.0"

from statsengine.timeSeriesProcessing.forecasting.algorithmForecast import ForecastEngine

__all__ = ["ForecastEngine"]
