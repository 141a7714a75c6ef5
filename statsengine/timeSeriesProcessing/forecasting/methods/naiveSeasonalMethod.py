"""
Seasonal naive forecast: each step repeats the value one season earlier.
"""

from typing import Any, Dict, Tuple

import numpy as np

from statsengine.timeSeriesProcessing.forecasting.methods.baseForecastMethod import (
    BaseForecastMethod,
)

__version__ = "1.0.0"


class NaiveSeasonalMethod(BaseForecastMethod):
    REQUIRES_SEASON = True

    def _fit_forecast(
        self, values: np.ndarray, horizon: int, context_params: Dict[str, Any]
    ) -> Tuple[np.ndarray, np.ndarray, Dict[str, Any]]:
        season = int(context_params["seasonal_period"])
        last_cycle = values[-season:]
        forecast = np.array([last_cycle[step % season] for step in range(horizon)])

        fitted = np.full(len(values), np.nan)
        fitted[season:] = values[:-season]
        return forecast, fitted, {"seasonal_period": season}
