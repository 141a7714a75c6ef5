"""
Least-squares straight line extrapolated over the horizon.
"""

from typing import Any, Dict, Tuple

import numpy as np
from scipy.stats import linregress

from statsengine.timeSeriesProcessing.forecasting.methods.baseForecastMethod import (
    BaseForecastMethod,
)

__version__ = "1.0.0"


class TrendExtrapolationMethod(BaseForecastMethod):
    def _fit_forecast(
        self, values: np.ndarray, horizon: int, context_params: Dict[str, Any]
    ) -> Tuple[np.ndarray, np.ndarray, Dict[str, Any]]:
        x = np.arange(len(values))
        fit = linregress(x, values)
        future = np.arange(len(values), len(values) + horizon)
        return (
            fit.intercept + fit.slope * future,
            fit.intercept + fit.slope * x,
            {"slope": float(fit.slope), "intercept": float(fit.intercept), "r_squared": float(np.nan_to_num(fit.rvalue**2))},
        )
