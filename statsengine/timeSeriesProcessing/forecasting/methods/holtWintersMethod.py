"""
Holt-Winters: additive trend and additive seasonality.
"""

from typing import Any, Dict, Optional, Tuple

import numpy as np
from statsmodels.tsa.holtwinters import ExponentialSmoothing

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.forecasting.methods.baseForecastMethod import (
    BaseForecastMethod,
)

__version__ = "1.0.0"


class HoltWintersMethod(BaseForecastMethod):
    REQUIRES_SEASON = True

    DEFAULT_CONFIG = {
        **BaseForecastMethod.DEFAULT_CONFIG,
        "trend": "add",
        "seasonal": "add",
        "initialization_method": "estimated",
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)

        validate_required_locals(["trend", "seasonal", "initialization_method"], self.config)

    def __str__(self) -> str:
        return (
            f"HoltWintersMethod(trend={self.config['trend']}, "
            f"seasonal={self.config['seasonal']})"
        )

    def _fit_forecast(
        self, values: np.ndarray, horizon: int, context_params: Dict[str, Any]
    ) -> Tuple[np.ndarray, np.ndarray, Dict[str, Any]]:
        season = int(context_params["seasonal_period"])
        model = ExponentialSmoothing(
            values,
            trend=self.config["trend"],
            seasonal=self.config["seasonal"],
            seasonal_periods=season,
            initialization_method=self.config["initialization_method"],
        )
        fit = model.fit()
        params = {
            "seasonal_period": season,
            "smoothing_level": float(fit.params.get("smoothing_level", np.nan)),
            "converged": self.optimizer_converged(fit),
            "smoothing_seasonal": float(fit.params.get("smoothing_seasonal", np.nan)),
        }
        return np.asarray(fit.forecast(horizon)), np.asarray(fit.fittedvalues), params
