"""
Exponential smoothing with additive trend (Holt's linear method).
"""

from typing import Any, Dict, Optional, Tuple

import numpy as np
from statsmodels.tsa.holtwinters import ExponentialSmoothing

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.forecasting.methods.baseForecastMethod import (
    BaseForecastMethod,
)

__version__ = "1.0.0"


class ExponentialSmoothingMethod(BaseForecastMethod):
    DEFAULT_CONFIG = {
        **BaseForecastMethod.DEFAULT_CONFIG,
        "trend": "add",
        "damped_trend": False,
        "initialization_method": "estimated",
        "min_train_length": 4,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)

        validate_required_locals(["trend", "initialization_method"], self.config)

    def __str__(self) -> str:
        return (
            f"ExponentialSmoothingMethod(trend={self.config['trend']}, "
            f"damped={self.config['damped_trend']})"
        )

    def _fit_forecast(
        self, values: np.ndarray, horizon: int, context_params: Dict[str, Any]
    ) -> Tuple[np.ndarray, np.ndarray, Dict[str, Any]]:
        model = ExponentialSmoothing(
            values,
            trend=self.config["trend"],
            damped_trend=self.config["damped_trend"],
            initialization_method=self.config["initialization_method"],
        )
        fit = model.fit()
        params = {
            "smoothing_level": float(fit.params.get("smoothing_level", np.nan)),
            "converged": self.optimizer_converged(fit),
            "smoothing_trend": float(fit.params.get("smoothing_trend", np.nan)),
        }
        return np.asarray(fit.forecast(horizon)), np.asarray(fit.fittedvalues), params
