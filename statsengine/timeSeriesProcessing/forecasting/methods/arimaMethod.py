"""
ARIMA forecast with a linear trend term (drift once differenced).
"""

from typing import Any, Dict, Tuple

import numpy as np
from statsmodels.tsa.arima.model import ARIMA

from statsengine.timeSeriesProcessing.forecasting.methods.baseForecastMethod import (
    BaseForecastMethod,
)

__version__ = "1.0.0"


class ArimaMethod(BaseForecastMethod):
    DEFAULT_CONFIG = {
        **BaseForecastMethod.DEFAULT_CONFIG,
        "default_order": (1, 1, 0),
        "min_train_length": 5,
    }

    def __str__(self) -> str:
        return f"ArimaMethod(default_order={self.config['default_order']})"

    def _fit_forecast(
        self, values: np.ndarray, horizon: int, context_params: Dict[str, Any]
    ) -> Tuple[np.ndarray, np.ndarray, Dict[str, Any]]:
        order = tuple(context_params.get("arima_order") or self.config["default_order"])
        d = order[1]
        # statsmodels: constant only without differencing, drift ("t") otherwise
        trend = "c" if d == 0 else ("t" if d == 1 else "n")

        fit = ARIMA(values, order=order, trend=trend).fit()

        fitted = np.asarray(fit.fittedvalues, dtype=float).copy()
        # The first d residuals come from the diffuse initialization
        fitted[:d] = np.nan

        return np.asarray(fit.forecast(horizon)), fitted, {
            "order": list(order),
            "trend": trend,
            "aic": float(fit.aic),
            "converged": bool(fit.mle_retvals.get("converged", True)) if fit.mle_retvals else True,
        }
