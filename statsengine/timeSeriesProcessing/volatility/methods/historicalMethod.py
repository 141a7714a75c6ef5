"""
Rolling-window historical volatility.
"""

from typing import Any, Dict

import numpy as np
import pandas as pd

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.volatility.methods.baseVolatilityMethod import (
    BaseVolatilityMethod,
)

__version__ = "1.0.0"


class HistoricalMethod(BaseVolatilityMethod):
    """Rolling standard deviation of the last `window` changes; flat forecast."""

    def _estimate(self, returns: np.ndarray, context_params: Dict[str, Any]) -> Dict[str, Any]:
        validate_required_locals(["horizon", "window"], context_params)
        window = int(context_params["window"])

        rolling = pd.Series(returns).rolling(window, min_periods=2).std(ddof=1)
        # Entry t covers changes up to t - 1, entry 0 has no history yet
        variance = pd.concat([pd.Series([np.nan]), rolling ** 2], ignore_index=True)
        variance = variance.bfill().fillna(self.initial_variance(returns))

        return {
            "variance": variance.to_numpy(),
            "persistence": (window - 1) / window,
            "forecast_variance": np.full(int(context_params["horizon"]), variance.iloc[-1]),
            "params": {"window": window},
        }
