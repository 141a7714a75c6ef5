"""
Exponentially weighted moving average variance (RiskMetrics style).
"""

from typing import Any, Dict

import numpy as np

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.volatility.methods.baseVolatilityMethod import (
    BaseVolatilityMethod,
)

__version__ = "1.0.0"


class EWMAMethod(BaseVolatilityMethod):
    """var_t = lambda * var_{t-1} + (1 - lambda) * r_{t-1}^2; flat forecast."""

    DEFAULT_CONFIG = {
        **BaseVolatilityMethod.DEFAULT_CONFIG,
        "ewma_lambda": 0.94,
    }

    def __str__(self) -> str:
        return f"EWMAMethod(ewma_lambda={self.config['ewma_lambda']})"

    def _estimate(self, returns: np.ndarray, context_params: Dict[str, Any]) -> Dict[str, Any]:
        validate_required_locals(["horizon"], context_params)
        lam = float(context_params.get("ewma_lambda", self.config["ewma_lambda"]))

        variance = np.empty(len(returns) + 1)
        variance[0] = self.initial_variance(returns)
        for t in range(1, len(variance)):
            variance[t] = lam * variance[t - 1] + (1.0 - lam) * returns[t - 1] ** 2

        return {
            "variance": variance,
            "persistence": lam,
            "forecast_variance": np.full(int(context_params["horizon"]), variance[-1]),
            "params": {"ewma_lambda": lam},
        }
