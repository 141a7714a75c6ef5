"""
Base class for conditional volatility methods.
"""

from abc import abstractmethod
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from statsengine.helpers.utils import VARIANCE_FLOOR
from statsengine.timeSeriesProcessing.baseModule.baseMethod import BaseTimeSeriesMethod

__version__ = "1.0.0"


class BaseVolatilityMethod(BaseTimeSeriesMethod):
    """
    Base class for volatility methods.

    Input is the change series r (n - 1 values for n levels). Output is a
    variance path of n values: entry 0 is the initial estimate, entry t the
    estimate after observing level t, which is also the conditional
    variance of the next change.
    """

    DEFAULT_CONFIG = {
        **BaseTimeSeriesMethod.DEFAULT_CONFIG,
        "initial_window": 20,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        merged_config = {**self.DEFAULT_CONFIG, **(config or {})}
        super().__init__(merged_config)

    def process(
        self, data: pd.Series, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Estimate the variance path and the forecast.

        Args:
            data: Change series
            context: {"horizon", "ewma_lambda", "window", "max_iter", "p", "q"}

        Returns:
            Standard response with "variance", "persistence", "forecast_variance", "params"
        """
        context_params = self.extract_context_parameters(context)
        self.log_analysis_start(data, context_params)

        try:
            validation = self.validate_input(data, 1)
            if validation["status"] == "error":
                return validation

            returns = data.to_numpy(dtype=float)
            estimate = self._estimate(returns, context_params)
            if estimate.get("status") == "error":
                return estimate

            variance = np.maximum(np.asarray(estimate["variance"], dtype=float), VARIANCE_FLOOR)
            forecast = np.maximum(
                np.asarray(estimate["forecast_variance"], dtype=float), VARIANCE_FLOOR
            )
            if not (np.isfinite(variance).all() and np.isfinite(forecast).all()):
                return self._create_error_response("non-finite variance estimate")

            response = self.create_success_response(
                {
                    "variance": variance.tolist(),
                    "persistence": float(estimate["persistence"]),
                    "forecast_variance": forecast.tolist(),
                    "params": estimate.get("params", {}),
                },
                data,
                context_params,
            )
            self.log_analysis_complete(response)
            return response

        except Exception as e:
            return self.handle_error(e, f"{self.name} estimation")

    @abstractmethod
    def _estimate(self, returns: np.ndarray, context_params: Dict[str, Any]) -> Dict[str, Any]:
        """Return {"variance", "persistence", "forecast_variance", "params"} or an error response."""
        pass

    def initial_variance(self, returns: np.ndarray) -> float:
        """Mean squared change over the first initial_window changes."""
        head = returns[: self.config["initial_window"]]
        return max(float(np.mean(head**2)), VARIANCE_FLOOR)
