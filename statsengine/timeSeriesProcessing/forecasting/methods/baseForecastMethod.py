"""
Base class for forecasting methods.
"""

from abc import abstractmethod
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.stats import norm

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.baseModule.baseMethod import BaseTimeSeriesMethod

__version__ = "1.0.0"


class BaseForecastMethod(BaseTimeSeriesMethod):
    """
    Base class for forecasting methods.

    Workflow shared by every model:
    1. fit on the training part, forecast the holdout, score MAPE
    2. refit on the full history, forecast the horizon
    3. bounds = point +/- z * residual_std * growth ** step

    Child classes implement _fit_forecast only.
    """

    DEFAULT_CONFIG = {
        **BaseTimeSeriesMethod.DEFAULT_CONFIG,
        "min_train_length": 3,
        "mape_epsilon": 1e-8,
    }

    # Seasonal models need a period and two full cycles of training data
    REQUIRES_SEASON = False

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        merged_config = {**self.DEFAULT_CONFIG, **(config or {})}
        super().__init__(merged_config)

        validate_required_locals(["min_train_length", "mape_epsilon"], self.config)

    def __str__(self) -> str:
        return f"{self.name}(min_train_length={self.config['min_train_length']})"

    def exclusion_reason(self, train_length: int, seasonal_period: Optional[int]) -> Optional[str]:
        """Reason this model cannot run on the given training window, or None."""
        if train_length < self.config["min_train_length"]:
            return f"training window {train_length} < {self.config['min_train_length']}"
        if self.REQUIRES_SEASON:
            if not seasonal_period:
                return "no seasonal period known"
            if train_length < 2 * seasonal_period:
                return (
                    f"fewer than two full cycles of period {seasonal_period} "
                    f"in training window {train_length}"
                )
        return None

    def process(
        self, data: pd.Series, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Score, refit and forecast.

        Args:
            data: Validated history
            context: {"horizon", "holdout", "confidence_level",
                      "interval_growth", "seasonal_period", "arima_order"}

        Returns:
            Standard response with point forecast, bounds, half widths and
            holdout MAPE
        """
        context_params = self.extract_context_parameters(context)
        self.log_analysis_start(data, context_params)

        try:
            validate_required_locals(
                ["horizon", "holdout", "confidence_level", "interval_growth"],
                context_params,
            )
            values = data.to_numpy(dtype=float)
            horizon = int(context_params["horizon"])
            holdout = int(context_params["holdout"])

            reason = self.exclusion_reason(
                len(values) - holdout, context_params.get("seasonal_period")
            )
            if reason:
                return self._create_error_response(reason)

            train, test = values[:-holdout], values[-holdout:]
            holdout_forecast, _, holdout_params = self._fit_forecast(train, holdout, context_params)
            point, fitted, params = self._fit_forecast(values, horizon, context_params)
            # Closed-form models carry no "converged" flag
            converged = bool(
                holdout_params.get("converged", True) and params.get("converged", True)
            )

            holdout_forecast = np.asarray(holdout_forecast, dtype=float)
            point = np.asarray(point, dtype=float)
            if not (np.isfinite(holdout_forecast).all() and np.isfinite(point).all()):
                return self._create_error_response("model produced non-finite forecast")

            mape = self.mape(test, holdout_forecast)
            residual_std = self.residual_std(values, fitted)
            half_width = self.half_widths(
                residual_std,
                horizon,
                context_params["confidence_level"],
                context_params["interval_growth"],
            )

            result = {
                "point": point.tolist(),
                "lower": (point - half_width).tolist(),
                "upper": (point + half_width).tolist(),
                "half_width": half_width.tolist(),
                "mape": mape,
                "residual_std": residual_std,
                "params": params,
                "converged": converged,
            }
            response = self.create_success_response(
                result, data, context_params, {"train_length": len(train)}
            )
            self.log_analysis_complete(response)
            return response

        except Exception as e:
            return self.handle_error(e, f"{self.name} forecast")

    @abstractmethod
    def _fit_forecast(
        self, values: np.ndarray, horizon: int, context_params: Dict[str, Any]
    ) -> Tuple[np.ndarray, np.ndarray, Dict[str, Any]]:
        """
        Fit on values and forecast horizon steps ahead.

        Returns:
            (forecast of length horizon, in-sample fitted values aligned with
             values with NaN where undefined, fitted parameters)
        """
        pass

    @staticmethod
    def optimizer_converged(fit) -> bool:
        """Holt-Winters results keep the scipy OptimizeResult in mle_retvals, None when not optimised."""
        retvals = fit.mle_retvals
        return True if retvals is None else bool(retvals.get("success", True))

    def mape(self, actual: np.ndarray, predicted: np.ndarray) -> float:
        denominator = np.maximum(np.abs(actual), self.config["mape_epsilon"])
        return float(np.mean(np.abs(actual - predicted) / denominator))

    @staticmethod
    def residual_std(values: np.ndarray, fitted: np.ndarray) -> float:
        residuals = values - np.asarray(fitted, dtype=float)
        residuals = residuals[np.isfinite(residuals)]
        if len(residuals) < 2:
            return 0.0
        return float(np.std(residuals, ddof=1))

    @staticmethod
    def half_widths(
        residual_std: float, horizon: int, confidence_level: float, growth: float
    ) -> np.ndarray:
        """Half width per step, widening geometrically with the step number."""
        z = norm.ppf(0.5 + confidence_level / 2.0)
        steps = np.arange(1, horizon + 1)
        return z * residual_std * np.power(growth, steps)
