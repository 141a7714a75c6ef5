"""
Volatility analysis orchestrator.

Primary + Fallback strategy: the requested model estimates the conditional
variance path; a GARCH fit that does not converge is replaced by EWMA and a
ConvergenceWarning is attached to the result.
"""

import logging
from typing import Any, ClassVar, Dict, Optional

import numpy as np
import pandas as pd

from statsengine.helpers.configs import ReturnType, VolatilityModel, VolatilityOptions
from statsengine.helpers.entities import VolatilityEstimate
from statsengine.helpers.errors import ConvergenceWarning, InsufficientDataError, ValidationError
from statsengine.timeSeriesProcessing.baseModule.baseAlgorithm import BaseAlgorithm
from statsengine.timeSeriesProcessing.validation.seriesValidator import SeriesValidator
from statsengine.timeSeriesProcessing.volatility.methods.ewmaMethod import EWMAMethod
from statsengine.timeSeriesProcessing.volatility.methods.garchMethod import GARCHMethod
from statsengine.timeSeriesProcessing.volatility.methods.historicalMethod import (
    HistoricalMethod,
)
from statsengine.timeSeriesProcessing.volatility.regime import detect_regimes
from statsengine.timeSeriesProcessing.volatility.risk import compute_risk_metrics

__version__ = "1.0.0"

# Share of the path compared at each end when labelling the trend
TREND_WINDOW_SHARE = 0.2
TREND_CHANGE = 0.1


class VolatilityAnalyzer(BaseAlgorithm):
    """
    Conditional dispersion of a univariate series.

    STRATEGY: Primary + Fallback
    METHODS: ewma, garch, historical
    """

    AVAILABLE_METHODS: ClassVar[Dict[VolatilityModel, type]] = {
        VolatilityModel.EWMA: EWMAMethod,
        VolatilityModel.GARCH: GARCHMethod,
        VolatilityModel.HISTORICAL: HistoricalMethod,
    }
    MIN_DATA_LENGTH: ClassVar[int] = 30
    FALLBACK_MODEL: ClassVar[VolatilityModel] = VolatilityModel.EWMA

    def __init__(self, config: Optional[Dict[str, Dict[str, Any]]] = None):
        self.config = config or {}
        self._methods = {}
        self._class_name = self.__class__.__name__
        self.validator = SeriesValidator(self.MIN_DATA_LENGTH, name="volatility")

        logging.info(f"{self._class_name} initialized: {len(self.AVAILABLE_METHODS)} methods")

    def run(self, data: Any, options: Any = None) -> VolatilityEstimate:
        """
        Estimate volatility, optional risk metrics and regimes.

        A constant series is valid input and yields ~0 volatility.

        Raises:
            ValidationError: Fewer than 30 points, invalid values, or levels
                             incompatible with the requested return_type
            InsufficientDataError: Neither the model nor the fallback could run
        """
        options = VolatilityOptions.coerce(options)
        series = self.validator.validate(data)
        returns = self.change_series(series, options.return_type)

        context = {
            "horizon": options.horizon,
            "ewma_lambda": options.ewma_lambda,
            "window": options.window,
            "max_iter": options.max_iter,
            "p": options.garch_p,
            "q": options.garch_q,
        }

        model = options.model
        response = self._get_method_instance(model).process(returns, context)
        diagnostics: Dict[str, Any] = {
            "return_type": options.return_type.value,
            "n_changes": len(returns),
        }
        warning = None

        if response["status"] == "error":
            if model == self.FALLBACK_MODEL:
                raise InsufficientDataError(
                    f"{model.value} volatility failed: {response.get('message')}"
                )
            warning = ConvergenceWarning(
                component=model.value,
                message=response.get("message", "estimation failed"),
                iterations=response.get("metadata", {}).get("iterations"),
                fallback=self.FALLBACK_MODEL.value,
            )
            logging.warning(f"{self._class_name} - {warning}; falling back to ewma")
            diagnostics["fallback"] = self.FALLBACK_MODEL.value
            diagnostics["requested_model"] = model.value

            model = self.FALLBACK_MODEL
            response = self._get_method_instance(model).process(returns, context)
            if response["status"] == "error":
                raise InsufficientDataError(
                    f"fallback volatility failed: {response.get('message')}"
                )

        result = response["result"]
        sigma = np.sqrt(np.asarray(result["variance"]))
        forecast = np.sqrt(np.asarray(result["forecast_variance"]))
        diagnostics["params"] = result["params"]

        risk_metrics = None
        if options.include_risk:
            level_scale = (
                float(np.mean(np.abs(series)))
                if options.return_type == ReturnType.DIFFERENCE
                else 1.0
            )
            risk_metrics = compute_risk_metrics(
                returns.to_numpy(), float(forecast[0]), options.confidence_level, level_scale
            )

        regimes = None
        if options.include_regimes:
            regimes = detect_regimes(pd.Series(sigma), options.min_regime_length)

        logging.info(
            f"{self._class_name} completed: model={model.value}, "
            f"current={sigma[-1]:.6f}, fallback={warning is not None}"
        )

        return VolatilityEstimate(
            series=sigma.tolist(),
            model=model,
            persistence=result["persistence"],
            risk_metrics=risk_metrics,
            forecast=forecast.tolist(),
            regimes=regimes,
            summary=self._summary(sigma),
            diagnostics=diagnostics,
            convergence_warning=warning,
        )

    @staticmethod
    def change_series(series: pd.Series, return_type: ReturnType) -> pd.Series:
        """
        Changes between consecutive levels (n - 1 values).

        Raises:
            ValidationError: Log changes of non-positive levels, percent changes from zero
        """
        values = series.to_numpy(dtype=float)
        if return_type == ReturnType.LOG:
            if (values <= 0).any():
                raise ValidationError("log changes require strictly positive levels")
            changes = np.diff(np.log(values))
        elif return_type == ReturnType.PERCENT:
            if (values[:-1] == 0).any():
                raise ValidationError("percent changes undefined for zero levels")
            changes = np.diff(values) / values[:-1]
        else:
            changes = np.diff(values)
        return pd.Series(changes, index=series.index[1:])

    @staticmethod
    def _summary(sigma: np.ndarray) -> Dict[str, Any]:
        window = max(1, int(len(sigma) * TREND_WINDOW_SHARE))
        head, tail = float(np.mean(sigma[:window])), float(np.mean(sigma[-window:]))
        if head > 0 and (tail - head) / head > TREND_CHANGE:
            trend = "increasing"
        elif head > 0 and (head - tail) / head > TREND_CHANGE:
            trend = "decreasing"
        else:
            trend = "stable"

        return {
            "current": float(sigma[-1]),
            "mean": float(np.mean(sigma)),
            "min": float(np.min(sigma)),
            "max": float(np.max(sigma)),
            "trend": trend,
        }
