"""
Forecast ensemble orchestrator.

Weighted Ensemble strategy: every viable model is scored on a holdout,
refitted on the full history and combined with inverse-error weights.
"""

import logging
from typing import Any, ClassVar, Dict, List, Optional

import numpy as np
import pandas as pd

from statsengine.helpers.configs import ForecastModel, ForecastOptions
from statsengine.helpers.entities import EnsembleForecast, ForecastResult
from statsengine.helpers.errors import ConvergenceWarning, InsufficientDataError
from statsengine.timeSeriesProcessing.baseModule.baseAlgorithm import BaseAlgorithm
from statsengine.timeSeriesProcessing.forecasting.methods.arimaMethod import ArimaMethod
from statsengine.timeSeriesProcessing.forecasting.methods.exponentialSmoothingMethod import (
    ExponentialSmoothingMethod,
)
from statsengine.timeSeriesProcessing.forecasting.methods.holtWintersMethod import (
    HoltWintersMethod,
)
from statsengine.timeSeriesProcessing.forecasting.methods.naiveSeasonalMethod import (
    NaiveSeasonalMethod,
)
from statsengine.timeSeriesProcessing.forecasting.methods.trendExtrapolationMethod import (
    TrendExtrapolationMethod,
)
from statsengine.timeSeriesProcessing.periodicity.algorithmPeriodicityDetector import (
    PatternDetector,
)
from statsengine.timeSeriesProcessing.validation.seriesValidator import SeriesValidator

__version__ = "1.0.0"

# Holdout errors at or below this count as a perfect fit
PERFECT_FIT_MAPE = 1e-6


class ForecastEngine(BaseAlgorithm):
    """
    Multi-model forecaster with holdout-weighted ensemble.

    STRATEGY: Weighted Ensemble
    METHODS: naive-seasonal, exponential-smoothing, holt-winters, arima,
             trend-extrapolation
    """

    AVAILABLE_METHODS: ClassVar[Dict[ForecastModel, type]] = {
        ForecastModel.NAIVE_SEASONAL: NaiveSeasonalMethod,
        ForecastModel.EXPONENTIAL_SMOOTHING: ExponentialSmoothingMethod,
        ForecastModel.HOLT_WINTERS: HoltWintersMethod,
        ForecastModel.ARIMA: ArimaMethod,
        ForecastModel.TREND_EXTRAPOLATION: TrendExtrapolationMethod,
    }
    MIN_DATA_LENGTH: ClassVar[int] = 10

    def __init__(
        self,
        config: Optional[Dict[str, Dict[str, Any]]] = None,
        pattern_detector: Optional[PatternDetector] = None,
    ):
        self.config = config or {}
        self._methods = {}
        self._class_name = self.__class__.__name__
        self.validator = SeriesValidator(self.MIN_DATA_LENGTH, name="forecast")
        self.pattern_detector = pattern_detector or PatternDetector()

        logging.info(f"{self._class_name} initialized: {len(self.AVAILABLE_METHODS)} methods")

    def run(self, data: Any, options: Any = None) -> EnsembleForecast:
        """
        Forecast the series with every requested model and combine them.

        Raises:
            ValidationError: Fewer than 10 points or invalid values
            InsufficientDataError: No requested model could be fitted
        """
        options = ForecastOptions.coerce(options)
        series = self.validator.validate(data)

        holdout = max(1, int(len(series) * options.validation_split))
        seasonal_period, period_source = self._seasonal_period(series, options)

        context = {
            "horizon": options.horizon,
            "holdout": holdout,
            "confidence_level": options.confidence_level,
            "interval_growth": options.interval_growth,
            "seasonal_period": seasonal_period,
            "arima_order": options.arima_order,
        }

        members, excluded, failed = self._execute_methods(series, options, context)
        if not members:
            raise InsufficientDataError(
                f"No viable forecast model for {len(series)} points: "
                f"excluded={excluded}, failed={failed}"
            )

        weights = self.compute_weights(
            {name: response["result"]["mape"] for name, response in members.items()},
            options.weight_floor,
        )
        forecast = self._combine(members, weights, series, options)
        forecast.diagnostics.update(
            {
                "holdout_length": holdout,
                "seasonal_period": seasonal_period,
                "seasonal_period_source": period_source,
                "excluded_models": excluded,
                "failed_models": failed,
                "mape": {name: r["result"]["mape"] for name, r in members.items()},
                "non_converged_models": [
                    name for name, r in members.items() if not r["result"]["converged"]
                ],
            }
        )

        logging.info(
            f"{self._class_name} completed: {len(members)} models, horizon={options.horizon}"
        )
        return forecast

    def _seasonal_period(self, series: pd.Series, options: ForecastOptions):
        if options.seasonal_period:
            return options.seasonal_period, "options"
        if not any(model.is_seasonal for model in options.models):
            return None, None
        if len(series) < PatternDetector.MIN_DATA_LENGTH:
            return None, None
        try:
            period = self.pattern_detector.dominant_period(series)
        except InsufficientDataError as e:
            logging.warning(f"{self._class_name} - seasonal period inference failed: {e}")
            return None, None
        return (period, "autocorrelation") if period else (None, None)

    def _execute_methods(
        self, series: pd.Series, options: ForecastOptions, context: Dict[str, Any]
    ):
        members, excluded, failed = {}, {}, {}
        train_length = len(series) - context["holdout"]

        for model in options.models:
            method = self._get_method_instance(model)
            reason = method.exclusion_reason(train_length, context["seasonal_period"])
            if reason:
                excluded[model.value] = reason
                logging.debug(f"{self._class_name} - {model.value} excluded: {reason}")
                continue

            response, error = self._process_single_method(model, series, context)
            if error:
                failed[model.value] = error["error"]
            else:
                members[model.value] = response

        return members, excluded, failed

    @staticmethod
    def compute_weights(errors: Dict[str, float], weight_floor: float) -> Dict[str, float]:
        """
        Inverse-error weights with a floor.

        Models with ~0 holdout error share the raw weight equally; identical
        errors give uniform weights. The floor is applied as
        w = floor + (1 - n * floor) * w_raw, so every member keeps at least
        the floor and the sum stays 1.
        """
        names = list(errors)
        n = len(names)
        values = np.array([errors[name] for name in names], dtype=float)

        perfect = values <= PERFECT_FIT_MAPE
        if perfect.any():
            raw = perfect.astype(float)
        elif np.allclose(values, values[0]):
            raw = np.ones(n)
        else:
            raw = 1.0 / values
        raw = raw / raw.sum()

        if n * weight_floor >= 1.0:
            weights = np.full(n, 1.0 / n)
        else:
            weights = weight_floor + (1.0 - n * weight_floor) * raw
        weights = weights / weights.sum()

        return {name: float(w) for name, w in zip(names, weights)}

    def _combine(
        self,
        members: Dict[str, Dict[str, Any]],
        weights: Dict[str, float],
        series: pd.Series,
        options: ForecastOptions,
    ) -> EnsembleForecast:
        results: List[ForecastResult] = []
        point = np.zeros(options.horizon)
        half_width = np.zeros(options.horizon)

        for name, response in members.items():
            result = response["result"]
            results.append(
                ForecastResult(
                    model_name=name,
                    point_forecast=result["point"],
                    lower_bound=result["lower"],
                    upper_bound=result["upper"],
                    fit_diagnostics=self._fit_diagnostics(name, result),
                )
            )
            point += weights[name] * np.asarray(result["point"])
            half_width += weights[name] * np.asarray(result["half_width"])

        combined = ForecastResult(
            model_name="ensemble",
            point_forecast=point.tolist(),
            lower_bound=(point - half_width).tolist(),
            upper_bound=(point + half_width).tolist(),
            fit_diagnostics={"confidence_level": options.confidence_level},
        )

        return EnsembleForecast(
            members=results,
            weights=weights,
            combined=combined,
            timestamps=self._future_timestamps(series.index, options.horizon),
        )

    def _fit_diagnostics(self, name: str, result: Dict[str, Any]) -> Dict[str, Any]:
        diagnostics = {
            "mape": result["mape"],
            "residual_std": result["residual_std"],
            "params": result["params"],
            "converged": result["converged"],
        }
        if not result["converged"]:
            warning = ConvergenceWarning(
                component=name, message="optimiser did not report convergence"
            )
            diagnostics["convergence_warning"] = warning
            logging.warning(f"{self._class_name} - {warning}")
        return diagnostics

    @staticmethod
    def _future_timestamps(index: pd.Index, horizon: int) -> Optional[List[str]]:
        """Future instants when the history has a regular, inferable frequency."""
        if not isinstance(index, pd.DatetimeIndex) or len(index) < 3:
            return None
        freq = pd.infer_freq(index)
        if freq is None:
            return None
        future = pd.date_range(start=index[-1], periods=horizon + 1, freq=freq)[1:]
        return [ts.isoformat() for ts in future]
