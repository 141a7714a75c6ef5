"""
Anomaly detection orchestrator.

Ratio Averaging strategy: each enabled method scores every observation as
"score / flagging threshold"; the ensemble ratio is the mean over the
methods that ran. Series input additionally gets contextual (local level)
and collective (sustained run) passes.
"""

import logging
from typing import Any, ClassVar, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from statsengine.helpers.configs import AnomalyMethod, AnomalyOptions
from statsengine.helpers.entities import AnomalyRecord, Severity, TimeSeries
from statsengine.helpers.errors import InsufficientDataError
from statsengine.timeSeriesProcessing.baseModule.baseAlgorithm import BaseAlgorithm
from statsengine.timeSeriesProcessing.outlierDetection.methods.collectiveMethod import (
    CollectiveMethod,
)
from statsengine.timeSeriesProcessing.outlierDetection.methods.contextualMethod import (
    ContextualMethod,
)
from statsengine.timeSeriesProcessing.outlierDetection.methods.isolationMethod import (
    IsolationMethod,
)
from statsengine.timeSeriesProcessing.outlierDetection.methods.localOutlierMethod import (
    LocalOutlierMethod,
)
from statsengine.timeSeriesProcessing.outlierDetection.methods.statisticalMethod import (
    StatisticalMethod,
)
from statsengine.timeSeriesProcessing.validation.seriesValidator import SeriesValidator

__version__ = "1.0.0"

ENSEMBLE_MEMBERS = (AnomalyMethod.STATISTICAL, AnomalyMethod.ISOLATION, AnomalyMethod.DENSITY)

# Minimum series length for the contextual and collective passes
TEMPORAL_MIN_LENGTH = 20


class AnomalyDetector(BaseAlgorithm):
    """
    Flags unusual observations in a series or a feature matrix.

    STRATEGY: Ratio Averaging
    METHODS: isolation, density (LOF), statistical, ensemble
    """

    AVAILABLE_METHODS: ClassVar[Dict[AnomalyMethod, type]] = {
        AnomalyMethod.ISOLATION: IsolationMethod,
        AnomalyMethod.DENSITY: LocalOutlierMethod,
        AnomalyMethod.STATISTICAL: StatisticalMethod,
    }
    MIN_DATA_LENGTH: ClassVar[int] = 3

    def __init__(self, config: Optional[Dict[str, Dict[str, Any]]] = None):
        self.config = config or {}
        self._methods = {}
        self._class_name = self.__class__.__name__
        self.validator = SeriesValidator(self.MIN_DATA_LENGTH, name="anomalies")
        self.contextual = ContextualMethod(self.config.get("contextual"))
        self.collective = CollectiveMethod(self.config.get("collective"))

        logging.info(f"{self._class_name} initialized: {len(self.AVAILABLE_METHODS)} methods")

    def run(self, data: Any, options: Any = None) -> List[AnomalyRecord]:
        """
        Detect anomalies.

        Args:
            data: 1-D series (TimeSeries, pd.Series, array, list) or M x d matrix

        Returns:
            Records sorted by score descending; empty for input without dispersion

        Raises:
            ValidationError: Fewer than 3 observations or invalid values
            InsufficientDataError: No scoring method could run
        """
        options = AnomalyOptions.coerce(options)
        series, frame = self._prepare(data)

        if not (frame.std(ddof=0).to_numpy() > 0).any():
            logging.info(f"{self._class_name} - input has no dispersion, nothing to flag")
            return []

        context = {
            "contamination": options.contamination,
            "threshold_factor": options.sensitivity.threshold_factor,
            "random_state": options.random_state,
            "zscore_threshold": options.zscore_threshold,
            "iqr_multiplier": options.iqr_multiplier,
            "collective_threshold": options.collective_threshold,
            "min_collective_length": options.min_collective_length,
        }

        ratios, method_name, failed = self._score(frame, options.method, context)

        records: Dict[int, AnomalyRecord] = {}
        for idx in np.where(ratios >= 1.0)[0]:
            records[int(idx)] = self._record(int(idx), float(ratios[idx]), method_name, frame, series)

        if series is not None and len(series) >= TEMPORAL_MIN_LENGTH:
            window = options.window_size or max(3, min(30, len(series) // 4))
            temporal_context = {**context, "window_size": min(window, len(series))}
            if options.include_contextual:
                self._merge_temporal(records, self.contextual, "contextual", series, frame, temporal_context)
            if options.include_collective:
                self._merge_temporal(records, self.collective, "collective", series, frame, temporal_context)

        result = sorted(records.values(), key=lambda r: (-r.score, r.index))
        logging.info(
            f"{self._class_name} completed: method={options.method.value}, "
            f"anomalies={len(result)}, failed={failed or None}"
        )
        return result

    def _prepare(self, data: Any) -> Tuple[Optional[pd.Series], pd.DataFrame]:
        """Validated series (None for matrix input) and M x d frame."""
        if isinstance(data, (TimeSeries, pd.Series)):
            series = self.validator.validate(data)
            return series, series.to_frame(name="value").reset_index(drop=True)

        if isinstance(data, pd.DataFrame):
            return None, self.validator.validate_matrix(data)

        if isinstance(data, (list, tuple)) and data and all(
            isinstance(row, (list, tuple, np.ndarray)) for row in data
        ):
            return None, self.validator.validate_matrix(data)

        if isinstance(data, np.ndarray) and data.ndim == 2:
            return None, self.validator.validate_matrix(data)

        series = self.validator.validate(data)
        return series, series.to_frame(name="value").reset_index(drop=True)

    def _score(
        self, frame: pd.DataFrame, method: AnomalyMethod, context: Dict[str, Any]
    ) -> Tuple[np.ndarray, str, Dict[str, str]]:
        members = ENSEMBLE_MEMBERS if method == AnomalyMethod.ENSEMBLE else (method,)
        collected, failed = [], {}

        for member in members:
            response, error = self._process_single_method(member, frame, context)
            if error:
                failed[member.value] = error["error"]
            else:
                collected.append(response["result"]["ratios"])

        if not collected:
            raise InsufficientDataError(f"No anomaly method could run: {failed}")
        return np.mean(collected, axis=0), method.value, failed

    def _merge_temporal(
        self,
        records: Dict[int, AnomalyRecord],
        method,
        kind: str,
        series: pd.Series,
        frame: pd.DataFrame,
        context: Dict[str, Any],
    ) -> None:
        response = method.process(series.reset_index(drop=True), context)
        if response["status"] == "error":
            logging.warning(f"{self._class_name} - {kind} pass skipped: {response.get('message')}")
            return

        ratios = response["result"]["ratios"]
        for idx in np.where(ratios >= 1.0)[0]:
            idx = int(idx)
            ratio = float(ratios[idx])
            record = records.get(idx)
            if record is None:
                record = self._record(idx, ratio, kind, frame, series)
                records[idx] = record
            elif ratio > record.score:
                record.score = ratio
                record.severity = Severity.from_ratio(ratio)
            setattr(record, f"is_{kind}", True)

    @staticmethod
    def _record(
        idx: int, ratio: float, method: str, frame: pd.DataFrame, series: Optional[pd.Series]
    ) -> AnomalyRecord:
        row = frame.iloc[idx].to_numpy(dtype=float)
        timestamp = None
        if series is not None and isinstance(series.index, pd.DatetimeIndex):
            timestamp = series.index[idx].isoformat()
        return AnomalyRecord(
            index=idx,
            score=ratio,
            severity=Severity.from_ratio(ratio),
            method=method,
            value=float(row[0]) if len(row) == 1 else row.tolist(),
            timestamp=timestamp,
        )
