"""
Periodic pattern detection orchestrator.

Ranked Merge strategy: the selected method proposes candidate periods on
the clipped, detrended residual; candidates are classified by calendar
meaning, given a phase, ranked and deduplicated.
"""

import logging
from typing import Any, ClassVar, Dict, List, Optional

import numpy as np
import pandas as pd
from scipy import signal

from statsengine.helpers.configs import PatternMethod, PatternOptions, PatternType
from statsengine.helpers.entities import Pattern
from statsengine.helpers.errors import InsufficientDataError
from statsengine.helpers.utils import infer_interval_days, interval_to_days, robust_clip
from statsengine.timeSeriesProcessing.baseModule.baseAlgorithm import BaseAlgorithm
from statsengine.timeSeriesProcessing.periodicity.methods.acfMethod import ACFMethod
from statsengine.timeSeriesProcessing.periodicity.methods.decompositionMethod import (
    DecompositionMethod,
)
from statsengine.timeSeriesProcessing.periodicity.methods.spectralMethod import (
    SpectralMethod,
)
from statsengine.timeSeriesProcessing.validation.seriesValidator import SeriesValidator

__version__ = "2.1.0"

# Calendar length of each named pattern type, in days
CALENDAR_PERIOD_DAYS = {
    PatternType.WEEKLY: 7.0,
    PatternType.MONTHLY: 30.44,
    PatternType.YEARLY: 365.25,
}
CALENDAR_TOLERANCE = 0.10

# Residual below this share of the original scale counts as "no oscillation"
NEGLIGIBLE_RESIDUAL = 1e-10


class PatternDetector(BaseAlgorithm):
    """
    Detects recurring periodic structure in a univariate series.

    STRATEGY: Ranked Merge
    METHODS: autocorrelation, spectral, decomposition (STL)
    """

    AVAILABLE_METHODS: ClassVar[Dict[PatternMethod, type]] = {
        PatternMethod.AUTOCORRELATION: ACFMethod,
        PatternMethod.SPECTRAL: SpectralMethod,
        PatternMethod.DECOMPOSITION: DecompositionMethod,
    }
    MIN_DATA_LENGTH: ClassVar[int] = 20

    def __init__(self, config: Optional[Dict[str, Dict[str, Any]]] = None):
        self.config = config or {}
        self._methods = {}
        self._class_name = self.__class__.__name__
        self.validator = SeriesValidator(self.MIN_DATA_LENGTH, name="patterns")

        logging.info(f"{self._class_name} initialized: {len(self.AVAILABLE_METHODS)} methods")

    @staticmethod
    def preprocess(
        data: pd.Series, remove_outliers: bool = True, outlier_threshold: float = 3.5
    ) -> pd.Series:
        """
        Robust outlier clipping shared with VolatilityAnalyzer.

        Single-point spikes are clipped to median +/- threshold * MAD scale so
        they cannot masquerade as periodic structure.
        """
        if not remove_outliers:
            return data.astype(float)
        clipped, _ = robust_clip(data.astype(float), outlier_threshold)
        return clipped

    def run(self, data: Any, options: Any = None) -> List[Pattern]:
        """
        Detect periodic patterns.

        Returns:
            Patterns ordered by strength descending (ties: shorter period first),
            empty when nothing clears min_strength

        Raises:
            ValidationError: Fewer than 20 points or invalid values
            InsufficientDataError: The selected method could not run
        """
        options = PatternOptions.coerce(options)
        series = self.validator.validate(data)

        interval_days = infer_interval_days(series.index) or interval_to_days(options.interval)

        residual = self._residual(series, options)
        if residual is None:
            logging.info(f"{self._class_name} - no oscillation left after detrending")
            return []

        context = {
            "min_strength": options.min_strength,
            "max_period": len(series) // 2,
            "candidate_periods": self._calendar_periods(options, interval_days, len(series)),
        }

        response, error = self._process_single_method(options.method, residual, context)
        if error:
            raise InsufficientDataError(
                f"{options.method.value} pattern detection failed: {error['error']}"
            )

        patterns = self._build_patterns(
            response["result"]["candidates"], residual, options, interval_days
        )

        logging.info(
            f"{self._class_name} completed: method={options.method.value}, "
            f"patterns={len(patterns)}"
        )
        return patterns

    def dominant_period(self, series: pd.Series, min_strength: float = 0.1) -> Optional[int]:
        """Strongest autocorrelation period of an already validated series, or None."""
        if len(series) < self.MIN_DATA_LENGTH:
            return None
        patterns = self.run(
            series,
            PatternOptions(method=PatternMethod.AUTOCORRELATION, min_strength=min_strength),
        )
        return int(round(patterns[0].period)) if patterns else None

    def _residual(self, series: pd.Series, options: PatternOptions) -> Optional[pd.Series]:
        cleaned = self.preprocess(series, options.remove_outliers, options.outlier_threshold)
        detrended = signal.detrend(cleaned.to_numpy(), type="linear")

        scale = max(1.0, float(np.std(series.to_numpy())), float(np.abs(series).max()))
        if float(np.std(detrended)) <= NEGLIGIBLE_RESIDUAL * scale:
            return None
        return pd.Series(detrended, index=series.index)

    def _calendar_periods(
        self, options: PatternOptions, interval_days: float, length: int
    ) -> List[int]:
        periods = []
        for pattern_type in options.pattern_types:
            days = CALENDAR_PERIOD_DAYS.get(pattern_type)
            if days is None:
                continue
            steps = int(round(days / interval_days))
            if 2 <= steps <= length // 2:
                periods.append(steps)
        return periods

    def _build_patterns(
        self,
        candidates: List[Dict[str, Any]],
        residual: pd.Series,
        options: PatternOptions,
        interval_days: float,
    ) -> List[Pattern]:
        patterns = []
        for candidate in candidates:
            period = float(candidate["period"])
            strength = float(np.clip(candidate["strength"], 0.0, 1.0))
            if period <= 1 or strength < options.min_strength:
                continue

            pattern_type = self.classify_period(period * interval_days)
            if pattern_type not in options.pattern_types:
                continue

            patterns.append(
                Pattern(
                    type=pattern_type,
                    period=period,
                    strength=strength,
                    phase=self._phase(residual.to_numpy(), period),
                    method=options.method,
                    period_days=period * interval_days,
                    amplitude=candidate.get("amplitude"),
                )
            )

        patterns.sort(key=lambda p: (-p.strength, p.period))

        unique = []
        for pattern in patterns:
            if not any(self._same_period(pattern.period, kept.period) for kept in unique):
                unique.append(pattern)
        return unique[: options.max_patterns]

    @staticmethod
    def classify_period(period_days: float) -> PatternType:
        """Calendar meaning of a period length in days (10% tolerance)."""
        for pattern_type, days in CALENDAR_PERIOD_DAYS.items():
            if abs(period_days - days) / days <= CALENDAR_TOLERANCE:
                return pattern_type
        return PatternType.CUSTOM

    @staticmethod
    def _phase(values: np.ndarray, period: float) -> int:
        """Offset of the maximum of the average cycle profile, in [0, period)."""
        steps = max(2, int(round(period)))
        positions = np.arange(len(values)) % steps
        profile = np.array([values[positions == p].mean() for p in range(steps)])
        phase = int(np.argmax(profile))
        return min(phase, int(np.ceil(period)) - 1)

    @staticmethod
    def _same_period(first: float, second: float) -> bool:
        """Adaptive similarity threshold based on period magnitude."""
        period = max(first, second)
        if period < 10:
            threshold = 0.05
        elif period < 100:
            threshold = 0.08
        else:
            threshold = 0.10
        return abs(first - second) / period <= threshold

    def __str__(self) -> str:
        return f"{self._class_name}(methods={len(self.AVAILABLE_METHODS)})"
