"""
Base class for periodicity detection methods.
"""

from abc import abstractmethod
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from scipy import signal

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.baseModule.baseMethod import BaseTimeSeriesMethod

__version__ = "1.1.0"


class BasePeriodicityMethod(BaseTimeSeriesMethod):
    """
    Base class for periodicity detection methods.

    Methods receive the preprocessed (clipped, detrended) residual and
    return candidates as {"period", "strength", ...} dicts. Classification,
    phase and ranking stay with PatternDetector.
    """

    DEFAULT_CONFIG = {
        **BaseTimeSeriesMethod.DEFAULT_CONFIG,
        "min_period": 2,
        "max_lags_ratio": 0.5,
        "min_data_length": 6,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize periodicity detection method.

        Raises:
            ValueError: If configuration is incorrect
        """
        merged_config = {**self.DEFAULT_CONFIG, **(config or {})}
        super().__init__(merged_config)

        validate_required_locals(["min_period", "max_lags_ratio"], self.config)

        self.min_period = self.config["min_period"]
        if self.min_period < 2:
            raise ValueError(f"min_period must be >= 2, got {self.min_period}")

    def __str__(self) -> str:
        """Standard string representation for periodicity logging."""
        return f"{self.name}(min_period={self.min_period})"

    @abstractmethod
    def process(
        self, data: pd.Series, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Detect candidate periods in the residual series.

        Returns:
            Standard response, result = {"candidates": [{"period", "strength"}, ...]}
        """
        pass

    def max_period_for(self, data_length: int, context_params: Dict[str, Any]) -> int:
        """Longest period worth testing: at least two full cycles in the data."""
        max_period = int(self.config["max_lags_ratio"] * data_length)
        if context_params.get("max_period"):
            max_period = min(max_period, int(context_params["max_period"]))
        return max(self.min_period, max_period)

    def find_acf_peaks(
        self, acf_values: np.ndarray, min_height: float, max_period: int
    ) -> List[Dict[str, Any]]:
        """
        Local maxima of an ACF curve as period candidates.

        Lag 0 and lags outside [min_period, max_period] are ignored.
        """
        peaks, properties = signal.find_peaks(acf_values, height=min_height)
        candidates = []
        for lag, height in zip(peaks, properties["peak_heights"]):
            if self.min_period <= lag <= max_period:
                candidates.append(
                    {"period": float(lag), "strength": float(min(1.0, height))}
                )
        return candidates

    def prepare_result(
        self,
        candidates: List[Dict[str, Any]],
        data: pd.Series,
        context_params: Dict[str, Any],
        additional_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Standard success response with candidates sorted by strength."""
        ordered = sorted(candidates, key=lambda c: (-c["strength"], c["period"]))
        result = {"candidates": ordered, "n_candidates": len(ordered)}
        if additional_data:
            result.update(additional_data)
        return self.create_success_response(result, data, context_params)
