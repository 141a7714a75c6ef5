"""
Periodicity detection method based on autocorrelation function.
"""

from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import acf

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.periodicity.methods.basePeriodicityMethod import (
    BasePeriodicityMethod,
)

__version__ = "1.1.0"


class ACFMethod(BasePeriodicityMethod):
    """
    Periodicity detection method based on autocorrelation function (ACF).

    Candidates are local maxima of the ACF; strength is the ACF value at the
    peak lag. Peaks at multiples of a stronger period are harmonics of it and
    are suppressed.
    """

    DEFAULT_CONFIG = {
        **BasePeriodicityMethod.DEFAULT_CONFIG,
        "use_fft": True,
        "harmonic_tolerance": 0.05,
        "max_acf_values_returned": 50,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        merged_config = {**self.DEFAULT_CONFIG, **(config or {})}
        super().__init__(merged_config)

        validate_required_locals(["use_fft", "harmonic_tolerance"], self.config)

    def __str__(self) -> str:
        """Standard string representation for logging."""
        return (
            f"ACFMethod(use_fft={self.config['use_fft']}, "
            f"min_period={self.min_period})"
        )

    def process(
        self, data: pd.Series, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Detect periodicity using ACF.

        Args:
            data: Preprocessed residual series
            context: {"min_strength", "max_period"}

        Returns:
            Standardized result with candidate periods
        """
        context_params = self.extract_context_parameters(context)
        self.log_analysis_start(data, context_params)

        try:
            validation = self.validate_input(data, self.config["min_data_length"])
            if validation["status"] == "error":
                return validation

            max_period = self.max_period_for(len(data), context_params)
            acf_values = self.compute_acf(data.to_numpy(), max_period)

            candidates = self.find_acf_peaks(
                acf_values, context_params.get("min_strength", 0.0), max_period
            )
            kept, suppressed = self._suppress_harmonics(candidates)

            result = self.prepare_result(
                kept,
                data,
                context_params,
                additional_data={
                    "acf_values": [
                        float(v)
                        for v in acf_values[: self.config["max_acf_values_returned"]]
                    ],
                    "n_lags_computed": len(acf_values) - 1,
                    "harmonics_suppressed": suppressed,
                },
            )
            self.log_analysis_complete(result)
            return result

        except Exception as e:
            return self.handle_error(e, "ACF periodicity detection")

    def compute_acf(self, values: np.ndarray, max_period: int) -> np.ndarray:
        """ACF up to max_period + 1 so a peak at max_period can be seen."""
        n_lags = min(len(values) - 1, max_period + 1)
        return acf(values, nlags=n_lags, fft=self.config["use_fft"], missing="raise")

    def _suppress_harmonics(self, candidates: List[Dict[str, Any]]):
        """Drop candidates at integer multiples of a stronger, shorter period."""
        tolerance = self.config["harmonic_tolerance"]
        kept, suppressed = [], []
        for candidate in sorted(candidates, key=lambda c: (-c["strength"], c["period"])):
            period = candidate["period"]
            is_harmonic = False
            for base in kept:
                ratio = period / base["period"]
                multiple = round(ratio)
                if multiple >= 2 and abs(ratio - multiple) <= tolerance * multiple:
                    is_harmonic = True
                    break
            if is_harmonic:
                suppressed.append(period)
            else:
                kept.append(candidate)
        return kept, suppressed
