"""
Periodicity detection method based on spectral analysis.
"""

from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from scipy import signal

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.periodicity.methods.basePeriodicityMethod import (
    BasePeriodicityMethod,
)

__version__ = "1.1.0"


class SpectralMethod(BasePeriodicityMethod):
    """
    Periodicity detection method based on the periodogram.

    Strength of a peak is its share of the total non-DC power, summed over
    the peak bin and its immediate neighbours (spectral leakage).
    """

    DEFAULT_CONFIG = {
        **BasePeriodicityMethod.DEFAULT_CONFIG,
        "window_type": "boxcar",
        "neighbour_bins": 1,
        "scaling": "spectrum",
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        merged_config = {**self.DEFAULT_CONFIG, **(config or {})}
        super().__init__(merged_config)

        validate_required_locals(["window_type", "neighbour_bins", "scaling"], self.config)

    def __str__(self) -> str:
        """Standard string representation for logging."""
        return (
            f"SpectralMethod(window={self.config['window_type']}, "
            f"neighbour_bins={self.config['neighbour_bins']})"
        )

    def process(
        self, data: pd.Series, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Detect periodicity using the periodogram.

        Args:
            data: Preprocessed residual series
            context: {"min_strength", "max_period"}
        """
        context_params = self.extract_context_parameters(context)
        self.log_analysis_start(data, context_params)

        try:
            validation = self.validate_input(data, self.config["min_data_length"])
            if validation["status"] == "error":
                return validation

            freqs, power = signal.periodogram(
                data.to_numpy(),
                window=self.config["window_type"],
                detrend=False,
                scaling=self.config["scaling"],
            )

            total_power = float(np.sum(power[1:]))
            if total_power <= 0:
                return self.prepare_result([], data, context_params, {"total_power": 0.0})

            max_period = self.max_period_for(len(data), context_params)
            min_strength = context_params.get("min_strength", 0.0)
            width = self.config["neighbour_bins"]

            peaks, _ = signal.find_peaks(power)
            # A maximum at the last bin (Nyquist) is not reported by find_peaks
            if len(power) > 2 and power[-1] > power[-2]:
                peaks = np.append(peaks, len(power) - 1)

            candidates = []
            for idx in peaks:
                if idx == 0 or freqs[idx] <= 0:
                    continue
                period = 1.0 / freqs[idx]
                if not (self.min_period <= period <= max_period):
                    continue
                lo, hi = max(1, idx - width), min(len(power), idx + width + 1)
                strength = float(np.sum(power[lo:hi]) / total_power)
                if strength >= min_strength:
                    candidates.append(
                        {
                            "period": float(period),
                            "strength": min(1.0, strength),
                            "frequency": float(freqs[idx]),
                        }
                    )

            result = self.prepare_result(
                candidates, data, context_params, {"total_power": total_power}
            )
            self.log_analysis_complete(result)
            return result

        except Exception as e:
            return self.handle_error(e, "spectral periodicity detection")
