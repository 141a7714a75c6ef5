"""
Periodicity detection method based on STL decomposition.
"""

from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from statsmodels.tsa.seasonal import STL
from statsmodels.tsa.stattools import acf

from statsengine.helpers.utils import VARIANCE_FLOOR, validate_required_locals
from statsengine.timeSeriesProcessing.periodicity.methods.basePeriodicityMethod import (
    BasePeriodicityMethod,
)

__version__ = "1.0.0"


class DecompositionMethod(BasePeriodicityMethod):
    """
    Seasonal strength per candidate period via STL.

    Candidates: ACF local maxima plus the calendar periods passed in
    context["candidate_periods"]. Strength is
    max(0, 1 - var(resid) / var(seasonal + resid)).
    """

    DEFAULT_CONFIG = {
        **BasePeriodicityMethod.DEFAULT_CONFIG,
        "robust": True,
        "max_candidates": 8,
        "min_cycles": 3,
        "harmonic_tolerance": 0.05,
        "harmonic_strength_ratio": 0.9,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        merged_config = {**self.DEFAULT_CONFIG, **(config or {})}
        super().__init__(merged_config)

        validate_required_locals(["robust", "max_candidates"], self.config)

    def __str__(self) -> str:
        return (
            f"DecompositionMethod(robust={self.config['robust']}, "
            f"max_candidates={self.config['max_candidates']})"
        )

    def process(
        self, data: pd.Series, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        context_params = self.extract_context_parameters(context)
        self.log_analysis_start(data, context_params)

        try:
            validation = self.validate_input(data, self.config["min_data_length"])
            if validation["status"] == "error":
                return validation

            values = data.to_numpy()
            max_period = min(
                self.max_period_for(len(values), context_params),
                len(values) // self.config["min_cycles"],
            )
            periods = self._candidate_periods(values, max_period, context_params)

            candidates, failed = [], {}
            for period in periods:
                try:
                    candidates.append(self._seasonal_strength(values, period))
                except (ValueError, np.linalg.LinAlgError) as e:
                    failed[period] = str(e)

            min_strength = context_params.get("min_strength", 0.0)
            candidates = [c for c in candidates if c["strength"] >= min_strength]
            candidates, suppressed = self._drop_multiples(candidates)

            result = self.prepare_result(
                candidates,
                data,
                context_params,
                {
                    "periods_tested": periods,
                    "failed_periods": failed,
                    "harmonics_suppressed": suppressed,
                },
            )
            self.log_analysis_complete(result)
            return result

        except Exception as e:
            return self.handle_error(e, "STL periodicity detection")

    def _candidate_periods(
        self, values: np.ndarray, max_period: int, context_params: Dict[str, Any]
    ) -> List[int]:
        acf_values = acf(values, nlags=min(len(values) - 1, max_period + 1), fft=True)
        acf_peaks = sorted(
            self.find_acf_peaks(acf_values, 0.0, max_period),
            key=lambda c: -c["strength"],
        )

        periods = []
        for period in list(context_params.get("candidate_periods", [])) + [
            int(c["period"]) for c in acf_peaks
        ]:
            period = int(period)
            if self.min_period <= period <= max_period and period not in periods:
                periods.append(period)
        return periods[: self.config["max_candidates"]]

    def _seasonal_strength(self, values: np.ndarray, period: int) -> Dict[str, Any]:
        fit = STL(values, period=period, robust=self.config["robust"]).fit()

        seasonal = np.asarray(fit.seasonal)
        resid = np.asarray(fit.resid)
        denominator = np.var(seasonal + resid)
        if denominator <= VARIANCE_FLOOR:
            strength = 0.0
        else:
            strength = max(0.0, 1.0 - np.var(resid) / denominator)

        return {
            "period": float(period),
            "strength": float(min(1.0, strength)),
            "amplitude": float((seasonal.max() - seasonal.min()) / 2.0),
        }

    def _drop_multiples(self, candidates: List[Dict[str, Any]]):
        """
        A period that is a multiple of a shorter, nearly as strong period
        describes the same cycle; keep the shorter one.
        """
        tolerance = self.config["harmonic_tolerance"]
        ratio = self.config["harmonic_strength_ratio"]
        kept, suppressed = [], []
        for candidate in sorted(candidates, key=lambda c: c["period"]):
            is_multiple = False
            for base in kept:
                multiple = round(candidate["period"] / base["period"])
                if (
                    multiple >= 2
                    and abs(candidate["period"] / base["period"] - multiple) <= tolerance * multiple
                    and base["strength"] >= ratio * candidate["strength"]
                ):
                    is_multiple = True
                    break
            if is_multiple:
                suppressed.append(candidate["period"])
            else:
                kept.append(candidate)
        return kept, suppressed
