"""
Base class for all outlier detection methods.

Every method turns its raw outlier score into a ratio "score / flagging
threshold", so ratios from different methods share one scale: a point is
an anomaly when its ratio is >= 1, and the ratio size drives severity.
"""

from abc import abstractmethod
from typing import Any, Dict, Optional, Union

import numpy as np
import pandas as pd

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.baseModule.baseMethod import BaseTimeSeriesMethod

__version__ = "1.1.0"


class BaseOutlierDetectionMethod(BaseTimeSeriesMethod):
    """
    Base class for all outlier detection methods.

    Extends BaseTimeSeriesMethod with ratio normalisation and the
    sensitivity factor applied to every threshold.
    """

    DEFAULT_CONFIG = {
        **BaseTimeSeriesMethod.DEFAULT_CONFIG,
        "min_data_length": 3,
        "max_ratio": 1e6,
    }
    NUMERICAL_EPSILON = 1e-10

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        merged_config = {**self.DEFAULT_CONFIG, **(config or {})}
        super().__init__(merged_config)

        validate_required_locals(["min_data_length", "max_ratio"], self.config)

    def process(
        self, data: Union[pd.Series, pd.DataFrame], context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Score every observation.

        Args:
            data: Series (time series passes) or DataFrame (M x d)
            context: {"threshold_factor", "contamination", ...}

        Returns:
            Standard response, result = {"ratios": ndarray of length M, ...}
        """
        context_params = self.extract_context_parameters(context)
        self.log_analysis_start(data, context_params)

        try:
            validation = self.validate_input(data, self.config["min_data_length"])
            if validation["status"] == "error":
                return validation

            result = self.detect(data, context_params)
            ratios = np.nan_to_num(
                np.asarray(result["ratios"], dtype=float),
                nan=0.0,
                posinf=self.config["max_ratio"],
            )
            result["ratios"] = np.clip(ratios, 0.0, self.config["max_ratio"])

            response = self.create_success_response(
                result,
                data,
                context_params,
                {"n_flagged": int((result["ratios"] >= 1.0).sum())},
            )
            self.log_analysis_complete(response)
            return response

        except Exception as e:
            return self.handle_error(e, f"{self.name} detection")

    @abstractmethod
    def detect(
        self, data: Union[pd.Series, pd.DataFrame], context: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Return {"ratios": per-observation score / threshold, ...}."""
        pass

    def quantile_ratio(self, scores: np.ndarray, contamination: float, factor: float) -> np.ndarray:
        """Ratios against the (1 - contamination) quantile of the scores."""
        threshold = float(np.quantile(scores, 1.0 - contamination)) * factor
        if threshold <= self.NUMERICAL_EPSILON:
            return np.zeros(len(scores))
        return scores / threshold
