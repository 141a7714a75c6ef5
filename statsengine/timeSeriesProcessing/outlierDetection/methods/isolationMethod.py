"""
Isolation Forest outlier scoring.
"""

from typing import Any, Dict, Union

import pandas as pd
from sklearn.ensemble import IsolationForest

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.outlierDetection.methods.baseOutlierDetectionMethod import (
    BaseOutlierDetectionMethod,
)

__version__ = "1.0.0"


class IsolationMethod(BaseOutlierDetectionMethod):
    """Anomaly score -score_samples against its (1 - contamination) quantile."""

    DEFAULT_CONFIG = {
        **BaseOutlierDetectionMethod.DEFAULT_CONFIG,
        "n_estimators": 100,
        "max_samples": 256,
    }

    def __str__(self) -> str:
        return f"IsolationMethod(n_estimators={self.config['n_estimators']})"

    def detect(
        self, data: Union[pd.Series, pd.DataFrame], context: Dict[str, Any]
    ) -> Dict[str, Any]:
        validate_required_locals(["contamination"], context)
        values = data.to_numpy(dtype=float).reshape(len(data), -1)

        forest = IsolationForest(
            n_estimators=self.config["n_estimators"],
            max_samples=min(self.config["max_samples"], len(values)),
            random_state=context.get("random_state"),
        ).fit(values)
        scores = -forest.score_samples(values)

        return {
            "ratios": self.quantile_ratio(
                scores, context["contamination"], context.get("threshold_factor", 1.0)
            ),
        }
