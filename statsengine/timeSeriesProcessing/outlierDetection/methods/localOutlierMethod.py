"""
Local Outlier Factor scoring.
"""

from typing import Any, Dict, Union

import pandas as pd
from sklearn.neighbors import LocalOutlierFactor

from statsengine.helpers.utils import estimate_n_neighbors, validate_required_locals
from statsengine.timeSeriesProcessing.outlierDetection.methods.baseOutlierDetectionMethod import (
    BaseOutlierDetectionMethod,
)

__version__ = "1.0.0"


class LocalOutlierMethod(BaseOutlierDetectionMethod):
    """LOF (-negative_outlier_factor_) against its (1 - contamination) quantile."""

    def detect(
        self, data: Union[pd.Series, pd.DataFrame], context: Dict[str, Any]
    ) -> Dict[str, Any]:
        validate_required_locals(["contamination"], context)
        values = data.to_numpy(dtype=float).reshape(len(data), -1)

        n_neighbors = context.get("n_neighbors") or estimate_n_neighbors(len(values))
        n_neighbors = max(1, min(n_neighbors, len(values) - 1))
        lof = LocalOutlierFactor(
            n_neighbors=n_neighbors,
            metric="manhattan" if len(values) < 50 else "minkowski",
        ).fit(values)
        scores = -lof.negative_outlier_factor_

        return {
            "ratios": self.quantile_ratio(
                scores, context["contamination"], context.get("threshold_factor", 1.0)
            ),
            "n_neighbors": n_neighbors,
        }
