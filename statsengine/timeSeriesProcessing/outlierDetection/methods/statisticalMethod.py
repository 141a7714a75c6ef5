"""
Statistical outlier scoring: robust z-score and Tukey fences.
"""

from typing import Any, Dict, Union

import numpy as np
import pandas as pd

from statsengine.helpers.utils import robust_scale, validate_required_locals
from statsengine.timeSeriesProcessing.outlierDetection.methods.baseOutlierDetectionMethod import (
    BaseOutlierDetectionMethod,
)

__version__ = "1.0.0"


class StatisticalMethod(BaseOutlierDetectionMethod):
    """
    Per column: robust z = |x - median| / robust scale, compared with
    zscore_threshold; Tukey excess beyond [Q1, Q3], compared with
    iqr_multiplier * IQR. The ratio of a point is the larger of both,
    maximised over columns.
    """

    def detect(
        self, data: Union[pd.Series, pd.DataFrame], context: Dict[str, Any]
    ) -> Dict[str, Any]:
        validate_required_locals(["zscore_threshold", "iqr_multiplier"], context)
        factor = context.get("threshold_factor", 1.0)
        z_threshold = context["zscore_threshold"] * factor
        iqr_multiplier = context["iqr_multiplier"] * factor

        frame = data.to_frame() if isinstance(data, pd.Series) else data
        ratios = np.zeros(len(frame))

        for column in frame.columns:
            values = frame[column].to_numpy(dtype=float)

            scale = robust_scale(values)
            if scale > 0:
                z_ratio = np.abs(values - np.median(values)) / scale / z_threshold
                ratios = np.maximum(ratios, z_ratio)

            q1, q3 = np.percentile(values, [25, 75])
            iqr = q3 - q1
            if iqr > self.NUMERICAL_EPSILON:
                excess = np.maximum(q1 - values, values - q3).clip(min=0.0)
                ratios = np.maximum(ratios, excess / (iqr_multiplier * iqr))

        return {"ratios": ratios}
