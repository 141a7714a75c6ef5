"""
Contextual anomalies: deviations from the local (rolling) level.
"""

from typing import Any, Dict

import numpy as np
import pandas as pd

from statsengine.helpers.utils import MAD_SCALE, robust_scale, validate_required_locals
from statsengine.timeSeriesProcessing.outlierDetection.methods.baseOutlierDetectionMethod import (
    BaseOutlierDetectionMethod,
)

__version__ = "1.0.0"


class ContextualMethod(BaseOutlierDetectionMethod):
    """
    Robust z-score against a centred rolling median and rolling MAD.

    Windows without local dispersion fall back to the global robust scale.
    """

    DEFAULT_CONFIG = {
        **BaseOutlierDetectionMethod.DEFAULT_CONFIG,
        "min_data_length": 20,
    }

    def detect(self, data: pd.Series, context: Dict[str, Any]) -> Dict[str, Any]:
        validate_required_locals(["window_size", "zscore_threshold"], context)
        window = int(context["window_size"])
        threshold = context["zscore_threshold"] * context.get("threshold_factor", 1.0)

        values = pd.Series(data.to_numpy(dtype=float))
        rolling = values.rolling(window, center=True, min_periods=max(3, window // 2))
        local_median = rolling.median()
        local_mad = rolling.apply(
            lambda w: np.median(np.abs(w - np.median(w))), raw=True
        ) * MAD_SCALE

        global_scale = robust_scale(values.to_numpy())
        if global_scale <= 0:
            return {"ratios": np.zeros(len(values)), "window_size": window}

        scale = local_mad.where(local_mad > self.NUMERICAL_EPSILON, global_scale)
        scale = scale.fillna(global_scale)
        local_median = local_median.fillna(values.median())

        ratios = (values - local_median).abs() / scale / threshold
        return {"ratios": ratios.to_numpy(), "window_size": window}
