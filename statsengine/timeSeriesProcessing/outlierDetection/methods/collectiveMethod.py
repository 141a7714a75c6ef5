"""
Collective anomalies: runs of consecutive same-direction deviations.
"""

from typing import Any, Dict, List

import numpy as np
import pandas as pd

from statsengine.helpers.utils import robust_scale, validate_required_locals
from statsengine.timeSeriesProcessing.outlierDetection.methods.baseOutlierDetectionMethod import (
    BaseOutlierDetectionMethod,
)

__version__ = "1.0.0"


class CollectiveMethod(BaseOutlierDetectionMethod):
    """
    Runs where the signed robust z-score stays beyond collective_threshold
    with the same sign for at least min_collective_length points. Every
    point of a run gets the run's mean |z| / threshold as its ratio.
    """

    DEFAULT_CONFIG = {
        **BaseOutlierDetectionMethod.DEFAULT_CONFIG,
        "min_data_length": 20,
    }

    def detect(self, data: pd.Series, context: Dict[str, Any]) -> Dict[str, Any]:
        validate_required_locals(["collective_threshold", "min_collective_length"], context)
        threshold = context["collective_threshold"] * context.get("threshold_factor", 1.0)
        min_length = int(context["min_collective_length"])

        values = data.to_numpy(dtype=float)
        ratios = np.zeros(len(values))
        scale = robust_scale(values)
        if scale <= 0:
            return {"ratios": ratios, "runs": []}

        z = (values - np.median(values)) / scale
        signs = np.where(z >= threshold, 1, np.where(z <= -threshold, -1, 0))

        runs: List[Dict[str, Any]] = []
        start = 0
        for i in range(1, len(signs) + 1):
            if i == len(signs) or signs[i] != signs[start]:
                if signs[start] != 0 and i - start >= min_length:
                    ratio = float(np.mean(np.abs(z[start:i])) / threshold)
                    ratios[start:i] = ratio
                    runs.append(
                        {"start": start, "end": i - 1, "direction": int(signs[start]), "ratio": ratio}
                    )
                start = i

        return {"ratios": ratios, "runs": runs}
