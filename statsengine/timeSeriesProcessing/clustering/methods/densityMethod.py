"""
Density clustering (DBSCAN) with eps chosen from the k-distance curve.
"""

from typing import Any, Dict

import numpy as np
from sklearn.cluster import DBSCAN
from sklearn.neighbors import NearestNeighbors

from statsengine.helpers.utils import estimate_n_neighbors
from statsengine.timeSeriesProcessing.clustering.methods.baseClusteringMethod import (
    BaseClusteringMethod,
)

__version__ = "1.0.0"


class DensityMethod(BaseClusteringMethod):
    """
    DBSCAN. Without explicit eps, eps is the knee of the sorted k-distance
    curve (point farthest from the chord between its ends). Noise is
    labelled -1; ClusteringAnalyzer reattaches it.
    """

    DEFAULT_CONFIG = {
        **BaseClusteringMethod.DEFAULT_CONFIG,
        "min_eps": 1e-8,
    }

    def _fit(self, values: np.ndarray, context_params: Dict[str, Any]) -> Dict[str, Any]:
        n_rows = len(values)
        min_samples = context_params.get("min_samples") or min(
            n_rows, max(2, estimate_n_neighbors(n_rows))
        )
        eps = context_params.get("eps") or self.estimate_eps(values, min_samples)

        labels = DBSCAN(eps=eps, min_samples=min_samples).fit_predict(values)
        return {
            "labels": labels,
            "n_iter": 0,
            "converged": True,
            "eps": float(eps),
            "min_samples": int(min_samples),
        }

    def estimate_eps(self, values: np.ndarray, min_samples: int) -> float:
        n_neighbors = max(1, min(min_samples, len(values)))
        distances, _ = NearestNeighbors(n_neighbors=n_neighbors).fit(values).kneighbors(values)
        k_distances = np.sort(distances[:, -1])

        if len(k_distances) < 3 or k_distances[-1] <= k_distances[0]:
            eps = float(np.median(k_distances))
        else:
            x = np.linspace(0.0, 1.0, len(k_distances))
            y = (k_distances - k_distances[0]) / (k_distances[-1] - k_distances[0])
            knee = int(np.argmax(x - y))
            eps = float(k_distances[knee])

        return max(eps, self.config["min_eps"])
