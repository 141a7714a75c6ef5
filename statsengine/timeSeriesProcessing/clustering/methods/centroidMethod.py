"""
Centroid clustering (k-means).
"""

from typing import Any, Dict

import numpy as np
from sklearn.cluster import KMeans

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.clustering.methods.baseClusteringMethod import (
    BaseClusteringMethod,
)

__version__ = "1.0.0"


class CentroidMethod(BaseClusteringMethod):
    DEFAULT_CONFIG = {
        **BaseClusteringMethod.DEFAULT_CONFIG,
        "n_init": 10,
        "tol": 1e-4,
    }

    def __str__(self) -> str:
        return f"CentroidMethod(n_init={self.config['n_init']})"

    def _fit(self, values: np.ndarray, context_params: Dict[str, Any]) -> Dict[str, Any]:
        validate_required_locals(["k", "max_iter"], context_params)
        max_iter = int(context_params["max_iter"])
        model = KMeans(
            n_clusters=int(context_params["k"]),
            n_init=self.config["n_init"],
            max_iter=max_iter,
            tol=self.config["tol"],
            random_state=context_params.get("random_state"),
        ).fit(values)

        n_iter = int(model.n_iter_)
        return {
            "labels": model.labels_,
            "n_iter": n_iter,
            "converged": n_iter < max_iter or self._centers_settled(values, model),
            "inertia": float(model.inertia_),
        }

    def _centers_settled(self, values: np.ndarray, model: KMeans) -> bool:
        """
        A run stopped at max_iter has converged when one more update step
        would not move the centers beyond the k-means tolerance.
        """
        centers = model.cluster_centers_
        shift = 0.0
        for label, center in enumerate(centers):
            members = values[model.labels_ == label]
            if len(members):
                shift += float(np.sum((members.mean(axis=0) - center) ** 2))
        tolerance = self.config["tol"] * float(np.mean(np.var(values, axis=0)))
        return shift <= tolerance
