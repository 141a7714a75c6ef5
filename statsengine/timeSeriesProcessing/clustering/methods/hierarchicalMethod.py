"""
Agglomerative hierarchical clustering (scipy linkage).
"""

from typing import Any, Dict

import numpy as np
from scipy.cluster.hierarchy import fcluster, linkage

from statsengine.timeSeriesProcessing.clustering.methods.baseClusteringMethod import (
    BaseClusteringMethod,
)

__version__ = "1.0.0"


class HierarchicalMethod(BaseClusteringMethod):
    """
    Tree cut either into k clusters (maxclust) or at a distance (cut_height).
    """

    def _fit(self, values: np.ndarray, context_params: Dict[str, Any]) -> Dict[str, Any]:
        method = context_params.get("linkage", "ward")
        tree = linkage(values, method=method, metric="euclidean")

        if context_params.get("cut_height") is not None:
            labels = fcluster(tree, t=float(context_params["cut_height"]), criterion="distance")
        else:
            labels = fcluster(tree, t=int(context_params["k"]), criterion="maxclust")

        return {
            "labels": np.asarray(labels) - 1,
            "n_iter": 0,
            "converged": True,
            "linkage": method,
            "max_merge_height": float(tree[-1, 2]) if len(tree) else 0.0,
        }
