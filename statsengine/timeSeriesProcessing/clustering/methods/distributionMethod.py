"""
Distribution clustering (Gaussian mixture) with soft memberships.
"""

from typing import Any, Dict

import numpy as np
from sklearn.mixture import GaussianMixture

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.clustering.methods.baseClusteringMethod import (
    BaseClusteringMethod,
)

__version__ = "1.0.0"


class DistributionMethod(BaseClusteringMethod):
    DEFAULT_CONFIG = {
        **BaseClusteringMethod.DEFAULT_CONFIG,
        "covariance_type": "full",
        "reg_covar": 1e-6,
    }

    def __str__(self) -> str:
        return f"DistributionMethod(covariance_type={self.config['covariance_type']})"

    def _fit(self, values: np.ndarray, context_params: Dict[str, Any]) -> Dict[str, Any]:
        validate_required_locals(["k", "max_iter"], context_params)
        model = GaussianMixture(
            n_components=int(context_params["k"]),
            covariance_type=self.config["covariance_type"],
            reg_covar=self.config["reg_covar"],
            max_iter=int(context_params["max_iter"]),
            random_state=context_params.get("random_state"),
        ).fit(values)

        return {
            "labels": model.predict(values),
            "probabilities": model.predict_proba(values),
            "n_iter": int(model.n_iter_),
            "converged": bool(model.converged_),
            "bic": float(model.bic(values)),
        }
