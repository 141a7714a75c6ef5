"""
Hierarchical factor grouping of correlated series.
"""

from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from statsengine.helpers.configs import ClusteringAlgorithm, ClusteringOptions
from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.clustering.algorithmClustering import ClusteringAnalyzer
from statsengine.timeSeriesProcessing.correlation.methods.baseCorrelationMethod import (
    BaseCorrelationMethod,
)

__version__ = "1.0.0"


class HierarchicalFactorMethod(BaseCorrelationMethod):
    """
    Series with similar correlation profiles form a group (a latent factor).

    Each series is described by its row of |r| against every series; rows
    are clustered hierarchically by ClusteringAnalyzer.
    """

    DEFAULT_CONFIG = {
        **BaseCorrelationMethod.DEFAULT_CONFIG,
        "linkage": "average",
        "max_groups": 10,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.clustering = ClusteringAnalyzer()

    def __str__(self) -> str:
        return f"HierarchicalFactorMethod(linkage={self.config['linkage']})"

    def process(
        self, data: pd.DataFrame, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        context_params = self.extract_context_parameters(context)
        self.log_analysis_start(data, context_params)

        try:
            validate_required_locals(["matrix"], context_params)
            profiles = np.abs(np.asarray(context_params["matrix"], dtype=float))
            labels = list(data.columns)

            assignment = self.clustering.run(
                profiles,
                ClusteringOptions(
                    algorithm=ClusteringAlgorithm.HIERARCHICAL,
                    k=context_params.get("n_groups"),
                    max_k=max(2, min(self.config["max_groups"], len(labels))),
                    linkage=self.config["linkage"],
                    normalize=False,
                    random_state=context_params.get("random_state"),
                ),
            )

            groups = [
                [labels[i] for i, label in enumerate(assignment.labels) if label == group]
                for group in range(assignment.k)
            ]
            # Mean |r| of a series with the other members of its group
            members = np.asarray(assignment.labels)
            loadings = {}
            for i, label in enumerate(labels):
                peers = [j for j in np.where(members == members[i])[0] if j != i]
                loadings[label] = float(np.mean(profiles[i, peers])) if peers else 1.0

            response = self.create_success_response(
                {"groups": groups, "loadings": loadings, "validation_score": assignment.validation_score},
                data,
                context_params,
                {"n_groups": assignment.k},
            )
            self.log_analysis_complete(response)
            return response

        except Exception as e:
            return self.handle_error(e, "hierarchical factor grouping")
