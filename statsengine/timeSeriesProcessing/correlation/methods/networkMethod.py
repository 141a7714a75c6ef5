"""
Correlation network: significant correlations as graph edges.
"""

from itertools import combinations
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.correlation.methods.baseCorrelationMethod import (
    BaseCorrelationMethod,
)

__version__ = "1.0.0"


class NetworkMethod(BaseCorrelationMethod):
    """
    Edge between two series when |r| >= min_correlation and p <= max_p_value.

    Reports edges, density, degree per node, strong pairs and connected
    components (groups of mutually reachable series).
    """

    def process(
        self, data: pd.DataFrame, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        context_params = self.extract_context_parameters(context)
        self.log_analysis_start(data, context_params)

        try:
            validate_required_locals(
                ["matrix", "p_values", "min_correlation", "max_p_value", "strong_correlation"],
                context_params,
            )
            matrix = np.asarray(context_params["matrix"], dtype=float)
            p_values = np.asarray(context_params["p_values"], dtype=float)
            labels = list(data.columns)
            n_series = len(labels)

            adjacency = np.zeros((n_series, n_series), dtype=int)
            edges, strong_pairs = [], []
            for i, j in combinations(range(n_series), 2):
                r = matrix[i, j]
                if abs(r) >= context_params["min_correlation"] and p_values[i, j] <= context_params["max_p_value"]:
                    adjacency[i, j] = adjacency[j, i] = 1
                    edge = {"source": labels[i], "target": labels[j], "weight": float(r)}
                    edges.append(edge)
                    if abs(r) >= context_params["strong_correlation"]:
                        strong_pairs.append(edge)

            n_components, component_labels = connected_components(
                csr_matrix(adjacency), directed=False
            )
            components = [
                [labels[i] for i in range(n_series) if component_labels[i] == c]
                for c in range(n_components)
            ]
            possible_edges = n_series * (n_series - 1) / 2

            response = self.create_success_response(
                {
                    "nodes": labels,
                    "edges": edges,
                    "density": float(len(edges) / possible_edges) if possible_edges else 0.0,
                    "degrees": {labels[i]: int(adjacency[i].sum()) for i in range(n_series)},
                    "strong_pairs": strong_pairs,
                    "components": components,
                },
                data,
                context_params,
                {"n_edges": len(edges), "n_components": int(n_components)},
            )
            self.log_analysis_complete(response)
            return response

        except Exception as e:
            return self.handle_error(e, "correlation network")
