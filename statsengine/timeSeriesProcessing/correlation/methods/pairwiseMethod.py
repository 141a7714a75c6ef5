"""
Pairwise correlation coefficients with significance.
"""

from itertools import combinations
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from scipy.stats import kendalltau, pearsonr, spearmanr

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.correlation.methods.baseCorrelationMethod import (
    BaseCorrelationMethod,
)

__version__ = "1.0.0"

COEFFICIENTS = {
    "pearson": pearsonr,
    "spearman": spearmanr,
    "kendall": kendalltau,
}


class PairwiseMethod(BaseCorrelationMethod):
    """
    One coefficient and p-value per unordered pair, written to both
    triangles; diagonal exactly 1 with p-value 0.
    """

    def process(
        self, data: pd.DataFrame, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        context_params = self.extract_context_parameters(context)
        self.log_analysis_start(data, context_params)

        try:
            validate_required_locals(["coefficient"], context_params)
            validation = self.validate_input(data, self.config["min_observations"])
            if validation["status"] == "error":
                return validation

            coefficient = COEFFICIENTS[context_params["coefficient"]]
            values = data.to_numpy(dtype=float)
            n_series = values.shape[1]

            matrix = np.zeros((n_series, n_series))
            p_values = np.zeros((n_series, n_series))
            for i, j in combinations(range(n_series), 2):
                r, p = coefficient(values[:, i], values[:, j])
                matrix[i, j] = float(np.clip(r, -1.0, 1.0)) if np.isfinite(r) else 0.0
                p_values[i, j] = float(p) if np.isfinite(p) else 1.0

            response = self.create_success_response(
                {
                    "matrix": self.symmetric(matrix, 1.0),
                    "p_values": self.symmetric(p_values, 0.0),
                },
                data,
                context_params,
                {"coefficient": context_params["coefficient"], "n_pairs": n_series * (n_series - 1) // 2},
            )
            self.log_analysis_complete(response)
            return response

        except Exception as e:
            return self.handle_error(e, "pairwise correlation")
