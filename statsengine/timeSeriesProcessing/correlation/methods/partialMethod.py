"""
Partial correlation through inversion of the correlation matrix.
"""

from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from scipy.stats import t as student_t

from statsengine.helpers.utils import validate_required_locals
from statsengine.timeSeriesProcessing.correlation.methods.baseCorrelationMethod import (
    BaseCorrelationMethod,
)

__version__ = "1.0.0"


class PartialMethod(BaseCorrelationMethod):
    """
    partial_ij = -P_ij / sqrt(P_ii * P_jj) with P the inverse correlation
    matrix. Significance from a t-test with n - 2 - (N - 2) degrees of freedom.

    Returns an error response for near-singular matrices or non-positive
    degrees of freedom.
    """

    DEFAULT_CONFIG = {
        **BaseCorrelationMethod.DEFAULT_CONFIG,
        "max_condition_number": 1e10,
    }

    def __str__(self) -> str:
        return f"PartialMethod(max_condition_number={self.config['max_condition_number']:.0e})"

    def process(
        self, data: pd.DataFrame, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        context_params = self.extract_context_parameters(context)
        self.log_analysis_start(data, context_params)

        try:
            validate_required_locals(["matrix"], context_params)
            matrix = np.asarray(context_params["matrix"], dtype=float)
            n_obs, n_series = data.shape

            dof = n_obs - 2 - (n_series - 2)
            if dof <= 0:
                return self._create_error_response(
                    f"non-positive degrees of freedom ({dof}) for {n_series} series "
                    f"and {n_obs} observations"
                )

            condition = float(np.linalg.cond(matrix))
            if not np.isfinite(condition) or condition > self.config["max_condition_number"]:
                return self._create_error_response(
                    f"correlation matrix near-singular (condition number {condition:.3e})"
                )

            precision = np.linalg.inv(matrix)
            scale = np.sqrt(np.outer(np.diag(precision), np.diag(precision)))
            partial = np.clip(-precision / scale, -1.0, 1.0)

            with np.errstate(divide="ignore", invalid="ignore"):
                t_stat = partial * np.sqrt(dof / np.maximum(1.0 - partial**2, 1e-300))
            p_values = 2.0 * student_t.sf(np.abs(t_stat), dof)

            response = self.create_success_response(
                {
                    "partial": self.symmetric(partial, 1.0),
                    "partial_p_values": self.symmetric(np.nan_to_num(p_values, nan=1.0), 0.0),
                },
                data,
                context_params,
                {"degrees_of_freedom": dof, "condition_number": condition},
            )
            self.log_analysis_complete(response)
            return response

        except Exception as e:
            return self.handle_error(e, "partial correlation")
