"""
Base class for clustering methods.
"""

from abc import abstractmethod
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from statsengine.timeSeriesProcessing.baseModule.baseMethod import BaseTimeSeriesMethod

__version__ = "1.0.0"


class BaseClusteringMethod(BaseTimeSeriesMethod):
    """
    Base class for clustering methods.

    Input is the (optionally standardised) feature matrix. Methods return raw
    labels; canonical ordering, centroids and validation are computed by
    ClusteringAnalyzer.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        merged_config = {**self.DEFAULT_CONFIG, **(config or {})}
        super().__init__(merged_config)

    def process(
        self, data: pd.DataFrame, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Cluster the rows of data.

        Returns:
            Standard response, result = {"labels", "converged", "n_iter", ...}
        """
        context_params = self.extract_context_parameters(context)

        try:
            validation = self.validate_input(data, 1)
            if validation["status"] == "error":
                return validation

            result = self._fit(data.to_numpy(dtype=float), context_params)
            result["labels"] = np.asarray(result["labels"], dtype=int)
            return self.create_success_response(result, data, context_params)

        except Exception as e:
            return self.handle_error(e, f"{self.name} clustering")

    @abstractmethod
    def _fit(self, values: np.ndarray, context_params: Dict[str, Any]) -> Dict[str, Any]:
        pass
