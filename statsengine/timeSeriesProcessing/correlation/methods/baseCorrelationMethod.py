"""
Base class for correlation methods.
"""

from abc import abstractmethod
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from statsengine.timeSeriesProcessing.baseModule.baseMethod import BaseTimeSeriesMethod

__version__ = "1.0.0"


class BaseCorrelationMethod(BaseTimeSeriesMethod):
    """
    Base class for correlation methods.

    Input is an aligned DataFrame, one column per series. Matrices travel
    as numpy arrays in the context and results.
    """

    DEFAULT_CONFIG = {
        **BaseTimeSeriesMethod.DEFAULT_CONFIG,
        "min_observations": 3,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        merged_config = {**self.DEFAULT_CONFIG, **(config or {})}
        super().__init__(merged_config)

    @abstractmethod
    def process(
        self, data: pd.DataFrame, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        pass

    @staticmethod
    def symmetric(matrix: np.ndarray, diagonal: float) -> np.ndarray:
        """Mirror the upper triangle and set the diagonal exactly."""
        upper = np.triu(matrix, k=1)
        result = upper + upper.T
        np.fill_diagonal(result, diagonal)
        return result
