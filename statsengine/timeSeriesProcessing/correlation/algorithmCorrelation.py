"""
Correlation analysis orchestrator.

Pairwise coefficients are always computed; the analysis type adds partial
correlations, a correlation network or hierarchical factor groups on top.
"""

import logging
from itertools import combinations
from typing import Any, ClassVar, Dict, List, Optional

import numpy as np
import pandas as pd

from statsengine.helpers.configs import AnalysisType, CorrelationOptions
from statsengine.helpers.entities import CorrelationMatrix
from statsengine.helpers.errors import ConfigurationError, InsufficientDataError
from statsengine.timeSeriesProcessing.baseModule.baseAlgorithm import BaseAlgorithm
from statsengine.timeSeriesProcessing.correlation.methods.hierarchicalFactorMethod import (
    HierarchicalFactorMethod,
)
from statsengine.timeSeriesProcessing.correlation.methods.networkMethod import NetworkMethod
from statsengine.timeSeriesProcessing.correlation.methods.pairwiseMethod import PairwiseMethod
from statsengine.timeSeriesProcessing.correlation.methods.partialMethod import PartialMethod
from statsengine.timeSeriesProcessing.validation.seriesValidator import validate_collection

__version__ = "1.0.0"

STRONG = 0.7
MODERATE = 0.4


class CorrelationAnalyzer(BaseAlgorithm):
    """
    Correlation structure of a set of aligned series.

    STRATEGY: Single Dispatch (pairwise base + analysis extension)
    METHODS: pairwise, partial, network, hierarchical-factor
    """

    AVAILABLE_METHODS: ClassVar[Dict[AnalysisType, type]] = {
        AnalysisType.PAIRWISE: PairwiseMethod,
        AnalysisType.PARTIAL: PartialMethod,
        AnalysisType.NETWORK: NetworkMethod,
        AnalysisType.HIERARCHICAL_FACTOR: HierarchicalFactorMethod,
    }
    MIN_DATA_LENGTH: ClassVar[int] = 10

    def __init__(self, config: Optional[Dict[str, Dict[str, Any]]] = None):
        self.config = config or {}
        self._methods = {}
        self._class_name = self.__class__.__name__

        logging.info(f"{self._class_name} initialized: {len(self.AVAILABLE_METHODS)} methods")

    def run(self, data: Any, options: Any = None) -> CorrelationMatrix:
        """
        Correlate every pair of series.

        Args:
            data: Mapping label -> series, DataFrame, or sequence of series
                  (labelled series_0, series_1, ...)

        Raises:
            ValidationError: Fewer than 2 series, unaligned, shorter than 10,
                             or a series without variance
            ConfigurationError: n_groups above the number of series
        """
        options = CorrelationOptions.coerce(options)
        frame = validate_collection(data, self.MIN_DATA_LENGTH, require_variance=True)
        labels = list(frame.columns)

        if options.n_groups is not None and options.n_groups > len(labels):
            raise ConfigurationError(
                f"n_groups={options.n_groups} exceeds the number of series {len(labels)}"
            )

        pairwise = self._required(
            AnalysisType.PAIRWISE, frame, {"coefficient": options.method.value}
        )
        matrix, p_values = pairwise["matrix"], pairwise["p_values"]

        diagnostics: Dict[str, Any] = {
            "n_series": len(labels),
            "n_observations": len(frame),
        }
        partial = network = groups = None
        analysis = options.analysis_type

        if analysis == AnalysisType.PARTIAL:
            response, error = self._process_single_method(
                analysis, frame, {"matrix": matrix}
            )
            if error:
                diagnostics["partial_fallback"] = error["error"]
                logging.warning(f"{self._class_name} - partial correlation skipped: {error['error']}")
            else:
                partial = response["result"]["partial"].tolist()
                diagnostics["partial_p_values"] = response["result"]["partial_p_values"].tolist()
                diagnostics["degrees_of_freedom"] = response["metadata"]["degrees_of_freedom"]

        elif analysis == AnalysisType.NETWORK:
            network = self._required(
                analysis,
                frame,
                {
                    "matrix": matrix,
                    "p_values": p_values,
                    "min_correlation": options.min_correlation,
                    "max_p_value": options.max_p_value,
                    "strong_correlation": options.strong_correlation,
                },
            )

        elif analysis == AnalysisType.HIERARCHICAL_FACTOR:
            factor = self._required(
                analysis,
                frame,
                {
                    "matrix": matrix,
                    "n_groups": options.n_groups,
                    "random_state": options.random_state,
                },
            )
            groups = factor["groups"]
            diagnostics["loadings"] = factor["loadings"]
            diagnostics["grouping_score"] = factor["validation_score"]

        significant = self._significant_pairs(labels, matrix, p_values, options)

        logging.info(
            f"{self._class_name} completed: {len(labels)} series, "
            f"analysis={analysis.value}, significant={len(significant)}"
        )

        return CorrelationMatrix(
            labels=labels,
            method=options.method,
            analysis_type=analysis,
            matrix=matrix.tolist(),
            p_values=p_values.tolist(),
            partial=partial,
            significant_pairs=significant,
            network=network,
            groups=groups,
            summary=self._summary(matrix, significant),
            diagnostics=diagnostics,
        )

    def _required(
        self, analysis: AnalysisType, frame: pd.DataFrame, context: Dict[str, Any]
    ) -> Dict[str, Any]:
        response, error = self._process_single_method(analysis, frame, context)
        if error:
            raise InsufficientDataError(f"{analysis.value} correlation failed: {error['error']}")
        return response["result"]

    @staticmethod
    def _significant_pairs(
        labels: List[str], matrix: np.ndarray, p_values: np.ndarray, options: CorrelationOptions
    ) -> List[Dict[str, Any]]:
        pairs = []
        for i, j in combinations(range(len(labels)), 2):
            r, p = float(matrix[i, j]), float(p_values[i, j])
            if abs(r) >= options.min_correlation and p <= options.max_p_value:
                pairs.append(
                    {
                        "first": labels[i],
                        "second": labels[j],
                        "correlation": r,
                        "p_value": p,
                        "strength": categorize_strength(r),
                        "direction": "positive" if r > 0 else "negative",
                    }
                )
        pairs.sort(key=lambda pair: -abs(pair["correlation"]))
        return pairs

    @staticmethod
    def _summary(matrix: np.ndarray, significant: List[Dict[str, Any]]) -> Dict[str, Any]:
        off_diagonal = np.abs(matrix[~np.eye(len(matrix), dtype=bool)])
        return {
            "max_abs_correlation": float(off_diagonal.max()),
            "mean_abs_correlation": float(off_diagonal.mean()),
            "n_significant_pairs": len(significant),
            "n_strong_pairs": sum(1 for pair in significant if pair["strength"] == "strong"),
        }


def categorize_strength(correlation: float) -> str:
    magnitude = abs(correlation)
    if magnitude >= STRONG:
        return "strong"
    elif magnitude >= MODERATE:
        return "moderate"
    return "weak"
