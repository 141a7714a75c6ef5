"""
Clustering orchestrator.

Single Dispatch strategy: one algorithm per call, with automatic k by
silhouette search, canonical labels and validation metrics.
"""

import logging
from typing import Any, ClassVar, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import calinski_harabasz_score, davies_bouldin_score, silhouette_score
from sklearn.preprocessing import StandardScaler

from statsengine.helpers.configs import ClusteringAlgorithm, ClusteringOptions
from statsengine.helpers.entities import ClusterAssignment
from statsengine.helpers.errors import ConfigurationError, ConvergenceWarning, InsufficientDataError
from statsengine.timeSeriesProcessing.baseModule.baseAlgorithm import BaseAlgorithm
from statsengine.timeSeriesProcessing.clustering.methods.centroidMethod import CentroidMethod
from statsengine.timeSeriesProcessing.clustering.methods.densityMethod import DensityMethod
from statsengine.timeSeriesProcessing.clustering.methods.distributionMethod import (
    DistributionMethod,
)
from statsengine.timeSeriesProcessing.clustering.methods.hierarchicalMethod import (
    HierarchicalMethod,
)
from statsengine.timeSeriesProcessing.validation.seriesValidator import SeriesValidator

__version__ = "1.0.0"

# Silhouette bands
QUALITY_BANDS = ((0.7, "strong"), (0.5, "reasonable"), (0.25, "weak"))


class ClusteringAnalyzer(BaseAlgorithm):
    """
    Groups feature vectors (e.g. per-player rating statistics).

    STRATEGY: Single Dispatch
    METHODS: centroid, hierarchical, density, distribution
    """

    AVAILABLE_METHODS: ClassVar[Dict[ClusteringAlgorithm, type]] = {
        ClusteringAlgorithm.CENTROID: CentroidMethod,
        ClusteringAlgorithm.HIERARCHICAL: HierarchicalMethod,
        ClusteringAlgorithm.DENSITY: DensityMethod,
        ClusteringAlgorithm.DISTRIBUTION: DistributionMethod,
    }
    MIN_DATA_LENGTH: ClassVar[int] = 2

    def __init__(self, config: Optional[Dict[str, Dict[str, Any]]] = None):
        self.config = config or {}
        self._methods = {}
        self._class_name = self.__class__.__name__
        self.validator = SeriesValidator(self.MIN_DATA_LENGTH, name="clustering")

        logging.info(f"{self._class_name} initialized: {len(self.AVAILABLE_METHODS)} methods")

    def run(self, data: Any, options: Any = None) -> ClusterAssignment:
        """
        Cluster M feature vectors.

        Raises:
            ConfigurationError: k > M (checked before any computation)
            ValidationError: Fewer than 2 rows, ragged or non-finite input
            InsufficientDataError: The algorithm failed on this input
        """
        options = ClusteringOptions.coerce(options)
        features = self.validator.validate_matrix(data)
        n_rows = len(features)

        if options.k is not None and options.k > n_rows:
            raise ConfigurationError(f"k={options.k} exceeds the number of observations {n_rows}")

        values = features.to_numpy(dtype=float)
        scaled = StandardScaler().fit_transform(values) if options.normalize else values.copy()
        frame = pd.DataFrame(scaled, columns=features.columns)

        algorithm = options.algorithm
        context = {
            "k": options.k,
            "max_iter": options.max_iter,
            "random_state": options.random_state,
            "linkage": options.linkage,
            "cut_height": options.cut_height,
            "eps": options.eps,
            "min_samples": options.min_samples,
        }

        search_scores = None
        if algorithm == ClusteringAlgorithm.DENSITY:
            result = self._run_method(algorithm, frame, context)
        elif options.k is not None or options.cut_height is not None:
            result = self._run_method(algorithm, frame, context)
        elif n_rows < 3 or self._n_distinct(scaled) < 2:
            result = self._run_method(algorithm, frame, {**context, "k": 1})
        else:
            result, search_scores = self._search_k(algorithm, frame, context, options.max_k)

        labels = result["labels"]
        noise_indices: List[int] = []
        if (labels < 0).any():
            labels, noise_indices = self._attach_noise(labels, scaled)

        labels, mapping = self._canonical_labels(labels)
        k = len(mapping)

        probabilities = None
        if result.get("probabilities") is not None:
            order = [old for old, _ in sorted(mapping.items(), key=lambda item: item[1])]
            kept = np.asarray(result["probabilities"])[:, order]
            # Components that won no observation are dropped with their mass
            probabilities = (kept / np.maximum(kept.sum(axis=1, keepdims=True), 1e-300)).tolist()

        validation_score, diagnostics = self._validation(scaled, labels, k)
        diagnostics.update(
            {
                "n_iter": result.get("n_iter"),
                "normalized": options.normalize,
                "k_search": search_scores,
            }
        )
        for key in ("eps", "min_samples", "inertia", "bic", "linkage", "max_merge_height"):
            if key in result:
                diagnostics[key] = result[key]

        warning = None
        if not result.get("converged", True):
            warning = ConvergenceWarning(
                component=algorithm.value,
                message=f"no convergence within max_iter={options.max_iter}",
                iterations=result.get("n_iter"),
            )
            logging.warning(f"{self._class_name} - {warning}")

        logging.info(
            f"{self._class_name} completed: algorithm={algorithm.value}, k={k}, "
            f"score={validation_score}"
        )

        return ClusterAssignment(
            algorithm=algorithm,
            k=k,
            labels=labels.tolist(),
            centroids=[
                values[labels == label].mean(axis=0).tolist() for label in range(k)
            ],
            validation_score=validation_score,
            probabilities=probabilities,
            noise_indices=noise_indices,
            sizes=[int((labels == label).sum()) for label in range(k)],
            quality=self.quality_band(validation_score),
            diagnostics=diagnostics,
            convergence_warning=warning,
        )

    def _run_method(
        self, algorithm: ClusteringAlgorithm, frame: pd.DataFrame, context: Dict[str, Any]
    ) -> Dict[str, Any]:
        response, error = self._process_single_method(algorithm, frame, context)
        if error:
            raise InsufficientDataError(f"{algorithm.value} clustering failed: {error['error']}")
        return response["result"]

    def _search_k(
        self,
        algorithm: ClusteringAlgorithm,
        frame: pd.DataFrame,
        context: Dict[str, Any],
        max_k: int,
    ) -> Tuple[Dict[str, Any], Dict[int, float]]:
        """Best silhouette over k = 2..min(max_k, M - 1); ties go to the smaller k."""
        scaled = frame.to_numpy()
        best_result, best_score = None, -np.inf
        scores = {}

        for k in range(2, min(max_k, len(frame) - 1) + 1):
            result = self._run_method(algorithm, frame, {**context, "k": k})
            n_labels = len(np.unique(result["labels"]))
            if not 2 <= n_labels <= len(frame) - 1:
                continue
            score = float(silhouette_score(scaled, result["labels"]))
            scores[k] = score
            if score > best_score:
                best_result, best_score = result, score

        if best_result is None:
            best_result = self._run_method(algorithm, frame, {**context, "k": 1})
        return best_result, scores

    @staticmethod
    def _n_distinct(values: np.ndarray) -> int:
        return len(np.unique(np.round(values, 12), axis=0))

    @staticmethod
    def _attach_noise(labels: np.ndarray, values: np.ndarray) -> Tuple[np.ndarray, List[int]]:
        """Assign noise points (-1) to the nearest cluster centroid."""
        noise = np.where(labels < 0)[0]
        clusters = sorted(set(labels[labels >= 0].tolist()))
        labels = labels.copy()
        if not clusters:
            labels[:] = 0
            return labels, noise.tolist()

        centroids = np.array([values[labels == c].mean(axis=0) for c in clusters])
        for idx in noise:
            distances = np.linalg.norm(centroids - values[idx], axis=1)
            labels[idx] = clusters[int(np.argmin(distances))]
        return labels, noise.tolist()

    @staticmethod
    def _canonical_labels(labels: np.ndarray) -> Tuple[np.ndarray, Dict[int, int]]:
        """Relabel clusters 0..k-1 in order of first appearance."""
        mapping: Dict[int, int] = {}
        for label in labels.tolist():
            if label not in mapping:
                mapping[label] = len(mapping)
        return np.array([mapping[label] for label in labels.tolist()], dtype=int), mapping

    @staticmethod
    def _validation(values: np.ndarray, labels: np.ndarray, k: int):
        if not 2 <= k <= len(values) - 1:
            return None, {}
        return float(silhouette_score(values, labels)), {
            "davies_bouldin": float(davies_bouldin_score(values, labels)),
            "calinski_harabasz": float(calinski_harabasz_score(values, labels)),
        }

    @staticmethod
    def quality_band(score: Optional[float]) -> str:
        if score is None:
            return "none"
        for threshold, band in QUALITY_BANDS:
            if score > threshold:
                return band
        return "none"
