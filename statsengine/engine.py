"""
Analytics engine facade.

Binds the six analyzers behind one object, adds the advisory result cache,
batch fan-out over entities (joblib threads) and an executor for offloading
long fits. Module-level functions delegate to a lazily built default engine.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from joblib import Parallel, delayed

from statsengine.helpers import settings
from statsengine.helpers.cache import ResultCache
from statsengine.helpers.configs import (
    OPTIONS_BY_ANALYSIS,
    AnomalyOptions,
    ClusteringOptions,
    CorrelationOptions,
    ForecastOptions,
    PatternOptions,
    VolatilityOptions,
)
from statsengine.helpers.entities import (
    AnomalyRecord,
    BatchResult,
    ClusterAssignment,
    CorrelationMatrix,
    EnsembleForecast,
    Pattern,
    VolatilityEstimate,
)
from statsengine.helpers.errors import ConfigurationError, error_marker
from statsengine.timeSeriesProcessing.clustering.algorithmClustering import ClusteringAnalyzer
from statsengine.timeSeriesProcessing.correlation.algorithmCorrelation import CorrelationAnalyzer
from statsengine.timeSeriesProcessing.forecasting.algorithmForecast import ForecastEngine
from statsengine.timeSeriesProcessing.outlierDetection.algorithmAnomalyDetector import (
    AnomalyDetector,
)
from statsengine.timeSeriesProcessing.periodicity.algorithmPeriodicityDetector import (
    PatternDetector,
)
from statsengine.timeSeriesProcessing.volatility.algorithmVolatility import VolatilityAnalyzer

__version__ = "1.0.0"


class AnalyticsEngine:
    """
    Entry point of the statistical analytics engine.

    Stateless per call; the only shared state is the optional ResultCache.

    Example:
        engine = AnalyticsEngine(cache=ResultCache())
        ensemble = engine.forecast(ratings, {"horizon": 6})
        batch = engine.run_batch({"alice": a, "bob": b}, ["forecast", "volatility"])
    """

    def __init__(self, cache: Optional[ResultCache] = None, n_jobs: Optional[int] = None):
        self.cache = cache
        self.n_jobs = n_jobs if n_jobs is not None else settings.BATCH_N_JOBS
        self._class_name = self.__class__.__name__

        self.pattern_detector = PatternDetector()
        self.forecaster = ForecastEngine(pattern_detector=self.pattern_detector)
        self.volatility_analyzer = VolatilityAnalyzer()
        self.correlation_analyzer = CorrelationAnalyzer()
        self.clustering_analyzer = ClusteringAnalyzer()
        self.anomaly_detector = AnomalyDetector()

        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

        logging.info(
            f"{self._class_name} initialized: cache={self.cache}, n_jobs={self.n_jobs}"
        )

    def __str__(self) -> str:
        return f"{self._class_name}(cache={self.cache}, n_jobs={self.n_jobs})"

    # Analyses

    def forecast(self, series: Any, options: Any = None) -> EnsembleForecast:
        options = ForecastOptions.coerce(options)
        return self._cached("forecast", series, options, self.forecaster.run)

    def detect_patterns(self, series: Any, options: Any = None) -> List[Pattern]:
        options = PatternOptions.coerce(options)
        return self._cached("patterns", series, options, self.pattern_detector.run)

    def analyze_volatility(self, series: Any, options: Any = None) -> VolatilityEstimate:
        options = VolatilityOptions.coerce(options)
        return self._cached("volatility", series, options, self.volatility_analyzer.run)

    def analyze_correlations(self, series_set: Any, options: Any = None) -> CorrelationMatrix:
        options = CorrelationOptions.coerce(options)
        return self._cached("correlations", series_set, options, self.correlation_analyzer.run)

    def cluster(self, features: Any, options: Any = None) -> ClusterAssignment:
        options = ClusteringOptions.coerce(options)
        return self._cached("clustering", features, options, self.clustering_analyzer.run)

    def detect_anomalies(self, data: Any, options: Any = None) -> List[AnomalyRecord]:
        options = AnomalyOptions.coerce(options)
        return self._cached("anomalies", data, options, self.anomaly_detector.run)

    def _cached(self, operation: str, data: Any, options: Any, compute: Callable) -> Any:
        """Serve from the cache when one is attached and the options are reproducible."""
        if self.cache is None or not options.deterministic:
            return compute(data, options)

        key = self.cache.make_key(operation, data, options)
        return self.cache.get_or_create(key, lambda: compute(data, options))

    def _dispatch(self, analysis: str) -> Callable[[Any, Any], Any]:
        operations = {
            "forecast": self.forecast,
            "patterns": self.detect_patterns,
            "volatility": self.analyze_volatility,
            "correlations": self.analyze_correlations,
            "clustering": self.cluster,
            "anomalies": self.detect_anomalies,
        }
        if analysis not in operations:
            raise ConfigurationError(
                f"Unknown analysis '{analysis}'. Available: {sorted(operations)}"
            )
        return operations[analysis]

    # Batch and background execution

    def run_batch(
        self,
        entities: Mapping[str, Any],
        analyses: Iterable[str],
        options: Optional[Mapping[str, Any]] = None,
    ) -> List[BatchResult]:
        """
        Run the same analyses for many entities (e.g. players).

        Args:
            entities: Mapping entity id -> input data
            analyses: Analysis names ("forecast", "patterns", "volatility",
                      "correlations", "clustering", "anomalies")
            options: Mapping analysis name -> options (dataclass or dict)

        Returns:
            One BatchResult per entity. A failing entity carries an error
            marker and never affects the others; order between entities is
            not guaranteed.

        Raises:
            ConfigurationError: Unknown analysis name or invalid options
        """
        analyses = list(analyses)
        options = dict(options or {})

        unknown = sorted(set(options) - set(analyses))
        if unknown:
            raise ConfigurationError(f"Options given for analyses not requested: {unknown}")

        resolved = {}
        for analysis in analyses:
            self._dispatch(analysis)
            resolved[analysis] = OPTIONS_BY_ANALYSIS[analysis].coerce(options.get(analysis))

        logging.info(
            f"{self._class_name} - batch started: {len(entities)} entities, analyses={analyses}"
        )

        results = Parallel(n_jobs=self.n_jobs, prefer="threads")(
            delayed(self._run_entity)(entity, data, resolved)
            for entity, data in entities.items()
        )

        failed = sum(1 for result in results if not result.ok)
        logging.info(
            f"{self._class_name} - batch completed: {len(results) - failed} ok, {failed} failed"
        )
        return results

    def _run_entity(self, entity: str, data: Any, options: Dict[str, Any]) -> BatchResult:
        try:
            value = {}
            for analysis, analysis_options in options.items():
                result = self._dispatch(analysis)(data, analysis_options)
                if isinstance(result, list):
                    value[analysis] = [item.to_dict() for item in result]
                else:
                    value[analysis] = result.to_dict()
            return BatchResult(entity=str(entity), value=value)

        except Exception as e:
            logging.warning(f"{self._class_name} - entity '{entity}' failed: {e}")
            return BatchResult(entity=str(entity), error=error_marker(e))

    def submit(self, analysis: str, data: Any, options: Any = None) -> Future:
        """Run one analysis on the engine's thread pool."""
        operation = self._dispatch(analysis)
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=settings.MAX_WORKERS, thread_name_prefix="statsengine"
                )
            executor = self._executor
        return executor.submit(operation, data, options)

    def shutdown(self, wait: bool = True) -> None:
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None


_default_engine: Optional[AnalyticsEngine] = None
_default_lock = threading.Lock()


def get_default_engine() -> AnalyticsEngine:
    """Shared engine with an in-memory cache, built on first use."""
    global _default_engine
    with _default_lock:
        if _default_engine is None:
            _default_engine = AnalyticsEngine(cache=ResultCache())
        return _default_engine


def forecast(series: Any, options: Any = None) -> EnsembleForecast:
    return get_default_engine().forecast(series, options)


def detect_patterns(series: Any, options: Any = None) -> List[Pattern]:
    return get_default_engine().detect_patterns(series, options)


def analyze_volatility(series: Any, options: Any = None) -> VolatilityEstimate:
    return get_default_engine().analyze_volatility(series, options)


def analyze_correlations(series_set: Any, options: Any = None) -> CorrelationMatrix:
    return get_default_engine().analyze_correlations(series_set, options)


def cluster(features: Any, options: Any = None) -> ClusterAssignment:
    return get_default_engine().cluster(features, options)


def detect_anomalies(data: Any, options: Any = None) -> List[AnomalyRecord]:
    return get_default_engine().detect_anomalies(data, options)


def run_batch(
    entities: Mapping[str, Any],
    analyses: Iterable[str],
    options: Optional[Mapping[str, Any]] = None,
) -> List[BatchResult]:
    return get_default_engine().run_batch(entities, analyses, options)
