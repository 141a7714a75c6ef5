"""
Statistical analytics engine for chess statistics.

Turns numeric series (rating histories, activity counts, performance
indices) into forecasts, periodic patterns, volatility and risk estimates,
correlation structures, cluster assignments and anomaly flags.
"""

__version__ = "1.0.0"

from statsengine.engine import (
    AnalyticsEngine,
    analyze_correlations,
    analyze_volatility,
    cluster,
    detect_anomalies,
    detect_patterns,
    forecast,
    get_default_engine,
    run_batch,
)
from statsengine.helpers.cache import ResultCache
from statsengine.helpers.configs import (
    AnalysisType,
    AnomalyMethod,
    AnomalyOptions,
    ClusteringAlgorithm,
    ClusteringOptions,
    CorrelationMethod,
    CorrelationOptions,
    ForecastModel,
    ForecastOptions,
    PatternMethod,
    PatternOptions,
    PatternType,
    ReturnType,
    Sensitivity,
    VolatilityModel,
    VolatilityOptions,
)
from statsengine.helpers.entities import (
    AnomalyRecord,
    BatchResult,
    ClusterAssignment,
    CorrelationMatrix,
    EnsembleForecast,
    ForecastResult,
    Pattern,
    Severity,
    TimeSeries,
    VolatilityEstimate,
    VolatilityRegime,
)
from statsengine.helpers.errors import (
    AnalyticsError,
    ConfigurationError,
    ConvergenceWarning,
    InsufficientDataError,
    ValidationError,
)

__all__ = [
    "AnalyticsEngine",
    "ResultCache",
    "forecast",
    "detect_patterns",
    "analyze_volatility",
    "analyze_correlations",
    "cluster",
    "detect_anomalies",
    "run_batch",
    "get_default_engine",
    "TimeSeries",
    "ForecastResult",
    "EnsembleForecast",
    "Pattern",
    "VolatilityRegime",
    "VolatilityEstimate",
    "CorrelationMatrix",
    "ClusterAssignment",
    "AnomalyRecord",
    "BatchResult",
    "Severity",
    "ForecastModel",
    "ForecastOptions",
    "PatternMethod",
    "PatternType",
    "PatternOptions",
    "VolatilityModel",
    "ReturnType",
    "VolatilityOptions",
    "CorrelationMethod",
    "AnalysisType",
    "CorrelationOptions",
    "ClusteringAlgorithm",
    "ClusteringOptions",
    "AnomalyMethod",
    "Sensitivity",
    "AnomalyOptions",
    "AnalyticsError",
    "ValidationError",
    "InsufficientDataError",
    "ConfigurationError",
    "ConvergenceWarning",
]
