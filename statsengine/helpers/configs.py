"""
Configuration classes for the analytics engine:

Method identifiers: closed enumerations, one per analyzer, mapped to dedicated
method classes through each algorithm's AVAILABLE_METHODS registry.

Options: one dataclass per analyzer with documented defaults. Values are
validated in __post_init__, so an invalid combination raises
ConfigurationError before any computation starts.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from statsengine.helpers.errors import ConfigurationError
from statsengine.helpers.utils import INTERVAL_DAYS


class _AliasedEnum(Enum):
    """Enum accepting case-insensitive values and the legacy aliases in _ALIASES."""

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("_", "-")
        for member in cls:
            if member.value == key:
                return member
        target = cls._aliases().get(key)
        return cls(target) if target else None

    @classmethod
    def _aliases(cls) -> Dict[str, str]:
        return {}


class ForecastModel(_AliasedEnum):
    """Forecasting model families"""

    NAIVE_SEASONAL = "naive-seasonal"
    EXPONENTIAL_SMOOTHING = "exponential-smoothing"
    HOLT_WINTERS = "holt-winters"
    ARIMA = "arima"
    TREND_EXTRAPOLATION = "trend-extrapolation"

    @classmethod
    def _aliases(cls):
        return {
            "naive": "naive-seasonal",
            "exponential": "exponential-smoothing",
            "ets": "exponential-smoothing",
            "holtwinters": "holt-winters",
            "trend": "trend-extrapolation",
            "linear": "trend-extrapolation",
        }

    @property
    def is_seasonal(self) -> bool:
        return self in (ForecastModel.NAIVE_SEASONAL, ForecastModel.HOLT_WINTERS)


class PatternMethod(_AliasedEnum):
    """Periodicity detection methods"""

    AUTOCORRELATION = "autocorrelation"
    SPECTRAL = "spectral"
    DECOMPOSITION = "decomposition"

    @classmethod
    def _aliases(cls):
        return {"acf": "autocorrelation", "fft": "spectral", "stl": "decomposition"}


class PatternType(_AliasedEnum):
    """Calendar meaning of a detected period"""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class VolatilityModel(_AliasedEnum):
    """Conditional dispersion models"""

    EWMA = "ewma"
    GARCH = "garch"
    HISTORICAL = "historical"

    @classmethod
    def _aliases(cls):
        return {"garch-1-1": "garch", "rolling": "historical"}


class ReturnType(_AliasedEnum):
    """Transformation of levels into the change series"""

    DIFFERENCE = "difference"
    LOG = "log"
    PERCENT = "percent"


class CorrelationMethod(_AliasedEnum):
    """Correlation coefficients"""

    PEARSON = "pearson"
    SPEARMAN = "spearman"
    KENDALL = "kendall"


class AnalysisType(_AliasedEnum):
    """Correlation analysis modes"""

    PAIRWISE = "pairwise"
    PARTIAL = "partial"
    NETWORK = "network"
    HIERARCHICAL_FACTOR = "hierarchical-factor"

    @classmethod
    def _aliases(cls):
        return {"hierarchical": "hierarchical-factor", "factor": "hierarchical-factor"}


class ClusteringAlgorithm(_AliasedEnum):
    """Clustering algorithm families"""

    CENTROID = "centroid"
    HIERARCHICAL = "hierarchical"
    DENSITY = "density"
    DISTRIBUTION = "distribution"

    @classmethod
    def _aliases(cls):
        return {
            "kmeans": "centroid",
            "agglomerative": "hierarchical",
            "dbscan": "density",
            "gmm": "distribution",
            "gaussian-mixture": "distribution",
        }


class AnomalyMethod(_AliasedEnum):
    """Anomaly scoring methods"""

    ISOLATION = "isolation"
    DENSITY = "density"
    STATISTICAL = "statistical"
    ENSEMBLE = "ensemble"

    @classmethod
    def _aliases(cls):
        return {
            "isolation-forest": "isolation",
            "lof": "density",
            "local-outlier": "density",
            "zscore": "statistical",
            "iqr": "statistical",
        }


class Sensitivity(_AliasedEnum):
    """Anomaly sensitivity, scales every flagging threshold"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def threshold_factor(self) -> float:
        return {"low": 1.25, "medium": 1.0, "high": 0.8}[self.value]


def _coerce_enum(value: Any, enum_cls, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = [member.value for member in enum_cls]
        raise ConfigurationError(
            f"Invalid {field_name} '{value}'. Allowed: {allowed}"
        )


def _coerce_enum_tuple(values: Any, enum_cls, field_name: str) -> tuple:
    if isinstance(values, (str, enum_cls)):
        values = [values]
    coerced = []
    for value in values:
        member = _coerce_enum(value, enum_cls, field_name)
        if member not in coerced:
            coerced.append(member)
    if not coerced:
        raise ConfigurationError(f"{field_name} cannot be empty")
    return tuple(coerced)


def _check(condition: bool, message: str):
    if not condition:
        raise ConfigurationError(message)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class _BaseOptions:
    """Shared constructor and serialization helpers of option dataclasses."""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]] = None):
        """Build options from a plain dict, rejecting unknown keys."""
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown {cls.__name__} fields: {unknown}. Known: {sorted(known)}"
            )
        return cls(**data)

    @classmethod
    def coerce(cls, options: Any):
        """Accept an instance, a dict or None."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, dict):
            return cls.from_dict(options)
        raise ConfigurationError(
            f"Expected {cls.__name__} or dict, got {type(options).__name__}"
        )

    def to_dict(self) -> Dict[str, Any]:
        from statsengine.helpers.utils import to_json_safe

        return to_json_safe({f.name: getattr(self, f.name) for f in fields(self)})

    @property
    def deterministic(self) -> bool:
        """Whether identical input yields identical output (cacheable)."""
        return True


@dataclass
class ForecastOptions(_BaseOptions):
    """
    Forecast request.

    validation_split and weight_floor are tuning defaults, not constants:
    holdout share of the history and minimum ensemble weight per model.
    """

    models: Tuple[ForecastModel, ...] = tuple(ForecastModel)
    horizon: int = 30
    confidence_level: float = 0.95
    seasonal_period: Optional[int] = None
    validation_split: float = 0.2
    weight_floor: float = 0.05
    interval_growth: float = 1.05
    arima_order: Tuple[int, int, int] = (1, 1, 0)

    def __post_init__(self):
        self.models = _coerce_enum_tuple(self.models, ForecastModel, "models")
        _check(_is_int(self.horizon) and self.horizon > 0, "horizon must be a positive integer")
        _check(0.0 < self.confidence_level < 1.0, "confidence_level must be in (0, 1)")
        _check(
            self.seasonal_period is None
            or (_is_int(self.seasonal_period) and self.seasonal_period >= 2),
            "seasonal_period must be an integer >= 2",
        )
        _check(0.0 < self.validation_split < 0.5, "validation_split must be in (0, 0.5)")
        _check(0.0 <= self.weight_floor < 1.0, "weight_floor must be in [0, 1)")
        _check(
            self.weight_floor * len(self.models) < 1.0,
            f"weight_floor {self.weight_floor} too large for {len(self.models)} models",
        )
        _check(self.interval_growth >= 1.0, "interval_growth must be >= 1")
        order = tuple(self.arima_order)
        _check(
            len(order) == 3 and all(_is_int(v) and v >= 0 for v in order),
            "arima_order must be three non-negative integers",
        )
        self.arima_order = order


@dataclass
class PatternOptions(_BaseOptions):
    """Periodic pattern request."""

    method: PatternMethod = PatternMethod.AUTOCORRELATION
    pattern_types: Tuple[PatternType, ...] = tuple(PatternType)
    min_strength: float = 0.1
    interval: str = "1d"
    remove_outliers: bool = True
    outlier_threshold: float = 3.5
    max_patterns: int = 10

    def __post_init__(self):
        self.method = _coerce_enum(self.method, PatternMethod, "method")
        self.pattern_types = _coerce_enum_tuple(self.pattern_types, PatternType, "pattern_types")
        _check(0.0 <= self.min_strength <= 1.0, "min_strength must be in [0, 1]")
        _check(
            self.interval in INTERVAL_DAYS,
            f"Unsupported interval '{self.interval}'. Supported: {list(INTERVAL_DAYS)}",
        )
        _check(self.outlier_threshold > 0, "outlier_threshold must be positive")
        _check(_is_int(self.max_patterns) and self.max_patterns >= 1, "max_patterns must be >= 1")


@dataclass
class VolatilityOptions(_BaseOptions):
    """Volatility request."""

    model: VolatilityModel = VolatilityModel.EWMA
    horizon: int = 30
    confidence_level: float = 0.95
    include_risk: bool = True
    include_regimes: bool = False
    return_type: ReturnType = ReturnType.DIFFERENCE
    ewma_lambda: float = 0.94
    window: int = 20
    max_iter: int = 200
    garch_p: int = 1
    garch_q: int = 1
    min_regime_length: int = 5

    def __post_init__(self):
        self.model = _coerce_enum(self.model, VolatilityModel, "model")
        self.return_type = _coerce_enum(self.return_type, ReturnType, "return_type")
        _check(_is_int(self.horizon) and self.horizon > 0, "horizon must be a positive integer")
        _check(0.0 < self.confidence_level < 1.0, "confidence_level must be in (0, 1)")
        _check(0.0 < self.ewma_lambda < 1.0, "ewma_lambda must be in (0, 1)")
        _check(_is_int(self.window) and self.window >= 2, "window must be an integer >= 2")
        _check(_is_int(self.max_iter) and self.max_iter >= 1, "max_iter must be >= 1")
        _check(_is_int(self.garch_p) and self.garch_p >= 1, "garch_p must be an integer >= 1")
        _check(_is_int(self.garch_q) and self.garch_q >= 0, "garch_q must be an integer >= 0")
        _check(
            _is_int(self.min_regime_length) and self.min_regime_length >= 1,
            "min_regime_length must be >= 1",
        )


@dataclass
class CorrelationOptions(_BaseOptions):
    """Correlation request."""

    method: CorrelationMethod = CorrelationMethod.PEARSON
    analysis_type: AnalysisType = AnalysisType.PAIRWISE
    min_correlation: float = 0.1
    max_p_value: float = 0.05
    strong_correlation: float = 0.7
    n_groups: Optional[int] = None
    random_state: Optional[int] = None

    def __post_init__(self):
        self.method = _coerce_enum(self.method, CorrelationMethod, "method")
        self.analysis_type = _coerce_enum(self.analysis_type, AnalysisType, "analysis_type")
        _check(0.0 <= self.min_correlation <= 1.0, "min_correlation must be in [0, 1]")
        _check(0.0 < self.max_p_value <= 1.0, "max_p_value must be in (0, 1]")
        _check(0.0 <= self.strong_correlation <= 1.0, "strong_correlation must be in [0, 1]")
        _check(
            self.n_groups is None or (_is_int(self.n_groups) and self.n_groups >= 1),
            "n_groups must be a positive integer",
        )


@dataclass
class ClusteringOptions(_BaseOptions):
    """
    Clustering request.

    Without random_state, centroid and distribution algorithms may vary
    from run to run (random initialization).
    """

    algorithm: ClusteringAlgorithm = ClusteringAlgorithm.CENTROID
    k: Optional[int] = None
    max_k: int = 10
    cut_height: Optional[float] = None
    linkage: str = "ward"
    eps: Optional[float] = None
    min_samples: Optional[int] = None
    normalize: bool = True
    random_state: Optional[int] = None
    max_iter: int = 300

    def __post_init__(self):
        self.algorithm = _coerce_enum(self.algorithm, ClusteringAlgorithm, "algorithm")
        _check(self.k is None or (_is_int(self.k) and self.k >= 1), "k must be a positive integer")
        _check(_is_int(self.max_k) and self.max_k >= 2, "max_k must be an integer >= 2")
        _check(self.cut_height is None or self.cut_height > 0, "cut_height must be positive")
        _check(
            not (self.k is not None and self.cut_height is not None),
            "k and cut_height are mutually exclusive",
        )
        _check(
            self.linkage in ("ward", "complete", "average", "single"),
            f"Unsupported linkage '{self.linkage}'",
        )
        _check(self.eps is None or self.eps > 0, "eps must be positive")
        _check(
            self.min_samples is None or (_is_int(self.min_samples) and self.min_samples >= 1),
            "min_samples must be a positive integer",
        )
        _check(_is_int(self.max_iter) and self.max_iter >= 1, "max_iter must be >= 1")

    @property
    def deterministic(self) -> bool:
        return self.random_state is not None or self.algorithm in (
            ClusteringAlgorithm.HIERARCHICAL,
            ClusteringAlgorithm.DENSITY,
        )


@dataclass
class AnomalyOptions(_BaseOptions):
    """Anomaly request."""

    method: AnomalyMethod = AnomalyMethod.ENSEMBLE
    contamination: float = 0.1
    sensitivity: Sensitivity = Sensitivity.MEDIUM
    include_contextual: bool = True
    include_collective: bool = True
    window_size: Optional[int] = None
    random_state: Optional[int] = None
    zscore_threshold: float = 3.5
    iqr_multiplier: float = 1.5
    collective_threshold: float = 2.0
    min_collective_length: int = 3

    def __post_init__(self):
        self.method = _coerce_enum(self.method, AnomalyMethod, "method")
        self.sensitivity = _coerce_enum(self.sensitivity, Sensitivity, "sensitivity")
        _check(0.0 < self.contamination <= 0.5, "contamination must be in (0, 0.5]")
        _check(
            self.window_size is None or (_is_int(self.window_size) and self.window_size >= 3),
            "window_size must be an integer >= 3",
        )
        _check(self.zscore_threshold > 0, "zscore_threshold must be positive")
        _check(self.iqr_multiplier > 0, "iqr_multiplier must be positive")
        _check(self.collective_threshold > 0, "collective_threshold must be positive")
        _check(
            _is_int(self.min_collective_length) and self.min_collective_length >= 2,
            "min_collective_length must be >= 2",
        )

    @property
    def deterministic(self) -> bool:
        return self.random_state is not None or self.method == AnomalyMethod.STATISTICAL


OPTIONS_BY_ANALYSIS = {
    "forecast": ForecastOptions,
    "patterns": PatternOptions,
    "volatility": VolatilityOptions,
    "correlations": CorrelationOptions,
    "clustering": ClusteringOptions,
    "anomalies": AnomalyOptions,
}
