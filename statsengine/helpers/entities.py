"""
Result entities returned by the analyzers.

Every entity is created fresh per call, owned by the caller, and exposes
to_dict() with plain JSON-compatible content.
"""

from dataclasses import dataclass, field, fields
from enum import IntEnum
from typing import Any, Dict, List, Optional, Sequence

from statsengine.helpers.configs import (
    AnalysisType,
    ClusteringAlgorithm,
    CorrelationMethod,
    PatternMethod,
    PatternType,
    VolatilityModel,
)
from statsengine.helpers.errors import ConvergenceWarning
from statsengine.helpers.utils import to_json_safe


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return {f.name: to_json_safe(getattr(self, f.name)) for f in fields(self)}


@dataclass
class TimeSeries(_Serializable):
    """Ordered numeric observations with optional timestamps."""

    values: Sequence[float]
    timestamps: Optional[Sequence[Any]] = None
    name: Optional[str] = None

    def __len__(self) -> int:
        return len(self.values)


@dataclass
class ForecastResult(_Serializable):
    model_name: str
    point_forecast: List[float]
    lower_bound: List[float]
    upper_bound: List[float]
    fit_diagnostics: Dict[str, Any] = field(default_factory=dict)

    @property
    def horizon(self) -> int:
        return len(self.point_forecast)


@dataclass
class EnsembleForecast(_Serializable):
    """Weighted combination of member forecasts."""

    members: List[ForecastResult]
    weights: Dict[str, float]
    combined: ForecastResult
    timestamps: Optional[List[str]] = None
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    @property
    def horizon(self) -> int:
        return self.combined.horizon

    def member(self, model_name: str) -> ForecastResult:
        for member in self.members:
            if member.model_name == model_name:
                return member
        raise KeyError(model_name)


@dataclass
class Pattern(_Serializable):
    """Recurring periodic structure, period in sampling steps."""

    type: PatternType
    period: float
    strength: float
    phase: int
    method: PatternMethod
    period_days: Optional[float] = None
    amplitude: Optional[float] = None


@dataclass
class VolatilityRegime(_Serializable):
    """Contiguous span [start, end] (inclusive) at one volatility level."""

    start: int
    end: int
    level: str
    mean_volatility: float

    @property
    def length(self) -> int:
        return self.end - self.start + 1


@dataclass
class VolatilityEstimate(_Serializable):
    series: List[float]
    model: VolatilityModel
    persistence: float
    risk_metrics: Optional[Dict[str, Any]] = None
    forecast: List[float] = field(default_factory=list)
    regimes: Optional[List[VolatilityRegime]] = None
    summary: Dict[str, Any] = field(default_factory=dict)
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    convergence_warning: Optional[ConvergenceWarning] = None


@dataclass
class CorrelationMatrix(_Serializable):
    labels: List[str]
    method: CorrelationMethod
    analysis_type: AnalysisType
    matrix: List[List[float]]
    p_values: List[List[float]]
    partial: Optional[List[List[float]]] = None
    significant_pairs: List[Dict[str, Any]] = field(default_factory=list)
    network: Optional[Dict[str, Any]] = None
    groups: Optional[List[List[str]]] = None
    summary: Dict[str, Any] = field(default_factory=dict)
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    def get(self, first: str, second: str) -> float:
        """Coefficient of a labelled pair."""
        return self.matrix[self.labels.index(first)][self.labels.index(second)]

    def p_value(self, first: str, second: str) -> float:
        return self.p_values[self.labels.index(first)][self.labels.index(second)]


@dataclass
class ClusterAssignment(_Serializable):
    algorithm: ClusteringAlgorithm
    k: int
    labels: List[int]
    centroids: List[List[float]]
    validation_score: Optional[float] = None
    probabilities: Optional[List[List[float]]] = None
    noise_indices: List[int] = field(default_factory=list)
    sizes: List[int] = field(default_factory=list)
    quality: str = "none"
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    convergence_warning: Optional[ConvergenceWarning] = None


class Severity(IntEnum):
    """Ordinal anomaly severity."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @classmethod
    def from_ratio(cls, ratio: float) -> "Severity":
        """Map a score/threshold ratio (>= 1) to a severity band."""
        if ratio >= 4.0:
            return cls.CRITICAL
        elif ratio >= 2.5:
            return cls.HIGH
        elif ratio >= 1.5:
            return cls.MEDIUM
        return cls.LOW

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass
class AnomalyRecord(_Serializable):
    index: int
    score: float
    severity: Severity
    method: str
    is_contextual: bool = False
    is_collective: bool = False
    value: Any = None
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        record = super().to_dict()
        record["severity"] = self.severity.label
        return record


@dataclass
class BatchResult(_Serializable):
    """Outcome of one entity in a batch: a value or an error marker."""

    entity: str
    value: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, str]] = None

    def __post_init__(self):
        if (self.value is None) == (self.error is None):
            raise ValueError("BatchResult requires exactly one of value or error")

    @property
    def ok(self) -> bool:
        return self.error is None
