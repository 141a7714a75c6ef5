"""
Protocol for the analyzer orchestrators.

Defines the contract shared by ForecastEngine, PatternDetector,
VolatilityAnalyzer, CorrelationAnalyzer, ClusteringAnalyzer and
AnomalyDetector: an enum-keyed method registry, lazy method instances,
and a validate -> execute -> combine -> finalize workflow.
"""

import logging
from abc import abstractmethod
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Protocol, Tuple, runtime_checkable

__version__ = "2.1.0"


@runtime_checkable
class BaseAlgorithm(Protocol):
    """
    Protocol for analytics algorithms.

    IMPLEMENTATION STRATEGIES:
    - Weighted Ensemble: ForecastEngine (inverse-error weights)
    - Ranked Merge: PatternDetector (strength ordering, dedup by period)
    - Primary + Fallback: VolatilityAnalyzer (GARCH -> EWMA)
    - Single Dispatch: CorrelationAnalyzer, ClusteringAnalyzer
    - Ratio Averaging: AnomalyDetector (ensemble of score ratios)

    ERRORS: orchestrators raise ValidationError, InsufficientDataError and
    ConfigurationError; method failures are recovered and recorded in
    diagnostics.
    """

    # ========== MANDATORY CLASS ATTRIBUTES ==========

    AVAILABLE_METHODS: ClassVar[Dict[Enum, type]]
    """Closed registry: method identifier -> method class."""

    # ========== MANDATORY INSTANCE ATTRIBUTES ==========

    config: Dict[str, Dict[str, Any]]
    """Per-method configuration overrides keyed by method identifier value."""

    _methods: Dict[Enum, Any]
    """Lazy-loaded method instances cache. Initialize as {} in __init__."""

    _class_name: str
    """Cached class name. Set as self.__class__.__name__."""

    # ========== MANDATORY CORE WORKFLOW ==========

    @abstractmethod
    def run(self, data: Any, options: Any = None) -> Any:
        """
        Main algorithm execution.

        MANDATORY PATTERN:
        1. Options coercion (ConfigurationError on invalid values)
        2. Input validation via SeriesValidator (ValidationError)
        3. Method execution via _process_single_method()
        4. Result combination (strategy-dependent)
        5. Result entity construction with diagnostics
        """
        ...

    # ========== SHARED UTILITY METHODS ==========

    def _get_method_instance(self, method_key: Enum):
        """
        Lazy-loading method retrieval with caching.

        Raises:
            ValueError: If method unknown
        """
        if method_key not in self._methods:
            if method_key not in self.AVAILABLE_METHODS:
                raise ValueError(
                    f"Unknown method: {method_key}. "
                    f"Available: {[m.value for m in self.AVAILABLE_METHODS]}"
                )

            method_class = self.AVAILABLE_METHODS[method_key]
            method_config = (self.config or {}).get(method_key.value, {})
            self._methods[method_key] = method_class(method_config)

        return self._methods[method_key]

    def _process_single_method(
        self, method_key: Enum, data: Any, context: Optional[Dict[str, Any]]
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Run one method; returns (success response, None) or (None, error record)."""
        try:
            method = self._get_method_instance(method_key)
            result = method.process(data, context)

            if result["status"] == "success":
                return result, None

            error = {"method": method_key.value, "error": result.get("message", "Unknown")}
            logging.warning(f"{self._class_name} {method_key.value}: {error['error']}")
            return None, error

        except Exception as e:
            logging.error(f"{self._class_name} {method_key.value}: {e}", exc_info=True)
            return None, {"method": method_key.value, "error": str(e)}

    # ========== MANDATORY STRING REPRESENTATION ==========

    def __str__(self) -> str:
        """FORMAT: "{AlgorithmName}(methods={count})" """
        return f"{self._class_name}(methods={len(self.AVAILABLE_METHODS)})"
