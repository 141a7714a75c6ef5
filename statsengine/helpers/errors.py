"""
Error taxonomy of the analytics engine.

ValidationError: input rejected by SeriesValidator (non-finite, non-numeric, degenerate).
InsufficientDataError: input shorter than the analyzer minimum, or no requested
                       method is viable on it.
ConfigurationError: invalid option combination, raised before any computation.
ConvergenceWarning: non-fatal, attached to results when an iterative fit
                    stopped early or fell back to a simpler model.
"""

from typing import Any, Dict, Optional


class AnalyticsError(Exception):
    """Base class for call-fatal analytics errors."""


class ValidationError(AnalyticsError, ValueError):
    """Input failed series validation gates."""


class InsufficientDataError(ValidationError):
    """Input too short for the analyzer or for every requested method."""


class ConfigurationError(AnalyticsError, ValueError):
    """Invalid option value or combination."""


class ConvergenceWarning(UserWarning):
    """
    Iterative fit did not converge within its budget.

    Carried on the result object (``convergence_warning``) so callers can
    tell a fully fitted model from a degraded one.
    """

    def __init__(
        self,
        component: str,
        message: str,
        iterations: Optional[int] = None,
        fallback: Optional[str] = None,
    ):
        super().__init__(f"{component}: {message}")
        self.component = component
        self.message = message
        self.iterations = iterations
        self.fallback = fallback

    def __reduce__(self):
        return (
            self.__class__,
            (self.component, self.message, self.iterations, self.fallback),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component": self.component,
            "message": self.message,
            "iterations": self.iterations,
            "fallback": self.fallback,
        }


def error_marker(error: Exception) -> Dict[str, str]:
    """Serializable marker stored in batch slots that failed."""
    return {"type": type(error).__name__, "message": str(error)}
