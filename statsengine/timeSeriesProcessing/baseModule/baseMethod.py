"""
Base class shared by every analytics method.

A method receives data that already passed SeriesValidator, so the checks
here only guard the contract between orchestrator and method: pandas input,
enough observations, finite values. Methods never raise to their
orchestrator; they answer with a response dict:

    {"status": "success", "result": {...}, "metadata": {...}}
    {"status": "error", "message": "...", "metadata": {...}}
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

import numpy as np
import pandas as pd

MethodInput = Union[pd.Series, pd.DataFrame]


class BaseTimeSeriesMethod(ABC):
    """
    Common plumbing for forecasting, periodicity, volatility, correlation,
    clustering and outlier methods.

    Subclasses extend DEFAULT_CONFIG and implement process().
    """

    DEFAULT_CONFIG = {
        "detailed_metadata": False,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = {**self.DEFAULT_CONFIG, **(config or {})}
        self.name = self.__class__.__name__

    def __str__(self) -> str:
        return f"{self.name}(config_keys={list(self.config.keys())})"

    @abstractmethod
    def process(
        self, data: MethodInput, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Run the method on validated data.

        Args:
            data: Series for single-series methods, DataFrame (one column per
                  series or feature) for multivariate ones
            context: Per-call parameters set by the orchestrator

        Returns:
            Response dict with status, result and metadata
        """
        pass

    def validate_input(self, data: MethodInput, min_length: Optional[int] = None) -> Dict[str, Any]:
        """Contract check on method input, returns an error response on failure."""
        if not isinstance(data, (pd.Series, pd.DataFrame)):
            return self._create_error_response(
                f"{self.name} expects a pandas Series or DataFrame, got {type(data).__name__}"
            )

        n_obs = len(data)
        if n_obs == 0:
            return self._create_error_response(f"{self.name} received no observations")

        if min_length is not None and n_obs < min_length:
            return self._create_error_response(
                f"{self.name} needs at least {min_length} observations, got {n_obs}"
            )

        if not np.isfinite(data.to_numpy(dtype=float)).all():
            return self._create_error_response(f"{self.name} received non-finite values")

        return {"status": "success"}

    def extract_context_parameters(self, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Copy of the per-call context so methods can fill in their own defaults."""
        return dict(context) if context else {}

    def create_standard_metadata(
        self,
        data: MethodInput,
        context_params: Dict[str, Any],
        additional_metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        metadata = {
            "method": self.name,
            "n_observations": len(data),
        }
        if isinstance(data, pd.DataFrame):
            metadata["n_columns"] = data.shape[1]

        if self.config.get("detailed_metadata", False):
            metadata["config"] = dict(self.config)
            metadata["context"] = dict(context_params)

        if additional_metadata:
            metadata.update(additional_metadata)

        return metadata

    def handle_error(
        self,
        error: Exception,
        operation: str,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Log an unexpected failure and turn it into an error response.

        The orchestrator decides what a failed method means for the call
        (dropped model, fallback, or a typed error).
        """
        message = f"{operation} failed: {error}"
        logging.error(f"{self} - {message}", exc_info=True)

        metadata = {
            "method": self.name,
            "operation": operation,
            "error_type": type(error).__name__,
        }
        if additional_context:
            metadata.update(additional_context)

        return {"status": "error", "message": message, "metadata": metadata}

    def create_success_response(
        self,
        result: Dict[str, Any],
        data: MethodInput,
        context_params: Dict[str, Any],
        additional_metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return {
            "status": "success",
            "result": result,
            "metadata": self.create_standard_metadata(data, context_params, additional_metadata),
        }

    def _create_error_response(self, message: str) -> Dict[str, Any]:
        return {"status": "error", "message": message, "metadata": {"method": self.name}}

    def log_analysis_start(self, data: MethodInput, context_params: Dict[str, Any]) -> None:
        logging.debug(f"{self} - start: n={len(data)}, context={sorted(context_params)}")

    def log_analysis_complete(self, result: Dict[str, Any]) -> None:
        if isinstance(result, dict) and result.get("status") == "success":
            logging.debug(f"{self} - done")
        else:
            message = result.get("message") if isinstance(result, dict) else None
            logging.warning(f"{self} - finished without result: {message}")
