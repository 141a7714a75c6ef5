"""
Anomaly detection for rating series and feature matrices.

Architecture:
- Level 1: AnomalyDetector (Ratio Averaging orchestrator)
- Level 2: Scoring methods (statistical, isolation, local outlier factor)
- Level 3: Temporal passes for series input (contextual, collective)
"""

__version__ = "1.0.0"

from statsengine.timeSeriesProcessing.outlierDetection.algorithmAnomalyDetector import (
    AnomalyDetector,
)

__all__ = ["AnomalyDetector"]
