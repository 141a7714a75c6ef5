"""
Periodic pattern detection (weekly, monthly, yearly and custom cycles).
"""

__version__ = "2.1.0"

from statsengine.timeSeriesProcessing.periodicity.algorithmPeriodicityDetector import (
    PatternDetector,
)

__all__ = ["PatternDetector"]
