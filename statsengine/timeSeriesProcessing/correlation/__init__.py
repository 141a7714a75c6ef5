"""
Correlation analysis across sets of aligned series.
"""

__version__ = "1.0.0"

from statsengine.timeSeriesProcessing.correlation.algorithmCorrelation import CorrelationAnalyzer

__all__ = ["CorrelationAnalyzer"]
