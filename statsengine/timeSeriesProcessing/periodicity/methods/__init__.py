"""
Periodicity detection methods for time series.

Each method implements its own algorithm for proposing candidate periods
and inherits from BasePeriodicityMethod to ensure a unified interface.
"""

from .basePeriodicityMethod import BasePeriodicityMethod
from .acfMethod import ACFMethod
from .spectralMethod import SpectralMethod
from .decompositionMethod import DecompositionMethod

__all__ = [
    'BasePeriodicityMethod',
    'ACFMethod',
    'SpectralMethod',
    'DecompositionMethod'
]

__version__ = '1.1.0'
