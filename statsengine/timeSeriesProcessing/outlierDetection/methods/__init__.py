from .baseOutlierDetectionMethod import BaseOutlierDetectionMethod
from .statisticalMethod import StatisticalMethod
from .isolationMethod import IsolationMethod
from .localOutlierMethod import LocalOutlierMethod
from .contextualMethod import ContextualMethod
from .collectiveMethod import CollectiveMethod

__all__ = [
    'BaseOutlierDetectionMethod',
    'StatisticalMethod',
    'IsolationMethod',
    'LocalOutlierMethod',
    'ContextualMethod',
    'CollectiveMethod'
]
