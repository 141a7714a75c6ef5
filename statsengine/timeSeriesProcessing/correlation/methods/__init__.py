from .baseCorrelationMethod import BaseCorrelationMethod
from .pairwiseMethod import PairwiseMethod
from .partialMethod import PartialMethod
from .networkMethod import NetworkMethod
from .hierarchicalFactorMethod import HierarchicalFactorMethod

__all__ = [
    'BaseCorrelationMethod',
    'PairwiseMethod',
    'PartialMethod',
    'NetworkMethod',
    'HierarchicalFactorMethod'
]
