from .baseClusteringMethod import BaseClusteringMethod
from .centroidMethod import CentroidMethod
from .hierarchicalMethod import HierarchicalMethod
from .densityMethod import DensityMethod
from .distributionMethod import DistributionMethod

__all__ = [
    'BaseClusteringMethod',
    'CentroidMethod',
    'HierarchicalMethod',
    'DensityMethod',
    'DistributionMethod'
]
