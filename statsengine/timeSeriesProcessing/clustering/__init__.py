"""
Clustering of feature vectors (player profiles, rating statistics).
"""

__version__ = "1.0.0"

from statsengine.timeSeriesProcessing.clustering.algorithmClustering import ClusteringAnalyzer

__all__ = ["ClusteringAnalyzer"]
