import numpy as np
import pandas as pd
import pytest
from sklearn.preprocessing import StandardScaler

from statsengine.helpers.configs import ClusteringAlgorithm, ClusteringOptions
from statsengine.helpers.errors import ConfigurationError, ConvergenceWarning
from statsengine.timeSeriesProcessing.clustering.algorithmClustering import ClusteringAnalyzer
from statsengine.timeSeriesProcessing.clustering.methods.centroidMethod import CentroidMethod


def _assert_valid_assignment(assignment, n_rows):
    assert len(assignment.labels) == n_rows
    assert all(0 <= label < assignment.k for label in assignment.labels)
    assert sum(assignment.sizes) == n_rows
    assert len(assignment.centroids) == assignment.k


@pytest.mark.parametrize("algorithm", list(ClusteringAlgorithm))
def test_labels_within_range(three_groups, algorithm):
    assignment = ClusteringAnalyzer().run(
        three_groups, ClusteringOptions(algorithm=algorithm, random_state=0)
    )
    _assert_valid_assignment(assignment, len(three_groups))


def test_automatic_k_finds_groups(three_groups):
    assignment = ClusteringAnalyzer().run(three_groups, {"random_state": 0})

    assert assignment.k == 3
    assert assignment.sizes == [30, 30, 30]
    assert assignment.labels[:30] == [0] * 30
    assert assignment.quality == "strong"
    assert 3 in assignment.diagnostics["k_search"]


def test_centroids_in_original_units(three_groups):
    assignment = ClusteringAnalyzer().run(three_groups, {"k": 3, "random_state": 0})
    centroids = np.asarray(assignment.centroids)

    assert centroids[0] == pytest.approx([1200.0, 10.0], abs=10.0)
    assert centroids[2] == pytest.approx([2000.0, 80.0], abs=10.0)


def test_same_seed_same_labels(three_groups):
    analyzer = ClusteringAnalyzer()
    first = analyzer.run(three_groups, {"algorithm": "kmeans", "random_state": 7})
    second = analyzer.run(three_groups, {"algorithm": "kmeans", "random_state": 7})
    assert first.labels == second.labels


def test_hierarchical_cut_height(three_groups):
    assignment = ClusteringAnalyzer().run(
        three_groups, {"algorithm": "hierarchical", "cut_height": 5.0}
    )
    assert assignment.k == 3


def test_distribution_probabilities(three_groups):
    assignment = ClusteringAnalyzer().run(
        three_groups, {"algorithm": "gmm", "k": 3, "random_state": 0}
    )
    probabilities = np.asarray(assignment.probabilities)

    assert probabilities.shape == (90, 3)
    assert np.allclose(probabilities.sum(axis=1), 1.0)
    assert np.all(np.argmax(probabilities, axis=1) == np.asarray(assignment.labels))


def test_density_noise_attached(three_groups):
    features = np.vstack([three_groups, [[5000.0, 500.0]]])
    assignment = ClusteringAnalyzer().run(features, {"algorithm": "dbscan"})

    assert 90 in assignment.noise_indices
    _assert_valid_assignment(assignment, len(features))


def test_two_observations_single_cluster():
    assignment = ClusteringAnalyzer().run([[1500.0, 10.0], [1510.0, 12.0]])

    assert assignment.k == 1
    assert assignment.labels == [0, 0]
    assert assignment.validation_score is None
    assert assignment.quality == "none"


def test_identical_rows_single_cluster():
    assignment = ClusteringAnalyzer().run([[1500.0, 10.0]] * 6, {"random_state": 0})
    assert assignment.k == 1


def test_k_above_rows_rejected():
    with pytest.raises(ConfigurationError):
        ClusteringAnalyzer().run([[1.0], [2.0], [3.0]], {"k": 4})


@pytest.mark.parametrize(
    "options",
    [{"k": 0}, {"max_k": 1}, {"k": 2, "cut_height": 1.0}, {"linkage": "median"}],
)
def test_invalid_options(options):
    with pytest.raises(ConfigurationError):
        ClusteringOptions.from_dict(options)


def test_non_convergence_warning_attached(three_groups):
    assignment = ClusteringAnalyzer().run(
        three_groups, {"k": 3, "max_iter": 1, "random_state": 0}
    )

    if assignment.convergence_warning is not None:
        assert isinstance(assignment.convergence_warning, ConvergenceWarning)
        assert assignment.convergence_warning.iterations == 1
    _assert_valid_assignment(assignment, len(three_groups))


def test_quality_bands():
    assert ClusteringAnalyzer.quality_band(0.8) == "strong"
    assert ClusteringAnalyzer.quality_band(0.6) == "reasonable"
    assert ClusteringAnalyzer.quality_band(0.3) == "weak"
    assert ClusteringAnalyzer.quality_band(0.1) == "none"
    assert ClusteringAnalyzer.quality_band(None) == "none"


def test_kmeans_converged_on_last_allowed_iteration(three_groups):
    method = CentroidMethod({"n_init": 1})
    frame = pd.DataFrame(StandardScaler().fit_transform(three_groups))
    free = method.process(frame, {"k": 3, "max_iter": 300, "random_state": 0})["result"]

    capped = method.process(frame, {"k": 3, "max_iter": free["n_iter"], "random_state": 0})
    assert capped["result"]["n_iter"] == free["n_iter"]
    assert capped["result"]["converged"]
