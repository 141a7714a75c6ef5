import numpy as np
import pytest

from statsengine.helpers.configs import AnalysisType, CorrelationMethod, CorrelationOptions
from statsengine.helpers.errors import ConfigurationError, ValidationError
from statsengine.timeSeriesProcessing.correlation.algorithmCorrelation import (
    CorrelationAnalyzer,
    categorize_strength,
)


@pytest.fixture
def two_factor_set(rng):
    """Two pairs of series driven by two independent factors."""
    first, second = rng.normal(0.0, 1.0, (2, 200))
    return {
        "blitz": 1500.0 + 50.0 * first + rng.normal(0.0, 5.0, 200),
        "bullet": 1450.0 + 40.0 * first + rng.normal(0.0, 5.0, 200),
        "classical": 1700.0 + 30.0 * second + rng.normal(0.0, 3.0, 200),
        "correspondence": 1800.0 + 20.0 * second + rng.normal(0.0, 3.0, 200),
    }


@pytest.mark.parametrize("method", list(CorrelationMethod))
def test_matrix_symmetric_unit_diagonal(two_factor_set, method):
    result = CorrelationAnalyzer().run(two_factor_set, CorrelationOptions(method=method))
    matrix = np.asarray(result.matrix)

    assert np.allclose(matrix, matrix.T)
    assert np.all(np.diag(matrix) == 1.0)
    assert np.all(np.abs(matrix) <= 1.0)
    assert result.labels == list(two_factor_set)


def test_independent_series_weakly_correlated(rng):
    series = {"a": rng.normal(size=1000), "b": rng.normal(size=1000)}
    result = CorrelationAnalyzer().run(series)
    assert abs(result.get("a", "b")) < 0.15


def test_anti_correlated_pair(rng):
    x = rng.normal(size=100)
    result = CorrelationAnalyzer().run([x, -2.0 * x + 3.0])

    assert result.get("series_0", "series_1") == pytest.approx(-1.0)
    assert result.p_value("series_0", "series_1") == pytest.approx(0.0, abs=1e-10)
    assert result.significant_pairs[0]["direction"] == "negative"
    assert result.significant_pairs[0]["strength"] == "strong"


def test_significant_pairs_and_summary(two_factor_set):
    result = CorrelationAnalyzer().run(two_factor_set)
    pairs = {(pair["first"], pair["second"]) for pair in result.significant_pairs}

    assert ("blitz", "bullet") in pairs
    assert ("classical", "correspondence") in pairs
    assert result.summary["n_strong_pairs"] >= 2
    assert result.summary["max_abs_correlation"] > 0.9


def test_partial_correlation(rng):
    driver = rng.normal(size=300)
    series = {
        "driver": driver,
        "a": driver + rng.normal(0.0, 0.5, 300),
        "b": driver + rng.normal(0.0, 0.5, 300),
    }
    result = CorrelationAnalyzer().run(series, {"analysis_type": "partial"})
    partial = np.asarray(result.partial)

    assert np.allclose(partial, partial.T)
    assert np.allclose(np.diag(partial), 1.0)
    # a and b only share the driver
    assert result.get("a", "b") > 0.5
    assert abs(partial[1, 2]) < 0.15
    assert result.diagnostics["degrees_of_freedom"] == 300 - 2 - 1


def test_partial_falls_back_on_singular_matrix(rng):
    x = rng.normal(size=50)
    y = rng.normal(size=50)
    series = {"x": x, "y": y, "sum": x + y}
    result = CorrelationAnalyzer().run(series, {"analysis_type": AnalysisType.PARTIAL})

    assert result.partial is None
    assert "partial_fallback" in result.diagnostics
    assert len(result.matrix) == 3


def test_network(two_factor_set):
    result = CorrelationAnalyzer().run(
        two_factor_set, {"analysis_type": "network", "min_correlation": 0.5}
    )
    network = result.network

    assert sorted(map(sorted, network["components"])) == [
        ["blitz", "bullet"],
        ["classical", "correspondence"],
    ]
    assert network["degrees"]["blitz"] == 1
    assert 0.0 < network["density"] < 1.0


def test_hierarchical_factor_groups(two_factor_set):
    result = CorrelationAnalyzer().run(
        two_factor_set, {"analysis_type": "hierarchical-factor", "n_groups": 2}
    )

    assert sorted(map(sorted, result.groups)) == [
        ["blitz", "bullet"],
        ["classical", "correspondence"],
    ]
    assert result.diagnostics["loadings"]["blitz"] > 0.9


def test_too_many_groups(two_factor_set):
    with pytest.raises(ConfigurationError):
        CorrelationAnalyzer().run(two_factor_set, {"analysis_type": "factor", "n_groups": 5})


def test_constant_member_rejected(rng):
    with pytest.raises(ValidationError):
        CorrelationAnalyzer().run({"a": rng.normal(size=20), "b": [1500.0] * 20})


def test_strength_labels():
    assert categorize_strength(-0.8) == "strong"
    assert categorize_strength(0.5) == "moderate"
    assert categorize_strength(0.1) == "weak"
