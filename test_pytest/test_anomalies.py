import numpy as np
import pytest

from statsengine.helpers.configs import AnomalyMethod, AnomalyOptions
from statsengine.helpers.entities import Severity
from statsengine.helpers.errors import ConfigurationError, InsufficientDataError
from statsengine.timeSeriesProcessing.outlierDetection.algorithmAnomalyDetector import (
    AnomalyDetector,
)


@pytest.fixture
def spiked_series(rating_series):
    """Ratings with one spike 12 IQRs above the median at position 50."""
    values = rating_series.copy()
    q1, q3 = np.percentile(values, [25, 75])
    values.iloc[50] = np.median(values) + 12.0 * (q3 - q1)
    return values


@pytest.mark.parametrize("method", ["statistical", "ensemble"])
def test_spike_flagged_high(spiked_series, method):
    records = AnomalyDetector().run(spiked_series, {"method": method, "random_state": 0})
    by_index = {record.index: record for record in records}

    assert 50 in by_index
    assert by_index[50].severity >= Severity.HIGH
    assert records[0].index == 50
    assert by_index[50].timestamp.startswith(str(spiked_series.index[50].date()))


def test_records_sorted_and_finite(spiked_series):
    records = AnomalyDetector().run(spiked_series, {"random_state": 0})
    scores = [record.score for record in records]

    assert scores == sorted(scores, reverse=True)
    assert all(np.isfinite(score) and score >= 1.0 for score in scores)
    assert all(0 <= record.index < len(spiked_series) for record in records)


def test_constant_series_has_no_anomalies(constant_series):
    assert AnomalyDetector().run(constant_series) == []


@pytest.mark.parametrize("method", list(AnomalyMethod))
def test_matrix_input(rng, method):
    features = rng.normal(0.0, 1.0, (60, 3))
    features[17] = [9.0, -9.0, 9.0]
    records = AnomalyDetector().run(features, {"method": method, "random_state": 0})

    assert records[0].index == 17
    assert records[0].value == [9.0, -9.0, 9.0]
    assert not any(record.is_contextual or record.is_collective for record in records)


def test_collective_run(rng):
    values = 1500.0 + rng.normal(0.0, 5.0, 80)
    values[40:46] += 60.0
    records = AnomalyDetector().run(
        values, {"method": "statistical", "include_contextual": False}
    )
    collective = {record.index for record in records if record.is_collective}

    assert set(range(40, 46)) <= collective


def test_contextual_flag_on_local_deviation(rng):
    # a point that is ordinary globally but far from its neighbourhood
    values = np.concatenate([np.full(40, 1400.0), np.full(40, 1600.0)]) + rng.normal(0.0, 2.0, 80)
    values[20] = 1500.0
    records = AnomalyDetector().run(values, {"method": "statistical", "include_collective": False})
    by_index = {record.index: record for record in records}

    assert 20 in by_index
    assert by_index[20].is_contextual
    assert by_index[20].method == "contextual"


def test_sensitivity_scales_threshold(spiked_series):
    low = AnomalyDetector().run(spiked_series, {"method": "statistical", "sensitivity": "low"})
    high = AnomalyDetector().run(spiked_series, {"method": "statistical", "sensitivity": "high"})
    assert len(high) >= len(low)


def test_short_series_skips_temporal_passes():
    records = AnomalyDetector().run([10.0, 11.0, 10.5, 10.2, 90.0], {"method": "statistical"})
    assert [record.index for record in records] == [4]
    assert not records[0].is_contextual


def test_too_short():
    with pytest.raises(InsufficientDataError):
        AnomalyDetector().run([1.0, 2.0])


@pytest.mark.parametrize("options", [{"contamination": 0.0}, {"contamination": 0.6}, {"window_size": 2}])
def test_invalid_options(options):
    with pytest.raises(ConfigurationError):
        AnomalyOptions.from_dict(options)


def test_severity_bands():
    assert Severity.from_ratio(1.2) == Severity.LOW
    assert Severity.from_ratio(2.0) == Severity.MEDIUM
    assert Severity.from_ratio(3.0) == Severity.HIGH
    assert Severity.from_ratio(4.0) == Severity.CRITICAL
    assert Severity.LOW < Severity.CRITICAL
