import numpy as np
import pandas as pd
import pytest

from statsengine.helpers.configs import PatternMethod, PatternOptions, PatternType
from statsengine.helpers.errors import ConfigurationError, InsufficientDataError
from statsengine.timeSeriesProcessing.periodicity.algorithmPeriodicityDetector import (
    PatternDetector,
)


@pytest.mark.parametrize("method", list(PatternMethod))
def test_weekly_cycle_detected(weekly_activity, method):
    patterns = PatternDetector().run(weekly_activity, PatternOptions(method=method))

    assert patterns
    strongest = patterns[0]
    assert strongest.type == PatternType.WEEKLY
    assert strongest.period == pytest.approx(7.0, rel=0.1)
    assert 0.0 <= strongest.strength <= 1.0
    assert 0 <= strongest.phase < strongest.period


def test_ranked_strongest_first(weekly_activity):
    patterns = PatternDetector().run(weekly_activity, {"min_strength": 0.0})
    strengths = [pattern.strength for pattern in patterns]

    assert strengths == sorted(strengths, reverse=True)
    periods = [pattern.period for pattern in patterns]
    assert len(periods) == len(set(periods))


def test_linear_series_has_no_patterns(linear_monthly):
    assert PatternDetector().run(linear_monthly) == []


def test_constant_series_has_no_patterns():
    assert PatternDetector().run([1500.0] * 40) == []


def test_requested_types_filter(weekly_activity):
    patterns = PatternDetector().run(weekly_activity, {"pattern_types": ["monthly", "yearly"]})
    assert all(pattern.type != PatternType.WEEKLY for pattern in patterns)


def test_single_spike_is_not_a_pattern(rng):
    values = rng.normal(0.0, 1.0, 60)
    values[30] = 500.0
    patterns = PatternDetector().run(values, {"min_strength": 0.5})
    assert patterns == []


def test_interval_maps_period_to_calendar():
    assert PatternDetector.classify_period(7.2) == PatternType.WEEKLY
    assert PatternDetector.classify_period(30.0) == PatternType.MONTHLY
    assert PatternDetector.classify_period(365.0) == PatternType.YEARLY
    assert PatternDetector.classify_period(12.0) == PatternType.CUSTOM


def test_hourly_interval_without_timestamps():
    t = np.arange(24 * 7)
    values = 10.0 + 5.0 * np.sin(2.0 * np.pi * t / 24.0)
    patterns = PatternDetector().run(values, {"interval": "1h"})

    assert patterns[0].period == pytest.approx(24.0, rel=0.05)
    assert patterns[0].period_days == pytest.approx(1.0, rel=0.05)
    assert patterns[0].type == PatternType.CUSTOM


def test_dominant_period(weekly_activity):
    assert PatternDetector().dominant_period(weekly_activity) == 7


def test_short_series_rejected():
    with pytest.raises(InsufficientDataError):
        PatternDetector().run(list(range(19)))


def test_unknown_interval_rejected():
    with pytest.raises(ConfigurationError):
        PatternOptions(interval="2d")


def test_timestamps_override_interval(weekly_activity):
    weekly_points = pd.Series(
        weekly_activity.to_numpy(),
        index=pd.date_range("2020-01-06", periods=84, freq="W-MON"),
    )
    patterns = PatternDetector().run(weekly_points, {"interval": "1d"})

    assert patterns[0].period == pytest.approx(7.0, rel=0.1)
    assert patterns[0].period_days == pytest.approx(49.0, rel=0.1)


@pytest.mark.parametrize("unit", ["s", "ms", "us", "ns"])
def test_weekly_request_independent_of_timestamp_resolution(weekly_activity, unit):
    series = pd.Series(weekly_activity.to_numpy(), index=weekly_activity.index.as_unit(unit))
    patterns = PatternDetector().run(series, {"pattern_types": ["weekly"]})

    assert patterns
    assert patterns[0].type == PatternType.WEEKLY
    assert patterns[0].period_days == pytest.approx(7.0, rel=0.1)


def test_decomposition_keeps_calendar_candidates(weekly_activity):
    series = pd.Series(weekly_activity.to_numpy(), index=weekly_activity.index.as_unit("us"))
    patterns = PatternDetector().run(series, {"method": "decomposition"})

    assert patterns[0].period == pytest.approx(7.0, rel=0.1)
    assert patterns[0].type == PatternType.WEEKLY
