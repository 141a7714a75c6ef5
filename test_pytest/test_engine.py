import json

import pytest

import statsengine
from statsengine import AnalyticsEngine, ResultCache
from statsengine.helpers.configs import ForecastOptions
from statsengine.helpers.errors import ConfigurationError


@pytest.fixture
def engine():
    return AnalyticsEngine(cache=ResultCache(), n_jobs=2)


def test_cache_hit_returns_equal_copy(engine, random_walk):
    first = engine.forecast(random_walk, {"horizon": 5})
    second = engine.forecast(random_walk, ForecastOptions(horizon=5))

    assert engine.cache.misses == 1
    assert engine.cache.hits == 1
    assert first.to_dict() == second.to_dict()

    first.combined.point_forecast[0] = -1.0
    third = engine.forecast(random_walk, {"horizon": 5})
    assert third.combined.point_forecast[0] != -1.0


def test_different_options_miss(engine, random_walk):
    engine.forecast(random_walk, {"horizon": 5})
    engine.forecast(random_walk, {"horizon": 6})
    assert engine.cache.misses == 2
    assert engine.cache.hits == 0


def test_unseeded_random_results_not_cached(engine, three_groups):
    engine.cluster(three_groups)
    engine.cluster(three_groups)
    assert engine.cache.hits == 0
    assert engine.cache.misses == 0

    engine.cluster(three_groups, {"random_state": 3})
    engine.cluster(three_groups, {"random_state": 3})
    assert engine.cache.hits == 1


def test_cache_invalidate(engine, random_walk):
    engine.analyze_volatility(random_walk)
    engine.cache.invalidate()
    engine.analyze_volatility(random_walk)
    assert engine.cache.misses == 2


def test_unknown_option_key(engine, random_walk):
    with pytest.raises(ConfigurationError):
        engine.forecast(random_walk, {"horizon": 5, "season": 7})


def test_idempotent_with_seed(rating_series, three_groups):
    engine = AnalyticsEngine()

    anomalies = [engine.detect_anomalies(rating_series, {"random_state": 11}) for _ in range(2)]
    assert [r.to_dict() for r in anomalies[0]] == [r.to_dict() for r in anomalies[1]]

    clusters = [engine.cluster(three_groups, {"algorithm": "gmm", "random_state": 11}) for _ in range(2)]
    assert clusters[0].to_dict() == clusters[1].to_dict()


def test_results_are_json_serialisable(engine, rating_series, weekly_activity, three_groups):
    results = [
        engine.forecast(rating_series, {"horizon": 3}),
        engine.analyze_volatility(rating_series, {"model": "garch", "include_regimes": True}),
        engine.analyze_correlations({"a": rating_series, "b": rating_series.iloc[::-1].to_numpy()}),
        engine.cluster(three_groups, {"algorithm": "gmm", "random_state": 0}),
    ]
    results += engine.detect_patterns(weekly_activity)
    results += engine.detect_anomalies(rating_series, {"random_state": 0})

    for result in results:
        json.dumps(result.to_dict())


def test_run_batch_isolates_failures(engine, rating_series):
    entities = {
        "magnus": rating_series,
        "newcomer": [1500.0, 1510.0, 1490.0],
    }
    results = engine.run_batch(
        entities, ["forecast", "anomalies"], {"forecast": {"horizon": 4}, "anomalies": {"random_state": 0}}
    )
    by_entity = {result.entity: result for result in results}

    assert set(by_entity) == {"magnus", "newcomer"}
    assert by_entity["magnus"].ok
    assert len(by_entity["magnus"].value["forecast"]["combined"]["point_forecast"]) == 4
    assert isinstance(by_entity["magnus"].value["anomalies"], list)

    failed = by_entity["newcomer"]
    assert not failed.ok
    assert failed.value is None
    assert failed.error["type"] == "InsufficientDataError"
    assert "forecast" in failed.error["message"]


def test_run_batch_rejects_unknown_analysis(engine, rating_series):
    with pytest.raises(ConfigurationError):
        engine.run_batch({"magnus": rating_series}, ["forecast", "openings"])

    with pytest.raises(ConfigurationError):
        engine.run_batch({"magnus": rating_series}, ["forecast"], {"volatility": {}})

    with pytest.raises(ConfigurationError):
        engine.run_batch({"magnus": rating_series}, ["forecast"], {"forecast": {"steps": 3}})


def test_submit_returns_future(engine, rating_series):
    future = engine.submit("volatility", rating_series, {"model": "ewma"})
    estimate = future.result(timeout=60)
    engine.shutdown()

    assert len(estimate.series) == len(rating_series)


def test_module_level_functions(linear_monthly):
    forecast = statsengine.forecast(linear_monthly, {"horizon": 6})
    assert forecast.horizon == 6
    assert statsengine.detect_patterns(linear_monthly) == []
    assert statsengine.get_default_engine() is statsengine.get_default_engine()


def test_result_cache_primitives():
    cache = ResultCache(expiration_time=60)
    key = ResultCache.make_key("forecast", [1.0, 2.0, 3.0], {"horizon": 3})

    assert key.startswith("forecast:")
    assert key == ResultCache.make_key("forecast", [1.0, 2.0, 3.0], {"horizon": 3})
    assert key != ResultCache.make_key("forecast", [1.0, 2.0, 3.5], {"horizon": 3})

    assert cache.get(key) is None
    cache.set(key, {"point": [1.0]})
    assert cache.get(key) == {"point": [1.0]}
    cache.delete(key)
    assert cache.get(key) is None


def test_convergence_warning_survives_copy():
    import copy

    from statsengine.helpers.errors import ConvergenceWarning, error_marker

    warning = ConvergenceWarning("garch", "optimiser stopped", iterations=12, fallback="ewma")
    clone = copy.deepcopy(warning)

    assert clone.to_dict() == warning.to_dict()
    assert clone.iterations == 12
    assert error_marker(ValueError("bad")) == {"type": "ValueError", "message": "bad"}


def test_idempotent_deterministic_analyses(rating_series, weekly_activity, rng):
    engine = AnalyticsEngine()
    series_set = {
        "blitz": rating_series.to_numpy(),
        "rapid": rating_series.to_numpy() * 0.5 + rng.normal(0.0, 5.0, len(rating_series)),
    }
    calls = [
        lambda: engine.forecast(rating_series, {"horizon": 5}),
        lambda: engine.analyze_volatility(rating_series, {"model": "garch"}),
        lambda: engine.analyze_volatility(rating_series, {"model": "ewma", "include_regimes": True}),
        lambda: engine.analyze_correlations(series_set, {"analysis_type": "partial"}),
    ]
    for call in calls:
        assert call().to_dict() == call().to_dict()

    first = [pattern.to_dict() for pattern in engine.detect_patterns(weekly_activity)]
    second = [pattern.to_dict() for pattern in engine.detect_patterns(weekly_activity)]
    assert first and first == second


def test_cache_counters_consistent_across_threads():
    from concurrent.futures import ThreadPoolExecutor

    cache = ResultCache()
    keys = [ResultCache.make_key("volatility", [float(i)], {}) for i in range(5)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: cache.get_or_create(keys[i % 5], lambda: i), range(200)))

    assert cache.hits + cache.misses == 200
    assert cache.misses >= 5
