from types import SimpleNamespace

import numpy as np
import pytest

from statsengine.helpers.configs import ForecastModel, ForecastOptions
from statsengine.helpers.errors import ConfigurationError, ConvergenceWarning, InsufficientDataError
from statsengine.timeSeriesProcessing.forecasting.algorithmForecast import ForecastEngine
from statsengine.timeSeriesProcessing.forecasting.methods.baseForecastMethod import (
    BaseForecastMethod,
)


def _assert_valid_bounds(result):
    point = np.asarray(result.point_forecast)
    lower = np.asarray(result.lower_bound)
    upper = np.asarray(result.upper_bound)

    assert np.all(lower <= point + 1e-9)
    assert np.all(point <= upper + 1e-9)
    width = upper - lower
    assert np.all(np.diff(width) >= -1e-9)


def test_linear_trend_extrapolated(linear_monthly):
    forecast = ForecastEngine().run(linear_monthly, ForecastOptions(horizon=6))

    expected = 1500.0 + 23.0 + 6.0
    assert forecast.horizon == 6
    assert abs(forecast.combined.point_forecast[5] - expected) / expected < 0.01
    assert "holt-winters" in forecast.diagnostics["excluded_models"]
    assert forecast.timestamps[0].startswith("2021-01-01")


def test_bounds_and_weights(random_walk):
    forecast = ForecastEngine().run(random_walk, ForecastOptions(horizon=12))

    _assert_valid_bounds(forecast.combined)
    for member in forecast.members:
        _assert_valid_bounds(member)
        assert member.horizon == 12

    weights = np.array(list(forecast.weights.values()))
    assert weights.sum() == pytest.approx(1.0, abs=1e-6)
    assert np.all(weights >= 0.05 - 1e-9)
    assert set(forecast.weights) == {member.model_name for member in forecast.members}


def test_seasonal_models_excluded_without_two_cycles(random_walk):
    options = ForecastOptions(horizon=5, seasonal_period=30)
    forecast = ForecastEngine().run(random_walk.iloc[:40], options)

    excluded = forecast.diagnostics["excluded_models"]
    assert "naive-seasonal" in excluded
    assert "holt-winters" in excluded
    assert "naive-seasonal" not in forecast.weights


def test_seasonal_period_from_options_used(weekly_activity):
    options = ForecastOptions(models=["naive-seasonal", "holt-winters"], horizon=14, seasonal_period=7)
    forecast = ForecastEngine().run(weekly_activity, options)

    assert forecast.diagnostics["seasonal_period"] == 7
    naive = forecast.member("naive-seasonal")
    assert naive.point_forecast[:7] == pytest.approx(naive.point_forecast[7:])


def test_only_seasonal_models_on_short_series_fails(linear_monthly):
    options = ForecastOptions(models=[ForecastModel.NAIVE_SEASONAL], horizon=3)
    with pytest.raises(InsufficientDataError):
        ForecastEngine().run(linear_monthly.iloc[:12], options)


def test_below_minimum_length():
    with pytest.raises(InsufficientDataError):
        ForecastEngine().run([1500.0] * 9, ForecastOptions(horizon=3))


def test_weights_inverse_error():
    weights = ForecastEngine.compute_weights({"a": 0.1, "b": 0.2}, weight_floor=0.0)
    assert weights["a"] == pytest.approx(2.0 / 3.0)
    assert weights["b"] == pytest.approx(1.0 / 3.0)


def test_weights_perfect_fit_and_ties():
    perfect = ForecastEngine.compute_weights({"a": 0.0, "b": 0.3, "c": 0.0}, weight_floor=0.05)
    assert perfect["a"] == pytest.approx(perfect["c"])
    assert perfect["b"] == pytest.approx(0.05)
    assert sum(perfect.values()) == pytest.approx(1.0)

    tied = ForecastEngine.compute_weights({"a": 0.2, "b": 0.2}, weight_floor=0.05)
    assert tied == {"a": pytest.approx(0.5), "b": pytest.approx(0.5)}


@pytest.mark.parametrize(
    "options",
    [
        {"horizon": 0},
        {"confidence_level": 1.0},
        {"models": ["prophet"]},
        {"interval_growth": 0.9},
        {"seasonal_period": 1},
    ],
)
def test_invalid_options(options):
    with pytest.raises(ConfigurationError):
        ForecastOptions.from_dict(options)


def test_model_aliases():
    options = ForecastOptions(models=["ETS", "linear", "holt_winters"])
    assert options.models == (
        ForecastModel.EXPONENTIAL_SMOOTHING,
        ForecastModel.TREND_EXTRAPOLATION,
        ForecastModel.HOLT_WINTERS,
    )


def test_member_convergence_recorded(random_walk):
    forecast = ForecastEngine().run(random_walk, {"horizon": 5})

    non_converged = []
    for member in forecast.members:
        converged = member.fit_diagnostics["converged"]
        assert isinstance(converged, bool)
        if not converged:
            non_converged.append(member.model_name)
            assert isinstance(member.fit_diagnostics["convergence_warning"], ConvergenceWarning)
    assert forecast.diagnostics["non_converged_models"] == non_converged

    if "arima" in forecast.weights:
        arima = forecast.member("arima")
        assert isinstance(arima.fit_diagnostics["params"]["converged"], bool)


def test_optimizer_converged_reads_fit_result():
    assert BaseForecastMethod.optimizer_converged(SimpleNamespace(mle_retvals=None))
    assert BaseForecastMethod.optimizer_converged(SimpleNamespace(mle_retvals={"success": True}))
    assert not BaseForecastMethod.optimizer_converged(
        SimpleNamespace(mle_retvals={"success": False})
    )
