import numpy as np
import pandas as pd
import pytest

from statsengine.helpers.configs import ReturnType, VolatilityModel, VolatilityOptions
from statsengine.helpers.errors import (
    ConfigurationError,
    ConvergenceWarning,
    InsufficientDataError,
    ValidationError,
)
from statsengine.timeSeriesProcessing.volatility.algorithmVolatility import VolatilityAnalyzer
from statsengine.timeSeriesProcessing.volatility.regime import detect_regimes
from statsengine.timeSeriesProcessing.volatility.risk import categorize_risk_level, compute_risk_metrics


@pytest.mark.parametrize("model", list(VolatilityModel))
def test_series_length_and_non_negative(rating_series, model):
    estimate = VolatilityAnalyzer().run(rating_series, VolatilityOptions(model=model, horizon=10))

    assert len(estimate.series) == len(rating_series)
    assert min(estimate.series) >= 0.0
    assert len(estimate.forecast) == 10
    assert estimate.risk_metrics is not None


def test_constant_series_has_no_volatility(constant_series):
    estimate = VolatilityAnalyzer().run(constant_series)

    assert max(estimate.series) < 1e-5
    assert estimate.summary["current"] < 1e-5
    assert estimate.risk_metrics["risk_level"] == "low"


def test_garch_falls_back_to_ewma(constant_series):
    estimate = VolatilityAnalyzer().run(constant_series, {"model": "garch"})

    assert estimate.model == VolatilityModel.EWMA
    assert estimate.diagnostics["fallback"] == "ewma"
    assert estimate.diagnostics["requested_model"] == "garch"
    assert isinstance(estimate.convergence_warning, ConvergenceWarning)
    assert estimate.convergence_warning.fallback == "ewma"


def test_garch_result_is_garch_or_flagged_fallback(rng):
    # volatility clustering: calm, turbulent, calm
    scales = np.concatenate([np.full(100, 2.0), np.full(100, 12.0), np.full(100, 2.0)])
    levels = 1500.0 + np.cumsum(rng.normal(0.0, 1.0, 300) * scales)
    estimate = VolatilityAnalyzer().run(levels, {"model": "garch", "horizon": 20})

    if estimate.model == VolatilityModel.GARCH:
        assert estimate.convergence_warning is None
        assert 0.0 <= estimate.persistence < 1.0
    else:
        assert estimate.convergence_warning is not None
    assert len(estimate.forecast) == 20


def test_ewma_reacts_to_turbulence(rng):
    calm = rng.normal(0.0, 1.0, 60)
    wild = rng.normal(0.0, 20.0, 40)
    levels = 1500.0 + np.cumsum(np.concatenate([calm, wild]))
    estimate = VolatilityAnalyzer().run(levels)

    sigma = np.asarray(estimate.series)
    assert sigma[-1] > 3 * sigma[55]
    assert estimate.summary["trend"] == "increasing"
    assert estimate.persistence == pytest.approx(0.94)


def test_historical_persistence(rating_series):
    estimate = VolatilityAnalyzer().run(rating_series, {"model": "historical", "window": 10})
    assert estimate.persistence == pytest.approx(0.9)


def test_regimes_cover_series(rng):
    calm = rng.normal(0.0, 1.0, 50)
    wild = rng.normal(0.0, 15.0, 50)
    levels = 1500.0 + np.cumsum(np.concatenate([calm, wild, calm]))
    estimate = VolatilityAnalyzer().run(levels, {"include_regimes": True})

    regimes = estimate.regimes
    assert regimes[0].start == 0
    assert regimes[-1].end == len(levels) - 1
    for previous, current in zip(regimes, regimes[1:]):
        assert current.start == previous.end + 1
        assert current.level != previous.level
    assert {regime.level for regime in regimes} <= {"low", "medium", "high"}


def test_flat_volatility_single_low_regime():
    regimes = detect_regimes(pd.Series([0.5] * 40))
    assert len(regimes) == 1
    assert regimes[0].level == "low"
    assert regimes[0].length == 40


def test_short_runs_merged():
    path = pd.Series([1.0] * 10 + [3.0] * 2 + [1.0] * 10 + [5.0] * 10)
    regimes = detect_regimes(path, min_regime_length=5)
    assert all(regime.length >= 5 for regime in regimes)


def test_log_returns_need_positive_levels():
    levels = np.linspace(-10.0, 10.0, 40)
    with pytest.raises(ValidationError):
        VolatilityAnalyzer().run(levels, {"return_type": ReturnType.LOG})


def test_too_short():
    with pytest.raises(InsufficientDataError):
        VolatilityAnalyzer().run(list(range(29)))


def test_risk_metrics_ordering(rng):
    returns = rng.normal(0.0, 1.0, 500)
    metrics = compute_risk_metrics(returns, sigma_next=1.0, confidence_level=0.95)

    assert metrics["parametric_es"] > metrics["parametric_var"] > 0
    assert metrics["historical_es"] >= metrics["historical_var"]
    assert metrics["parametric_var"] == pytest.approx(1.645, abs=0.1)


def test_risk_level_bands():
    assert categorize_risk_level(0.25) == "high"
    assert categorize_risk_level(0.15) == "medium"
    assert categorize_risk_level(0.01) == "low"


@pytest.mark.parametrize("orders", [(2, 1), (1, 0)])
def test_garch_orders(rng, orders):
    p, q = orders
    scales = np.concatenate([np.full(100, 2.0), np.full(100, 12.0), np.full(100, 2.0)])
    levels = 1500.0 + np.cumsum(rng.normal(0.0, 1.0, 300) * scales)
    estimate = VolatilityAnalyzer().run(
        levels, {"model": "garch", "garch_p": p, "garch_q": q, "horizon": 5}
    )

    assert len(estimate.series) == len(levels)
    assert len(estimate.forecast) == 5
    if estimate.model == VolatilityModel.GARCH:
        params = estimate.diagnostics["params"]
        assert (params["p"], params["q"]) == (p, q)
        assert len(params["alpha"]) == p
        assert len(params["beta"]) == q
        assert estimate.persistence == pytest.approx(sum(params["alpha"]) + sum(params["beta"]))
    else:
        assert estimate.diagnostics["fallback"] == "ewma"


@pytest.mark.parametrize("options", [{"garch_p": 0}, {"garch_q": -1}, {"garch_p": 1.5}])
def test_invalid_garch_orders(options):
    with pytest.raises(ConfigurationError):
        VolatilityOptions.from_dict(options)
