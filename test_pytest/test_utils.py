import numpy as np
import pandas as pd
import pytest

from statsengine.helpers.utils import infer_interval_days, interval_to_days, to_json_safe


@pytest.mark.parametrize("unit", ["s", "ms", "us", "ns"])
def test_daily_interval(unit):
    index = pd.date_range("2023-01-01", periods=10, freq="D").as_unit(unit)
    assert infer_interval_days(index) == pytest.approx(1.0)


def test_hourly_interval():
    index = pd.date_range("2023-01-01", periods=48, freq="h")
    assert infer_interval_days(index) == pytest.approx(1.0 / 24.0)


def test_interval_uses_median_step():
    index = pd.DatetimeIndex(["2023-01-01", "2023-01-02", "2023-01-03", "2023-01-10"])
    assert infer_interval_days(index) == pytest.approx(1.0)


def test_interval_needs_datetime_index():
    assert infer_interval_days(pd.RangeIndex(10)) is None
    assert infer_interval_days(pd.DatetimeIndex(["2023-01-01"])) is None


def test_interval_codes():
    assert interval_to_days("1d") == 1.0
    with pytest.raises(ValueError):
        interval_to_days("2d")


def test_json_safe_conversion():
    converted = to_json_safe({1: np.float64(0.5), "values": np.arange(3), "flag": np.bool_(True)})
    assert converted == {"1": 0.5, "values": [0, 1, 2], "flag": True}


def test_base_method_module_documented():
    from statsengine.timeSeriesProcessing.baseModule import baseMethod

    assert baseMethod.__doc__ is not None
    assert baseMethod.__doc__.strip().startswith("Base class shared by every analytics method")
