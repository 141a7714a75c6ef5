import numpy as np
import pandas as pd
import pytest

from statsengine.helpers.entities import TimeSeries
from statsengine.helpers.errors import InsufficientDataError, ValidationError
from statsengine.timeSeriesProcessing.validation.seriesValidator import (
    SeriesValidator,
    validate_collection,
)


def test_plain_list_becomes_float_series():
    series = SeriesValidator(3).validate([1500, 1510, 1495])

    assert series.dtype == float
    assert isinstance(series.index, pd.RangeIndex)
    assert series.tolist() == [1500.0, 1510.0, 1495.0]


def test_time_series_keeps_timestamps():
    data = TimeSeries(values=[1.0, 2.0, 3.0], timestamps=["2024-01-01", "2024-01-02", "2024-01-03"])
    series = SeriesValidator(3).validate(data)

    assert isinstance(series.index, pd.DatetimeIndex)
    assert series.index[0] == pd.Timestamp("2024-01-01")


def test_short_series_is_insufficient_data():
    with pytest.raises(InsufficientDataError):
        SeriesValidator(10).validate(list(range(9)))

    # a length shortfall is also a validation failure
    with pytest.raises(ValidationError):
        SeriesValidator(10).validate(list(range(9)))


@pytest.mark.parametrize(
    "values",
    [
        [1.0, np.nan, 3.0],
        [1.0, np.inf, 3.0],
        ["1500", "1510", "1520"],
        [True, False, True],
        [],
    ],
)
def test_invalid_values_rejected(values):
    with pytest.raises(ValidationError):
        SeriesValidator(1).validate(values)


def test_timestamps_must_increase():
    with pytest.raises(ValidationError):
        SeriesValidator(1).validate([1.0, 2.0, 3.0], timestamps=["2024-01-02", "2024-01-01", "2024-01-03"])

    with pytest.raises(ValidationError):
        SeriesValidator(1).validate([1.0, 2.0, 3.0], timestamps=["2024-01-01", "2024-01-02"])


def test_variance_gate():
    SeriesValidator(3).validate([5.0] * 10)

    with pytest.raises(ValidationError):
        SeriesValidator(3, require_variance=True).validate([5.0] * 10)


def test_validation_error_is_value_error():
    with pytest.raises(ValueError):
        SeriesValidator(1).validate(None)


def test_matrix_validation():
    validator = SeriesValidator(2)

    frame = validator.validate_matrix([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
    assert frame.shape == (3, 2)
    assert list(frame.columns) == ["feature_0", "feature_1"]

    column = validator.validate_matrix([1.0, 2.0, 3.0])
    assert column.shape == (3, 1)

    with pytest.raises(ValidationError):
        validator.validate_matrix([[1.0, 2.0], [3.0]])

    with pytest.raises(InsufficientDataError):
        validator.validate_matrix([[1.0, 2.0]])


def test_collection_alignment_and_labels():
    frame = validate_collection([np.arange(12.0), np.arange(12.0) ** 2], min_length=10)
    assert list(frame.columns) == ["series_0", "series_1"]

    with pytest.raises(ValidationError):
        validate_collection({"a": np.arange(12.0), "b": np.arange(11.0)}, min_length=10)

    with pytest.raises(ValidationError):
        validate_collection({"a": np.arange(12.0)}, min_length=10)

    with pytest.raises(ValidationError):
        validate_collection({"a": np.arange(12.0), "b": np.ones(12)}, min_length=10)
