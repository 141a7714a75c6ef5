"""
Input gate shared by every analyzer.

Turns caller input (TimeSeries, pandas objects, numpy arrays, plain
sequences) into clean float pandas structures or raises ValidationError.
"""

import logging
from collections.abc import Mapping
from typing import Any, List, Optional, Sequence

import numpy as np
import pandas as pd

from statsengine.helpers.entities import TimeSeries
from statsengine.helpers.errors import InsufficientDataError, ValidationError
from statsengine.helpers.utils import VARIANCE_FLOOR

__version__ = "1.0.0"


class SeriesValidator:
    """
    Validation gates: non-empty, numeric, finite, minimum length,
    timestamps aligned and strictly increasing, optional variance check.
    """

    def __init__(
        self, min_length: int = 1, require_variance: bool = False, name: str = "series"
    ):
        if min_length < 1:
            raise ValueError(f"min_length must be >= 1, got {min_length}")
        self.min_length = min_length
        self.require_variance = require_variance
        self.name = name

    def __str__(self) -> str:
        return (
            f"SeriesValidator(min_length={self.min_length}, "
            f"require_variance={self.require_variance})"
        )

    def validate(self, series: Any, timestamps: Optional[Sequence[Any]] = None) -> pd.Series:
        """
        Validate a univariate series.

        Args:
            series: TimeSeries, pd.Series, numpy array or sequence of numbers
            timestamps: Optional instants, one per value

        Returns:
            Float pd.Series indexed by DatetimeIndex (timestamped input) or RangeIndex

        Raises:
            ValidationError: If any gate fails
        """
        if series is None:
            raise ValidationError(f"{self.name}: input is None")

        index = None
        name = None
        if isinstance(series, TimeSeries):
            if timestamps is None:
                timestamps = series.timestamps
            name = series.name
            raw = series.values
        elif isinstance(series, pd.Series):
            if timestamps is None and isinstance(series.index, pd.DatetimeIndex):
                index = series.index
            name = series.name
            raw = series.to_numpy()
        elif isinstance(series, pd.DataFrame):
            if series.shape[1] != 1:
                raise ValidationError(
                    f"{self.name}: expected a single column, got {series.shape[1]}"
                )
            return self.validate(series.iloc[:, 0], timestamps)
        elif isinstance(series, (str, bytes, Mapping)):
            raise ValidationError(f"{self.name}: expected numeric sequence, got {type(series).__name__}")
        else:
            raw = series

        values = self._to_float_array(raw)

        if values.ndim != 1:
            raise ValidationError(f"{self.name}: expected 1-D input, got shape {values.shape}")
        if len(values) == 0:
            raise ValidationError(f"{self.name}: empty input")
        if not np.isfinite(values).all():
            n_bad = int((~np.isfinite(values)).sum())
            raise ValidationError(f"{self.name}: {n_bad} non-finite values (NaN or inf)")
        if len(values) < self.min_length:
            raise InsufficientDataError(
                f"{self.name}: length {len(values)} below minimum {self.min_length}"
            )

        if timestamps is not None:
            index = self._validate_timestamps(timestamps, len(values))
        elif index is not None and not (index.is_monotonic_increasing and index.is_unique):
            raise ValidationError(f"{self.name}: timestamps must be strictly increasing")

        if self.require_variance and np.std(values) <= np.sqrt(VARIANCE_FLOOR):
            raise ValidationError(f"{self.name}: series has no variance")

        result = pd.Series(values, index=index if index is not None else pd.RangeIndex(len(values)), name=name)
        logging.debug(f"{self} - accepted {len(result)} points")
        return result

    def validate_matrix(self, features: Any, min_rows: Optional[int] = None) -> pd.DataFrame:
        """
        Validate feature-vector input (M observations x d features).

        1-D input is treated as a single feature column.

        Raises:
            ValidationError: On ragged rows, non-numeric or non-finite values,
                             or fewer than min_rows observations
        """
        min_rows = self.min_length if min_rows is None else min_rows
        if features is None:
            raise ValidationError(f"{self.name}: input is None")

        if isinstance(features, pd.DataFrame):
            columns = [str(c) for c in features.columns]
            values = self._to_float_array(features.to_numpy())
        else:
            if isinstance(features, pd.Series):
                features = features.to_numpy()
            if isinstance(features, (list, tuple)) and features and all(
                isinstance(row, (list, tuple, np.ndarray)) for row in features
            ):
                widths = {len(row) for row in features}
                if len(widths) > 1:
                    raise ValidationError(
                        f"{self.name}: feature vectors have unequal dimensionality {sorted(widths)}"
                    )
            values = self._to_float_array(features)
            columns = None

        if values.ndim == 1:
            values = values.reshape(-1, 1)
        if values.ndim != 2:
            raise ValidationError(f"{self.name}: expected 2-D input, got shape {values.shape}")
        if values.shape[0] == 0 or values.shape[1] == 0:
            raise ValidationError(f"{self.name}: empty input")
        if not np.isfinite(values).all():
            raise ValidationError(f"{self.name}: non-finite values (NaN or inf)")
        if values.shape[0] < min_rows:
            raise InsufficientDataError(
                f"{self.name}: {values.shape[0]} observations below minimum {min_rows}"
            )

        columns = columns or [f"feature_{i}" for i in range(values.shape[1])]
        return pd.DataFrame(values, columns=columns)

    def _to_float_array(self, raw: Any) -> np.ndarray:
        try:
            array = np.asarray(raw)
        except ValueError as e:
            raise ValidationError(f"{self.name}: malformed input ({e})")
        if array.dtype.kind in "USb":
            raise ValidationError(f"{self.name}: non-numeric values ({array.dtype})")
        if array.dtype == object:
            if any(isinstance(v, (str, bytes, bool, np.bool_)) for v in array.ravel()):
                raise ValidationError(f"{self.name}: non-numeric values")
            try:
                array = np.asarray(
                    pd.to_numeric(array.ravel(), errors="raise"), dtype=float
                ).reshape(array.shape)
            except (ValueError, TypeError):
                raise ValidationError(f"{self.name}: non-numeric values")
            return array
        if array.dtype.kind not in "iuf":
            raise ValidationError(f"{self.name}: unsupported dtype {array.dtype}")
        return array.astype(float)

    def _validate_timestamps(self, timestamps: Sequence[Any], length: int) -> pd.DatetimeIndex:
        if len(timestamps) != length:
            raise ValidationError(
                f"{self.name}: {len(timestamps)} timestamps for {length} values"
            )
        try:
            index = pd.DatetimeIndex(pd.to_datetime(list(timestamps)))
        except (ValueError, TypeError) as e:
            raise ValidationError(f"{self.name}: unparseable timestamps ({e})")
        if index.hasnans:
            raise ValidationError(f"{self.name}: missing timestamps")
        if not (index.is_monotonic_increasing and index.is_unique):
            raise ValidationError(f"{self.name}: timestamps must be strictly increasing")
        return index


def validate_collection(
    series_set: Any, min_length: int, require_variance: bool = True
) -> pd.DataFrame:
    """
    Validate a set of aligned series (label -> series, or a sequence).

    Returns:
        DataFrame with one column per label, in input order

    Raises:
        ValidationError: Fewer than two series, unequal lengths, or a failing member
    """
    if isinstance(series_set, pd.DataFrame):
        items: List = [(str(c), series_set[c]) for c in series_set.columns]
    elif isinstance(series_set, Mapping):
        items = [(str(k), v) for k, v in series_set.items()]
    elif isinstance(series_set, (list, tuple)):
        items = [
            (s.name if isinstance(s, TimeSeries) and s.name else f"series_{i}", s)
            for i, s in enumerate(series_set)
        ]
    else:
        raise ValidationError(
            f"Expected mapping or sequence of series, got {type(series_set).__name__}"
        )

    if len(items) < 2:
        raise ValidationError(f"At least 2 series required, got {len(items)}")
    labels = [label for label, _ in items]
    if len(set(labels)) != len(labels):
        raise ValidationError(f"Duplicate series labels: {labels}")

    columns = {}
    for label, series in items:
        validator = SeriesValidator(min_length, require_variance=require_variance, name=label)
        columns[label] = validator.validate(series).to_numpy()

    lengths = {label: len(values) for label, values in columns.items()}
    if len(set(lengths.values())) > 1:
        raise ValidationError(f"Series are not aligned, lengths: {lengths}")

    return pd.DataFrame(columns, columns=labels)
