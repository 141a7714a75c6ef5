import hashlib
import json
import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd

# Variance floor shared by every analyzer dividing by a dispersion estimate
VARIANCE_FLOOR = 1e-12

# Consistency constant turning MAD into a standard deviation estimate (normal data)
MAD_SCALE = 1.4826

# Length of one sampling step in days, by interval code
INTERVAL_DAYS = {
    "1h": 1.0 / 24.0,
    "3h": 3.0 / 24.0,
    "6h": 0.25,
    "12h": 0.5,
    "1d": 1.0,
    "3d": 3.0,
    "1w": 7.0,
    "1M": 30.4375,
    "3M": 91.3125,
}


def validate_required_locals(required_params: list, input_params: dict):
    """
    Validation through locals() - the most efficient way

    Usage:
        validate_required_locals(['horizon', 'models'], locals())
    """
    missing_params = [
        param
        for param in required_params
        if param not in input_params or input_params[param] is None
    ]
    if missing_params:
        raise ValueError(f"Required parameters missing: {missing_params}")


def to_json_safe(data):
    """
    Convert data to JSON-compatible format

    Args:
        data: Data to convert

    Returns:
        dict or list with JSON-compatible data
    """
    if isinstance(data, Enum):
        return to_json_safe(data.value)
    elif isinstance(data, (str, bool, type(None))):
        return data
    elif isinstance(data, np.bool_):
        return bool(data)
    elif isinstance(data, (int, np.integer)):
        return int(data)
    elif isinstance(data, (float, np.floating)):
        return float(data)
    elif isinstance(data, np.ndarray):
        return [to_json_safe(item) for item in data.tolist()]
    elif isinstance(data, (list, tuple)):
        return [to_json_safe(item) for item in data]
    elif isinstance(data, dict):
        return {str(k): to_json_safe(v) for k, v in data.items()}
    elif isinstance(data, pd.Timestamp):
        return data.isoformat()
    elif hasattr(data, "to_dict"):
        return to_json_safe(data.to_dict())
    else:
        # For objects that cannot be directly serialized
        return str(data)


def content_hash(*parts: Any) -> str:
    """
    Stable SHA-256 digest of arbitrary (JSON-convertible) content.

    Used as the advisory cache key for (operation, data, options).
    """
    payload = json.dumps(to_json_safe(list(parts)), sort_keys=True, default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def robust_scale(values: np.ndarray) -> float:
    """
    Robust dispersion estimate of a 1-D array.

    MAD-based first (breakdown point 50%), then mean absolute deviation,
    then standard deviation. Returns 0.0 for data without dispersion.
    """
    values = np.asarray(values, dtype=float)
    if len(values) < 2:
        return 0.0

    median = np.median(values)
    deviations = np.abs(values - median)

    mad = np.median(deviations)
    if mad > VARIANCE_FLOOR:
        return float(MAD_SCALE * mad)

    # sqrt(pi / 2): mean absolute deviation -> sigma for normal data
    mean_abs = np.mean(deviations)
    if mean_abs > VARIANCE_FLOOR:
        return float(1.2533 * mean_abs)

    std = np.std(values)
    return float(std) if std > VARIANCE_FLOOR else 0.0


def robust_clip(
    data: pd.Series, threshold: float = 3.5
) -> Tuple[pd.Series, Dict[str, Any]]:
    """
    Clip single-point spikes to median +/- threshold * robust scale.

    Args:
        data: Time series
        threshold: Clipping distance in robust standard deviations

    Returns:
        Tuple of clipped series and clipping metadata
    """
    values = data.to_numpy(dtype=float)
    scale = robust_scale(values)
    if scale == 0.0:
        return data.copy(), {"clipped_points": 0, "scale": 0.0}

    median = float(np.median(values))
    lower = median - threshold * scale
    upper = median + threshold * scale
    clipped = np.clip(values, lower, upper)
    n_clipped = int(np.sum(clipped != values))

    if n_clipped:
        logging.debug(f"robust_clip - clipped {n_clipped} points to [{lower:.4f}, {upper:.4f}]")

    return pd.Series(clipped, index=data.index, name=data.name), {
        "clipped_points": n_clipped,
        "scale": scale,
        "bounds": [lower, upper],
    }


def infer_interval_days(index: pd.Index) -> Optional[float]:
    """Median sampling step of a DatetimeIndex in days, None for other indexes."""
    if not isinstance(index, pd.DatetimeIndex) or len(index) < 2:
        return None
    steps = index.to_series().diff().dropna().dt.total_seconds()
    return float(steps.median() / 86400.0)


def interval_to_days(interval: str) -> float:
    """
    Convert an interval code ('1h', '1d', '1w', '1M', ...) to days.

    Raises:
        ValueError: For unsupported interval codes
    """
    try:
        return INTERVAL_DAYS[interval]
    except KeyError:
        supported = list(INTERVAL_DAYS.keys())
        raise ValueError(f"Unsupported interval '{interval}'. Supported: {supported}")


def estimate_n_neighbors(data_len: int) -> int:
    """
    Adaptive estimation of number of neighbors for LOF and k-distance graphs

    - For very short series (<20): 25% of data size
    - For small series (<100): 15% of data size
    - For medium series (<1000): 5% of data size
    - For large series (>=1000): logarithmic growth

    Returns:
        int: Number of neighbors, at least 2 and below data_len
    """
    if data_len < 20:
        base_neighbors = min(5, max(2, int(data_len * 0.25)))
    elif data_len < 100:
        base_neighbors = min(10, max(3, int(data_len * 0.15)))
    elif data_len < 1000:
        base_neighbors = min(30, max(10, int(data_len * 0.05)))
    else:
        base_neighbors = min(100, max(30, int(10 * np.log10(data_len))))

    return max(1, min(data_len - 1, base_neighbors))
