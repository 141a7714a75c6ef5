"""
Volatility regime segmentation.
"""

from typing import List

import numpy as np
import pandas as pd

from statsengine.helpers.entities import VolatilityRegime
from statsengine.timeSeriesProcessing.periodicity.algorithmPeriodicityDetector import (
    PatternDetector,
)

__version__ = "1.0.0"

LEVELS = ("low", "medium", "high")

# Relative spread under which the volatility path counts as flat
FLAT_TOLERANCE = 1e-9


def detect_regimes(volatility: pd.Series, min_regime_length: int = 5) -> List[VolatilityRegime]:
    """
    Split a volatility path into contiguous low/medium/high regimes.

    Levels come from tertile thresholds of the clipped path. Runs shorter
    than min_regime_length are merged into the preceding regime (the first
    run into the following one). Regimes cover [0, n) without overlap.
    """
    values = volatility.to_numpy(dtype=float)
    n = len(values)
    if n == 0:
        return []

    cleaned = PatternDetector.preprocess(pd.Series(values)).to_numpy()
    spread = float(np.max(cleaned) - np.min(cleaned))
    if spread <= FLAT_TOLERANCE * max(1.0, float(np.abs(cleaned).max())):
        return [_regime(values, 0, n - 1, "low")]

    low_cut, high_cut = np.quantile(cleaned, [1.0 / 3.0, 2.0 / 3.0])
    codes = np.where(cleaned <= low_cut, 0, np.where(cleaned <= high_cut, 1, 2))

    runs = _runs(codes)
    runs = _merge_short_runs(runs, min_regime_length)

    return [_regime(values, start, end, LEVELS[code]) for code, start, end in runs]


def _runs(codes: np.ndarray) -> List[List[int]]:
    runs = []
    start = 0
    for i in range(1, len(codes) + 1):
        if i == len(codes) or codes[i] != codes[start]:
            runs.append([int(codes[start]), start, i - 1])
            start = i
    return runs


def _merge_short_runs(runs: List[List[int]], min_length: int) -> List[List[int]]:
    merged = [list(run) for run in runs]
    while len(merged) > 1:
        short = next(
            (i for i, (_, start, end) in enumerate(merged) if end - start + 1 < min_length),
            None,
        )
        if short is None:
            break
        if short == 0:
            merged[1][1] = merged[0][1]
            del merged[0]
        else:
            merged[short - 1][2] = merged[short][2]
            del merged[short]
        merged = _join_same_level(merged)
    return merged


def _join_same_level(runs: List[List[int]]) -> List[List[int]]:
    joined = [runs[0]]
    for code, start, end in runs[1:]:
        if code == joined[-1][0]:
            joined[-1][2] = end
        else:
            joined.append([code, start, end])
    return joined


def _regime(values: np.ndarray, start: int, end: int, level: str) -> VolatilityRegime:
    return VolatilityRegime(
        start=start,
        end=end,
        level=level,
        mean_volatility=float(np.mean(values[start : end + 1])),
    )
