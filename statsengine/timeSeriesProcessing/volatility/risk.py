"""
Risk metrics from a change series and its one-step conditional volatility.

All losses are reported as positive numbers in the units of the change
series (rating points for differences, fractions for log/percent changes).
"""

from typing import Any, Dict

import numpy as np
from scipy.stats import norm

from statsengine.helpers.utils import VARIANCE_FLOOR

__version__ = "1.0.0"

# Relative VaR thresholds for the risk level label
HIGH_RISK_RATIO = 0.2
MEDIUM_RISK_RATIO = 0.1


def compute_risk_metrics(
    returns: np.ndarray, sigma_next: float, confidence_level: float, level_scale: float = 1.0
) -> Dict[str, Any]:
    """
    Parametric and historical Value-at-Risk / Expected Shortfall.

    Args:
        returns: Change series
        sigma_next: One-step conditional volatility
        confidence_level: e.g. 0.95
        level_scale: Typical magnitude of the levels, used to express VaR
                     relative to the series (1.0 for relative changes)

    Returns:
        Dict with var/es (parametric and historical), return_to_risk and risk_level
    """
    returns = np.asarray(returns, dtype=float)
    mean = float(np.mean(returns))
    z = norm.ppf(confidence_level)

    parametric_var = z * sigma_next - mean
    parametric_es = sigma_next * norm.pdf(z) / (1.0 - confidence_level) - mean

    cutoff = float(np.quantile(returns, 1.0 - confidence_level))
    tail = returns[returns <= cutoff]
    historical_var = -cutoff
    historical_es = -float(np.mean(tail)) if len(tail) else historical_var

    std = float(np.std(returns))
    return_to_risk = mean / std if std > np.sqrt(VARIANCE_FLOOR) else 0.0

    relative_var = max(parametric_var, 0.0) / max(abs(level_scale), VARIANCE_FLOOR)

    return {
        "confidence_level": confidence_level,
        "parametric_var": float(parametric_var),
        "parametric_es": float(parametric_es),
        "historical_var": float(historical_var),
        "historical_es": float(historical_es),
        "return_to_risk": float(return_to_risk),
        "relative_var": float(relative_var),
        "risk_level": categorize_risk_level(relative_var),
    }


def categorize_risk_level(relative_var: float) -> str:
    if relative_var > HIGH_RISK_RATIO:
        return "high"
    elif relative_var > MEDIUM_RISK_RATIO:
        return "medium"
    return "low"
