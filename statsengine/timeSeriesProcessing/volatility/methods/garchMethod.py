"""
GARCH(p, q) volatility fitted with the arch package.
"""

from typing import Any, Dict

import numpy as np
from arch import arch_model

from statsengine.helpers.utils import VARIANCE_FLOOR, validate_required_locals
from statsengine.timeSeriesProcessing.volatility.methods.baseVolatilityMethod import (
    BaseVolatilityMethod,
)

__version__ = "1.1.0"


class GARCHMethod(BaseVolatilityMethod):
    """
    var_t = omega + sum(alpha_i * z_{t-i}^2) + sum(beta_j * var_{t-j}).

    Fitted on standardised changes z = (r - mean) / std with a zero-mean,
    normal-innovation arch model, rescaled to the original units afterwards.
    q = 0 gives a pure ARCH(p) model.

    Returns an error response (error_type "ConvergenceError") when the
    optimiser reports non-convergence, the estimate is non-stationary or the
    changes have no dispersion; the caller decides the fallback.
    """

    DEFAULT_CONFIG = {
        **BaseVolatilityMethod.DEFAULT_CONFIG,
        "max_persistence": 0.999,
        "min_returns": 10,
    }

    def __str__(self) -> str:
        return f"GARCHMethod(max_persistence={self.config['max_persistence']})"

    def _estimate(self, returns: np.ndarray, context_params: Dict[str, Any]) -> Dict[str, Any]:
        validate_required_locals(["horizon", "max_iter", "p", "q"], context_params)
        horizon = int(context_params["horizon"])
        p, q = int(context_params["p"]), int(context_params["q"])

        if len(returns) < self.config["min_returns"]:
            return self._convergence_error(
                f"{len(returns)} changes < {self.config['min_returns']}", 0
            )

        mean = float(np.mean(returns))
        scale = float(np.std(returns))
        if scale <= np.sqrt(VARIANCE_FLOOR):
            return self._convergence_error("changes have no dispersion", 0)
        z = (returns - mean) / scale

        model = arch_model(z, mean="Zero", vol="GARCH", p=p, q=q, dist="normal", rescale=False)
        fit = model.fit(
            disp="off",
            show_warning=False,
            options={"maxiter": int(context_params["max_iter"])},
        )
        iterations = int(fit.optimization_result.get("nit", 0))

        if fit.convergence_flag != 0:
            return self._convergence_error(
                f"optimiser stopped (flag {fit.convergence_flag}): "
                f"{fit.optimization_result.get('message', '')}",
                iterations,
            )

        alpha = [float(fit.params[f"alpha[{i}]"]) for i in range(1, p + 1)]
        beta = [float(fit.params[f"beta[{j}]"]) for j in range(1, q + 1)]
        persistence = sum(alpha) + sum(beta)
        if persistence >= self.config["max_persistence"]:
            return self._convergence_error(
                f"non-stationary estimate persistence={persistence:.4f}", iterations
            )

        forecast_z = fit.forecast(horizon=horizon, reindex=False).variance.to_numpy()[-1]
        variance_z = np.append(np.asarray(fit.conditional_volatility) ** 2, forecast_z[0])

        return {
            "variance": variance_z * scale**2,
            "persistence": persistence,
            "forecast_variance": forecast_z * scale**2,
            "params": {
                "p": p,
                "q": q,
                "omega": float(fit.params["omega"]),
                "alpha": alpha,
                "beta": beta,
                "scale": scale,
                "iterations": iterations,
                "log_likelihood": float(fit.loglikelihood),
            },
        }

    def _convergence_error(self, message: str, iterations: int) -> Dict[str, Any]:
        return {
            "status": "error",
            "message": message,
            "metadata": {
                "method": self.name,
                "error_type": "ConvergenceError",
                "iterations": iterations,
            },
        }
