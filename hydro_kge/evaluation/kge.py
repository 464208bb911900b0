"""Kling-Gupta Efficiency with weighted components, warmup and missing values.

KGE = 1 - sqrt[(w_r*(r-1))^2 + (w_a*(alpha-1))^2 + (w_b*(beta-1))^2]

where:
    r     = Pearson correlation between obs and sim
    alpha = std(sim) / std(obs)  (sample standard deviations, n-1)
    beta  = mean(sim) / mean(obs)

Missing observations are encoded as negative values (canonically -999). The
sentinel is area-scaled upstream, so every negative observation is treated as
missing, not only an exact -999. Simulated values are never screened.

Reference:
    Gupta, H. V., Kling, H., Yilmaz, K. K., & Martinez, G. F. (2009).
    Decomposition of the mean squared error and NSE performance criteria:
    Implications for improving hydrological modelling. Journal of Hydrology,
    377(1-2), 80-91. https://doi.org/10.1016/j.jhydrol.2009.08.003
"""

from numbers import Integral
from typing import NamedTuple, Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike

from ..config.settings import KGEConfig
from ..utils.logger import setup_logger
from .errors import (
    DegenerateInput,
    InvalidArgumentCount,
    InvalidWarmup,
    InvalidWeights,
)
from .shapes import contains_text, reconcile_shapes

logger = setup_logger("kge_evaluation")

MISSING_VALUE = -999.0


class KGEResult(NamedTuple):
    """Outcome of ``evaluate_kge``; unpacks as ``val, c, w``."""

    value: float
    components: np.ndarray
    weights: np.ndarray

    @property
    def r(self) -> float:
        return float(self.components[0])

    @property
    def alpha(self) -> float:
        return float(self.components[1])

    @property
    def beta(self) -> float:
        return float(self.components[2])


def validate_weights(weights: ArrayLike) -> np.ndarray:
    """Return weights as a flat array of 3 floats.

    Accepts a flat sequence of 3 numbers, a 3x1 column or a 1x3 row.

    Raises:
        InvalidWeights: For any other size, layout or non-numeric content.
    """
    try:
        raw = np.asarray(weights)
        if contains_text(raw):
            raise ValueError("text values are not numeric")
        w = np.array(raw, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidWeights(f"Weights should be 3 numeric values: {exc}") from exc

    if w.size != 3 or w.ndim > 2 or (w.ndim == 2 and min(w.shape) != 1):
        raise InvalidWeights(
            f"Weights should be a 3x1 or 1x3 vector, got shape {w.shape}"
        )
    return w.reshape(-1)


def validate_warmup(warmup: object) -> int:
    """Return warmup as a plain non-negative int.

    Raises:
        InvalidWarmup: If warmup is not a single non-negative integer scalar.
    """
    if np.ndim(warmup) != 0:
        raise InvalidWarmup(
            f"Warm up period should be a 1x1 scalar, got shape {np.shape(warmup)}"
        )
    if isinstance(warmup, np.ndarray):
        warmup = warmup.item()
    if isinstance(warmup, bool) or not isinstance(warmup, Integral):
        raise InvalidWarmup(
            f"Warm up period should be an integer, got {type(warmup).__name__}"
        )
    if warmup < 0:
        raise InvalidWarmup(f"Warm up period should be non-negative, got {warmup}")
    return int(warmup)


def valid_mask(obs: ArrayLike) -> np.ndarray:
    """Boolean mask of usable observations: ``True`` where ``obs >= 0``.

    Any negative value marks a missing observation. NaN fails the comparison
    and is therefore excluded as well.

    Examples:
        >>> valid_mask([1.0, -999.0, 0.0, -0.5])
        array([ True, False,  True, False])
    """
    with np.errstate(invalid="ignore"):
        return np.asarray(obs, dtype=float) >= 0


def _sample_std(values: np.ndarray) -> float:
    """Sample standard deviation (n-1); NaN for fewer than two values."""
    if values.size < 2:
        return np.nan
    return float(np.std(values, ddof=1))


def _pearson_r(x: np.ndarray, y: np.ndarray) -> float:
    """Pearson correlation; NaN when either series has no spread."""
    if x.size < 2:
        return np.nan
    dx = x - x.mean()
    dy = y - y.mean()
    with np.errstate(divide="ignore", invalid="ignore"):
        r = np.sum(dx * dy) / np.sqrt(np.sum(dx**2) * np.sum(dy**2))
    # Rounding can push |r| marginally above 1
    return float(np.clip(r, -1.0, 1.0)) if np.isfinite(r) else float(r)


def _ratio(numerator: float, denominator: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


def kge_components(obs: np.ndarray, sim: np.ndarray) -> Tuple[float, float, float]:
    """Compute ``(r, alpha, beta)`` over paired, already filtered series.

    Division by zero is not guarded: a constant or zero-mean ``obs`` yields
    inf or NaN components.
    """
    if obs.size == 0:
        return np.nan, np.nan, np.nan

    r = _pearson_r(obs, sim)
    alpha = _ratio(_sample_std(sim), _sample_std(obs))
    beta = _ratio(np.mean(sim), np.mean(obs))
    return r, alpha, beta


def _check_degenerate(obs: np.ndarray) -> Optional[str]:
    """Describe why components are undefined for ``obs``, or return None."""
    if obs.size == 0:
        return "no valid observations remain after warmup and missing-value filtering"
    if obs.size < 2:
        return "fewer than two valid observations; sample statistics are undefined"
    # Valid observations are non-negative, so a zero mean implies zero variance
    if np.all(obs == obs[0]):
        return "observed series has zero variance over the valid time steps"
    return None


def evaluate_kge(
    obs: ArrayLike,
    sim: ArrayLike,
    weights: Optional[ArrayLike] = None,
    warmup: Optional[int] = None,
    *,
    config: Optional[KGEConfig] = None,
) -> KGEResult:
    """Calculate the weighted Kling-Gupta Efficiency and its components.

    Explicit ``weights`` and ``warmup`` take precedence over ``config``; when
    neither is given the defaults ``[1, 1, 1]`` and ``0`` apply.

    Args:
        obs: Observed time series; negative values mark missing data
        sim: Simulated time series of the same length
        weights: Weights of the r, alpha and beta components (3 values)
        warmup: Number of leading time steps to discard from both series
        config: Optional evaluation settings

    Returns:
        KGEResult with the efficiency value, the components ``[r, alpha, beta]``
        and the weights actually applied.

    Raises:
        InvalidArgumentCount: If ``obs`` or ``sim`` is missing
        InvalidWeights: If weights are not a 3-element vector
        InvalidWarmup: If warmup is not a non-negative integer scalar
        ShapeMismatch: If the series are not of equal size
        DegenerateInput: If ``config.on_degenerate == "raise"`` and the
            components are undefined

    Examples:
        >>> result = evaluate_kge([1, 2, 3, 4, 5], [2, 4, 6, 8, 10])
        >>> round(result.value, 5), result.components.tolist()
        (-0.41421, [1.0, 2.0, 2.0])
    """
    if obs is None or sim is None:
        raise InvalidArgumentCount("Not enough input arguments: obs and sim are both required")

    config = config or KGEConfig()
    w = validate_weights(config.weights if weights is None else weights)
    n_warmup = validate_warmup(config.warmup if warmup is None else warmup)

    obs_arr, sim_arr = reconcile_shapes(obs, sim)

    obs_arr = obs_arr[n_warmup:]
    sim_arr = sim_arr[n_warmup:]

    idx = valid_mask(obs_arr)
    obs_valid = obs_arr[idx]
    sim_valid = sim_arr[idx]
    logger.debug(
        "Evaluating KGE on %d time steps (%d valid, warmup=%d)",
        obs_arr.size,
        obs_valid.size,
        n_warmup,
    )

    reason = _check_degenerate(obs_valid)
    if reason is not None:
        if config.on_degenerate == "raise":
            raise DegenerateInput(f"KGE is undefined: {reason}")
        logger.debug("Degenerate input, components may be NaN or inf: %s", reason)

    components = np.array(kge_components(obs_valid, sim_valid))
    with np.errstate(invalid="ignore"):
        value = 1.0 - np.sqrt(np.sum((w * (components - 1.0)) ** 2))

    return KGEResult(value=float(value), components=components, weights=w)


__all__ = [
    "MISSING_VALUE",
    "KGEResult",
    "evaluate_kge",
    "kge_components",
    "valid_mask",
    "validate_warmup",
    "validate_weights",
]
