"""Shape reconciliation for paired observed/simulated time series."""

from typing import Tuple

import numpy as np
from numpy.typing import ArrayLike

from .errors import ShapeMismatch


def contains_text(array: np.ndarray) -> bool:
    """True if ``array`` holds strings or bytes, which must not be cast to float."""
    if array.dtype.kind in "US":
        return True
    if array.dtype.kind == "O":
        return any(isinstance(item, (str, bytes)) for item in array.ravel())
    return False


def _as_series(values: ArrayLike, name: str) -> np.ndarray:
    """Return ``values`` as a float vector, rejecting anything that is not one."""
    try:
        raw = np.asarray(values)
        if contains_text(raw):
            raise ValueError("text values are not numeric")
        array = np.array(raw, dtype=float)
    except (TypeError, ValueError) as exc:
        raise ShapeMismatch(f"{name} is not a numeric time series: {exc}") from exc

    # Row (1, n) and column (n, 1) vectors are both valid layouts
    if array.ndim > 2 or (array.ndim == 2 and min(array.shape) > 1):
        raise ShapeMismatch(
            f"{name} is not a one-dimensional time series (shape {array.shape})"
        )

    return array.reshape(-1)


def reconcile_shapes(obs: ArrayLike, sim: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
    """Bring observed and simulated series into one canonical layout.

    Both inputs may be lists, pandas Series or numpy arrays laid out as flat,
    row or column vectors. Orientation differences are resolved by flattening,
    so the returned arrays are always 1-d and indexed ``0..n-1``.

    Args:
        obs: Observed time series
        sim: Simulated time series

    Returns:
        Tuple ``(obs, sim)`` of 1-d float arrays of equal length. The arrays are
        copies; the inputs are left untouched.

    Raises:
        ShapeMismatch: If either input is not a vector or their sizes differ.

    Examples:
        >>> obs, sim = reconcile_shapes([[1.0], [2.0], [3.0]], [[1.0, 2.0, 3.0]])
        >>> obs.shape, sim.shape
        ((3,), (3,))
    """
    obs_arr = _as_series(obs, "obs")
    sim_arr = _as_series(sim, "sim")

    if obs_arr.size != sim_arr.size:
        raise ShapeMismatch(
            "time series not of equal size: "
            f"obs has {obs_arr.size} values, sim has {sim_arr.size}"
        )

    return obs_arr, sim_arr


__all__ = ["reconcile_shapes"]
