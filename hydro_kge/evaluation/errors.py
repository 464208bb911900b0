"""Error conditions raised by the KGE evaluation routines.

Every error derives from ``KGEError`` (itself a ``ValueError``) so batch
pipelines can catch the whole family at once, or branch on the exact
precondition that failed.
"""


class KGEError(ValueError):
    """Base class for all KGE evaluation failures."""


class InvalidArgumentCount(KGEError, TypeError):
    """Observed or simulated series was not supplied."""


class InvalidWeights(KGEError):
    """Weights are not a 3-element numeric vector."""


class InvalidWarmup(KGEError):
    """Warmup is not a single non-negative integer."""


class ShapeMismatch(KGEError):
    """Observed and simulated series cannot be reconciled to equal length."""


class DegenerateInput(KGEError):
    """Components are undefined for the valid part of the series."""


__all__ = [
    "KGEError",
    "InvalidArgumentCount",
    "InvalidWeights",
    "InvalidWarmup",
    "ShapeMismatch",
    "DegenerateInput",
]
