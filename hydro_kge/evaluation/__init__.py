"""Evaluation module for hydrological model assessment."""

from .batch import evaluate_many, evaluate_with_settings, kge_metrics_dataframe
from .errors import (
    DegenerateInput,
    InvalidArgumentCount,
    InvalidWarmup,
    InvalidWeights,
    KGEError,
    ShapeMismatch,
)
from .kge import (
    MISSING_VALUE,
    KGEResult,
    evaluate_kge,
    kge_components,
    valid_mask,
)
from .shapes import reconcile_shapes

__all__ = [
    "evaluate_kge",
    "kge_components",
    "valid_mask",
    "reconcile_shapes",
    "KGEResult",
    "MISSING_VALUE",
    "evaluate_many",
    "evaluate_with_settings",
    "kge_metrics_dataframe",
    "KGEError",
    "InvalidArgumentCount",
    "InvalidWeights",
    "InvalidWarmup",
    "ShapeMismatch",
    "DegenerateInput",
]
