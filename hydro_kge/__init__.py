"""hydro_kge - Kling-Gupta Efficiency for hydrological model evaluation."""

__version__ = "0.1.0"
__description__ = "Weighted Kling-Gupta Efficiency with warmup and missing-value handling"

from hydro_kge.config.settings import KGEConfig, Settings
from hydro_kge.evaluation import (
    KGEResult,
    evaluate_kge,
    evaluate_many,
    reconcile_shapes,
)

__all__ = [
    "Settings",
    "KGEConfig",
    "KGEResult",
    "evaluate_kge",
    "evaluate_many",
    "reconcile_shapes",
]
