"""Configuration management for KGE evaluation."""

import logging
import math
from pathlib import Path
from typing import Any, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, StrictFloat, field_validator

from ..utils.logger import remove_file_handlers, setup_logger


class KGEConfig(BaseModel):
    """Settings of a single KGE evaluation."""

    weights: List[StrictFloat] = Field(
        default=[1.0, 1.0, 1.0],
        description="Weights of the correlation, variability and bias components",
    )
    warmup: int = Field(
        default=0,
        ge=0,
        strict=True,
        description="Number of leading time steps excluded from evaluation",
    )
    on_degenerate: Literal["nan", "raise"] = Field(
        default="nan",
        description="Propagate undefined components as NaN, or raise DegenerateInput",
    )

    @field_validator("weights", mode="before")
    @classmethod
    def flatten_weights(cls, v: Any) -> Any:
        """Accept row ``[[a, b, c]]`` and column ``[[a], [b], [c]]`` layouts."""
        if not isinstance(v, (list, tuple)) or not v:
            return v
        if not all(isinstance(row, (list, tuple)) for row in v):
            return v
        # Ragged or matrix layouts are left nested so the length check rejects them
        if len(v) == 1 or all(len(row) == 1 for row in v):
            return [item for row in v for item in row]
        return v

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: List[float]) -> List[float]:
        """Validate that exactly three finite weights are given."""
        if len(v) != 3:
            raise ValueError(f"weights must contain exactly 3 values, got {len(v)}")
        if not all(math.isfinite(w) for w in v):
            raise ValueError("weights must be finite numbers")
        return v


class BatchConfig(BaseModel):
    """Settings for evaluating many gauges in one run."""

    n_workers: Optional[int] = Field(
        default=1,
        ge=1,
        description="Worker processes; None uses all CPUs but one",
    )
    show_progress: bool = Field(default=False)


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=None)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate the level against the standard logging level names."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"level must be a standard logging level name, got {v!r}")
        return level


class Settings(BaseModel):
    """Main settings class containing all configuration."""

    kge: KGEConfig = Field(default_factory=KGEConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, config_path: Path) -> "Settings":
        """Load settings from a YAML file."""
        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)
        return cls(**(config_dict or {}))

    def configure_logging(self) -> None:
        """Apply the logging section to the project logger.

        File handlers from earlier calls are replaced, so only the configured
        ``log_file`` receives output.
        """
        remove_file_handlers()
        setup_logger("settings", level=self.logging.level, log_file=self.logging.log_file)

    def to_yaml(self, output_path: Path) -> None:
        """Save settings to a YAML file."""
        with open(output_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False
            )


# Create default settings instance
default_settings = Settings()
