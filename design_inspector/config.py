"""Configuration models and loader for the design inspector.

Loads and validates design-inspector.config.json files. Precedence, highest
first: explicit overrides, environment variables, the config file, defaults.
"""

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError
from .inspector_logging import LogCategory, get_category_logger

logger = get_category_logger(LogCategory.CONFIG)

# Default configuration file name
CONFIG_FILENAME = "design-inspector.config.json"

# Button background colour -> design-system variant name
DEFAULT_VARIANT_COLORS: dict[str, str] = {
    "#007bff": "Primary",
    "#6c757d": "Secondary",
    "transparent": "Outline",
    "#dc3545": "Danger",
    "#28a745": "Success",
    "#ffc107": "Warning",
}


class SimilarityWeights(BaseModel):
    """Weights of the four similarity dimensions; they must sum to 1."""

    structure: float = Field(default=0.6, ge=0.0, le=1.0)
    layout: float = Field(default=0.2, ge=0.0, le=1.0)
    style: float = Field(default=0.1, ge=0.0, le=1.0)
    content: float = Field(default=0.1, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_total(self) -> "SimilarityWeights":
        total = self.structure + self.layout + self.style + self.content
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Similarity weights must sum to 1.0, got {total:.4f}")
        return self


class GroupingConfig(BaseModel):
    """Fuzzy similarity grouping settings."""

    similarity_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    # Added to the threshold for childless containers
    childless_container_threshold_increase: float = Field(default=0.2, ge=0.0, le=1.0)
    # Relative size difference treated as identical
    dimension_tolerance: float = Field(default=0.2, ge=0.0, le=1.0)
    # Child-to-parent size ratio under which a coloured child is a badge
    badge_size_ratio: float = Field(default=0.3, gt=0.0, le=1.0)
    min_group_size: int = Field(default=2, ge=2)
    weights: SimilarityWeights = Field(default_factory=SimilarityWeights)


class DetectionConfig(BaseModel):
    """Exact-signature detection settings."""

    min_group_size: int = Field(default=2, ge=2)
    label_prefix: str = Field(default="C", min_length=1)


class InspectorConfig(BaseModel):
    """Top-level configuration model with validation."""

    grouping: GroupingConfig = Field(default_factory=GroupingConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    palette: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_VARIANT_COLORS)
    )
    default_variant: str = Field(default="Custom")
    strict_validation: bool = Field(default=True)
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v not in {"text", "json"}:
            raise ValueError("log_format must be 'text' or 'json'")
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InspectorConfig":
        """Create from dictionary, wrapping validation failures."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


def _env_overrides() -> dict[str, Any]:
    """Collect DESIGN_INSPECTOR_* environment variables."""
    overrides: dict[str, Any] = {}

    threshold = os.environ.get("DESIGN_INSPECTOR_THRESHOLD")
    if threshold is not None:
        try:
            overrides["grouping.similarity_threshold"] = float(threshold)
        except ValueError as e:
            raise ConfigurationError(
                f"DESIGN_INSPECTOR_THRESHOLD is not a number: {threshold}"
            ) from e

    log_level = os.environ.get("DESIGN_INSPECTOR_LOG_LEVEL")
    if log_level is not None:
        overrides["log_level"] = log_level

    strict = os.environ.get("DESIGN_INSPECTOR_STRICT")
    if strict is not None:
        overrides["strict_validation"] = strict.strip().lower() in {"1", "true", "yes"}

    return overrides


def _apply_override(data: dict[str, Any], dotted_key: str, value: Any) -> None:
    """Set a possibly nested key such as 'grouping.similarity_threshold'."""
    *parents, leaf = dotted_key.split(".")
    target = data
    for key in parents:
        target = target.setdefault(key, {})
        if not isinstance(target, dict):
            raise ConfigurationError(
                f"Cannot apply {dotted_key}: section '{key}' must be an object, "
                f"got {type(target).__name__}"
            )
    target[leaf] = value


def find_config_file(path: Path | str | None = None) -> Path | None:
    """Resolve a config file from a file path or a directory to search."""
    if path is None:
        path = Path.cwd()
    path = Path(path)
    if path.is_dir():
        candidate = path / CONFIG_FILENAME
        return candidate if candidate.exists() else None
    return path if path.exists() else None


def load_config(path: Path | str | None = None, **overrides: Any) -> InspectorConfig:
    """Load configuration from file, environment and explicit overrides.

    Args:
        path: Config file, or directory searched for CONFIG_FILENAME.
            Defaults to the current directory.
        **overrides: Values applied last. Nested keys use double
            underscores, e.g. ``grouping__similarity_threshold=0.8``.

    Returns:
        Validated InspectorConfig.

    Raises:
        ConfigurationError: If the file is unreadable, not JSON, or any
            value fails validation.
    """
    data: dict[str, Any] = {}

    config_file = find_config_file(path)
    if config_file is not None:
        try:
            with open(config_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot load configuration: {e}", str(config_file)
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration root must be a JSON object", str(config_file)
            )
        logger.debug(f"Loaded configuration from {config_file}")
    elif path is not None and not Path(path).is_dir():
        raise ConfigurationError(f"Configuration file not found: {path}", str(path))

    env = _env_overrides()
    for key, value in env.items():
        _apply_override(data, key, value)
    if env:
        logger.debug(f"Applied {len(env)} environment overrides")

    for key, value in overrides.items():
        _apply_override(data, key.replace("__", "."), value)

    try:
        return InspectorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e}",
            str(config_file) if config_file else None,
        ) from e


def save_config(config: InspectorConfig, path: Path | str) -> Path:
    """Write a configuration as JSON and return the written path."""
    path = Path(path)
    if path.is_dir():
        path = path / CONFIG_FILENAME
    path.write_text(json.dumps(config.to_dict(), indent=2) + "\n", encoding="utf-8")
    logger.debug(f"Saved configuration to {path}")
    return path
