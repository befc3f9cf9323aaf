"""
Configuration Management

Loads configuration from YAML files with environment variable resolution.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


class GraphConfig(BaseModel):
    """Edge synthesis configuration."""
    min_strength: float = 0.5
    strong_threshold: float = 2.0
    proximity_distance: int = 5
    min_overlap_hours: int = 2
    overlap_hours_divisor: float = 5.0
    weights: dict[str, float] = Field(default_factory=lambda: {
        "shared_course": 2.0,
        "availability_overlap": 2.0,
        "shared_interest": 1.5,
        "cohabitation": 5.0,
        "physical_proximity": 1.0,
        "shared_subgroup": 0.5,
    })


class AnalysisConfig(BaseModel):
    """Boundary detection and decomposition configuration."""
    isolation_threshold: float = 0.7
    intro_partner_max_boundary: float = 0.5
    healthy_cycle_allowance: int = 2
    health_weights: dict[str, float] = Field(default_factory=lambda: {
        "component_penalty": 15.0,
        "hole_penalty": 5.0,
        "isolation_penalty": 3.0,
        "bridge_bonus": 2.0,
    })


class PersistenceConfig(BaseModel):
    """Strength filtration configuration."""
    threshold_fraction: float = 0.3
    stable_multiplier: float = 2.0
    fragile_multiplier: float = 0.5


class SchedulingConfig(BaseModel):
    """Event time search configuration."""
    top_n: int = 5
    min_attendance: int = 5
    day_start_hour: int = Field(default=8, ge=0, le=23)
    day_end_hour: int = Field(default=22, ge=1, le=24)
    isolated_bonus: float = 2.0
    bridge_bonus: float = 1.5


class PriorityConfig(BaseModel):
    """Outreach priority configuration."""
    base: float = 50.0
    low_rating_max: int = 2
    weights: dict[str, float] = Field(default_factory=lambda: {
        "isolated": 30.0,
        "fragile": 20.0,
        "low_rating": 25.0,
        "follow_up": 15.0,
        "bridge": 5.0,
        "stable": -10.0,
    })


class IngestConfig(BaseModel):
    """Roster ingestion configuration."""
    list_separator: str = ";"
    waking_start: str = "08:00"
    waking_end: str = "22:00"


class OutputConfig(BaseModel):
    """Output generation configuration."""
    directory: str = "./outputs"
    formats: list[str] = Field(default_factory=lambda: ["csv", "markdown", "json"])
    timestamp_filenames: bool = True
    markdown: dict[str, Any] = Field(default_factory=lambda: {
        "include_methodology": True,
        "max_items_per_section": 20,
    })


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None


class Config(BaseModel):
    """Root configuration object."""
    graph: GraphConfig = Field(default_factory=GraphConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    priority: PriorityConfig = Field(default_factory=PriorityConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _resolve_env_vars(data: Any) -> Any:
    """Recursively resolve environment variables in config values.

    Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax.
    """
    if isinstance(data, str):
        if data.startswith("${") and data.endswith("}"):
            var_expr = data[2:-1]
            if ":-" in var_expr:
                var_name, default = var_expr.split(":-", 1)
                return os.environ.get(var_name, default)
            return os.environ.get(var_expr, data)
        return data
    elif isinstance(data, dict):
        return {k: _resolve_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars(item) for item in data]
    return data


def load_config(
    config_path: Optional[Path] = None,
    local_config_path: Optional[Path] = None,
) -> Config:
    """Load configuration from YAML files.

    Args:
        config_path: Path to main config file (default: config.yaml)
        local_config_path: Path to local overrides (default: config.local.yaml)

    Returns:
        Merged and validated Config object
    """
    project_root = Path(__file__).parent.parent.parent

    if config_path is None:
        config_path = project_root / "config.yaml"
    if local_config_path is None:
        local_config_path = project_root / "config.local.yaml"

    config_data: dict[str, Any] = {}

    if config_path.exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

    if local_config_path.exists():
        with open(local_config_path) as f:
            local_data = yaml.safe_load(f) or {}
            config_data = _deep_merge(config_data, local_data)

    config_data = _resolve_env_vars(config_data)

    return Config(**config_data)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
