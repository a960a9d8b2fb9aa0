"""Project file loader.

A project file is a YAML document with these top-level sections:

    settings:    GlobalSettings (project start, work week, holidays, work types)
    resources:   list of Resource
    tasks:       list of TaskDefinition
    scheduler:   optional SchedulingConfig
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from .exceptions import ConfigError
from .models import GlobalSettings, TaskDefinition
from .resources import Resource
from .scheduler import SchedulingConfig

REQUIRED_SECTIONS = ("settings", "resources", "tasks")


class ProjectConfig(BaseModel):
    """Everything needed for one scheduling run."""

    settings: GlobalSettings
    resources: list[Resource] = Field(default_factory=list[Resource])
    tasks: list[TaskDefinition] = Field(default_factory=list[TaskDefinition])
    scheduler: SchedulingConfig = Field(default_factory=SchedulingConfig)


def load_project_config(config_path: Path | str) -> ProjectConfig:
    """Load a project from a YAML file.

    Args:
        config_path: Path to the project YAML file

    Returns:
        Validated ProjectConfig

    Raises:
        ConfigError: If the file is missing, empty, malformed, or lacks a section
        pydantic.ValidationError: If a section fails field validation
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Project file not found: {config_path}")

    try:
        with config_path.open() as f:
            data: dict[str, Any] | None = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not data:
        raise ConfigError("Empty project file")
    if not isinstance(data, dict):
        raise ConfigError("Project file must contain a mapping at the top level")

    for section in REQUIRED_SECTIONS:
        if section not in data:
            raise ConfigError(f"Project file must contain '{section}' section")

    return ProjectConfig.model_validate(
        {
            "settings": data["settings"],
            "resources": data["resources"] or [],
            "tasks": data["tasks"] or [],
            "scheduler": data.get("scheduler") or {},
        }
    )
