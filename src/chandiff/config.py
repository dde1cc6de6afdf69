"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from chandiff.core.models import Granularity


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "CHANDIFF_"


class Settings(BaseModel):
    app_name:     str = "chandiff"
    db_url:       str = "sqlite:///chandiff.db"
    granularity:  Granularity = Field(default=Granularity.step, description="step or block pipeline extraction")
    changed_only: bool = Field(default=False, description="Hide unchanged components in the change tree")
    intraline:    bool = Field(default=True,  description="Highlight changed characters within paired lines")
    column_width: int = Field(default=60, ge=20, description="Width of each side in the side-by-side view")
    log_level:    str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then CHANDIFF_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
