"""Engine configuration loaded from an optional YAML file.

Resolution order for the file: explicit path, then $BRIEF_BUILDER_CONFIG.  A
missing file means defaults; an invalid one is logged and also means defaults.
$BRIEF_BUILDER_STORAGE_DIR overrides ``storage_dir`` either way.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from brief_engine.models import UserRole

logger = logging.getLogger(__name__)

CONFIG_ENV = "BRIEF_BUILDER_CONFIG"
STORAGE_DIR_ENV = "BRIEF_BUILDER_STORAGE_DIR"


class EngineConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    storage_dir: str = Field(default="~/.brief-builder")
    storage_key: str = Field(default="brief-store")
    autosave_interval_sec: float = Field(default=30.0, gt=0)
    default_role: UserRole = Field(default="Client")
    log_level: str = Field(default="WARNING")

    @property
    def storage_path(self) -> Path:
        return Path(self.storage_dir).expanduser()


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    if path is None:
        path = os.environ.get(CONFIG_ENV) or None

    raw: dict = {}
    if path is not None:
        config_path = Path(path).expanduser()
        try:
            if config_path.exists():
                with open(config_path, encoding="utf-8") as f:
                    loaded = yaml.safe_load(f) or {}
                if isinstance(loaded, dict):
                    raw = loaded
                else:
                    logger.warning(f"Config {config_path} is not a mapping, using defaults")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read config {config_path}: {e}, using defaults")

    storage_override = os.environ.get(STORAGE_DIR_ENV)
    if storage_override:
        raw = {**raw, "storage_dir": storage_override}

    try:
        return EngineConfig.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Config validation failed: {e}, using defaults")
        if storage_override:
            return EngineConfig(storage_dir=storage_override)
        return EngineConfig()
