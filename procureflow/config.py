from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel


class ProcureflowConfig(BaseModel):
    """Top-level configuration model."""

    database_url: Optional[str] = None
    currency: str = "USD"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    # Skip the version check on save and let the last write win.
    last_writer_wins: bool = False


def load_config(path: Optional[str] = None) -> ProcureflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to PROCUREFLOW_CONFIG env
            variable or 'procureflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("PROCUREFLOW_CONFIG", "procureflow.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = ProcureflowConfig(**data)
    else:
        config = ProcureflowConfig()

    env_db_url = os.getenv("PROCUREFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
