"""Environment-driven settings for the assembled application."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping

ENV_PREFIX = "FACILITY_RESERVATIONS_"
DEFAULT_DATA_DIR = "data"
DEFAULT_CATALOG_FILE = "catalog.yaml"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    catalog_file: Path
    log_level: str = DEFAULT_LOG_LEVEL

    @staticmethod
    def from_env(environ: Mapping[str, str]) -> "Settings":
        data_dir = Path(environ.get(f"{ENV_PREFIX}DATA_DIR", DEFAULT_DATA_DIR))
        catalog_value = environ.get(f"{ENV_PREFIX}CATALOG")
        catalog_file = Path(catalog_value) if catalog_value else data_dir / DEFAULT_CATALOG_FILE
        log_level = environ.get(f"{ENV_PREFIX}LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL
        return Settings(data_dir=data_dir, catalog_file=catalog_file, log_level=log_level)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env(os.environ)
