# path: blueways-api/blueways/config.py

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional
import os

import yaml
from pydantic import BaseModel, ConfigDict, Field


ACCESS_POINT_TYPE = "Access Point"
ROUTE_TYPE = "Route"
ROUTE_SEPARATOR = " to "
PRIVATE_QUALIFIER = "(private)"
GENERIC_WATERWAY_TOKENS = ["river", "creek", "fork"]
WATERWAY_TYPES = ["river", "stream", "canal"]

OVERPASS_ENDPOINTS = [
    "https://overpass.kumi.systems/api/interpreter",
    "https://overpass-api.de/api/interpreter",
    "https://overpass.openstreetmap.ru/api/interpreter",
]
REQUEST_TIMEOUT_S = 45.0
RETRY_BACKOFF_S = 2.0
BBOX_BUFFER_DEG = 0.05
MAX_SNAP_DISTANCE_KM = 1.0

BACKUP_SUFFIX = ".backup"
JSON_INDENT = 2

CONFIG_ENV_VAR = "BLUEWAYS_CONFIG"


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    access_point_type: str = ACCESS_POINT_TYPE
    route_type: str = ROUTE_TYPE
    route_separator: str = Field(default=ROUTE_SEPARATOR, min_length=1)
    private_qualifier: str = PRIVATE_QUALIFIER
    generic_waterway_tokens: List[str] = Field(default_factory=lambda: list(GENERIC_WATERWAY_TOKENS))
    waterway_types: List[str] = Field(default_factory=lambda: list(WATERWAY_TYPES), min_length=1)

    overpass_endpoints: List[str] = Field(default_factory=lambda: list(OVERPASS_ENDPOINTS), min_length=1)
    request_timeout_s: float = Field(default=REQUEST_TIMEOUT_S, gt=0)
    retry_backoff_s: float = Field(default=RETRY_BACKOFF_S, ge=0)
    bbox_buffer_deg: float = Field(default=BBOX_BUFFER_DEG, ge=0)
    max_snap_distance_km: float = Field(default=MAX_SNAP_DISTANCE_KM, gt=0)

    backup_suffix: str = Field(default=BACKUP_SUFFIX, min_length=1)
    json_indent: int = Field(default=JSON_INDENT, ge=0)
    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Settings":
        """Load settings from a YAML mapping; missing keys keep their defaults."""
        with open(yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {yaml_path}")
        return cls(**data)


def load_settings(path: Optional[str | Path] = None) -> Settings:
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        return Settings()
    return Settings.from_yaml(path)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
