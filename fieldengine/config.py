"""Configuration utilities.

This module loads application configuration with the following rules:
- Primary source: `fieldengine_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("fieldengine_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class PersistenceConfig(BaseModel):
    backend: str = "sql"
    graphql_url: Optional[str] = None
    timeout_seconds: float = Field(default=10.0, gt=0)

    @field_validator("backend")
    @classmethod
    def backend_must_be_allowed(cls, v: str) -> str:
        allowed = {"sql", "graphql"}
        if v not in allowed:
            raise ValueError(f"persistence.backend must be one of {sorted(allowed)}")
        return v

    @field_validator("graphql_url")
    @classmethod
    def graphql_url_must_be_http(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("persistence.graphql_url must be an http(s) URL")
        return v


class AppConfig(BaseModel):
    database: DatabaseConfig
    persistence: PersistenceConfig
    locale: str = "en"

    @field_validator("locale")
    @classmethod
    def locale_must_be_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("locale must be a non-empty string")
        return v.strip()


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) fieldengine_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    dsn = _env("DATABASE_URL") or _read_config_file("database.url") or _base("database.dsn") or "sqlite+pysqlite:///:memory:"

    backend = (_env("PERSISTENCE_BACKEND") or _read_config_file("persistence.backend") or _base("persistence.backend", "sql")).strip()
    graphql_url = _env("GRAPHQL_URL") or _read_config_file("persistence.graphql_url") or _base("persistence.graphql_url")
    timeout_text = _env("PERSISTENCE_TIMEOUT_SECONDS") or _read_config_file("persistence.timeout_seconds") or _base("persistence.timeout_seconds", "10")

    locale = _env("FIELDENGINE_LOCALE") or _read_config_file("locale") or _base("locale", "en")

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn),
            persistence=PersistenceConfig(
                backend=backend,
                graphql_url=graphql_url,
                timeout_seconds=float(str(timeout_text).strip()),
            ),
            locale=locale,
        )
        if cfg.persistence.backend == "graphql" and not cfg.persistence.graphql_url:
            raise ValueError("persistence.graphql_url is required for the graphql backend")
        return cfg
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "PersistenceConfig",
    "load_config",
]
