from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from roster_import.errors import RosterImportError
from roster_import.models.session import AuthSession

"""Config loader.

Responsibilities:
- Load the YAML config (default config/import.yml)
- Validate it against the bundled JSON schema
- Apply defaults and environment overrides (environment wins)
"""

__all__ = [
    "ConfigError",
    "ImportConfig",
    "load_config",
    "load_session",
    "DEFAULT_CONFIG_PATH",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")

ENV_BACKEND_URL = "ROSTER_BACKEND_URL"
ENV_ACCESS_TOKEN = "ROSTER_ACCESS_TOKEN"

DEFAULT_PAGE_SIZE = 10
DEFAULT_UNDO_WINDOW_SECONDS = 60
DEFAULT_ERROR_LOG_DIR = "./logs"


class ConfigError(RosterImportError):
    pass


@dataclass(frozen=True)
class ImportConfig:
    backend_url: str
    page_size: int = DEFAULT_PAGE_SIZE
    undo_window_seconds: int = DEFAULT_UNDO_WINDOW_SECONDS
    request_timeout: float | None = None  # None: wait for the backend indefinitely
    error_log_dir: str = DEFAULT_ERROR_LOG_DIR


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: the schema file is missing or broken, or the data
            fails validation (missing keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path, environ: Mapping[str, str] | None = None) -> ImportConfig:
    env = os.environ if environ is None else environ
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    # environment override is applied before validation so a bad URL from either source is caught
    if env.get(ENV_BACKEND_URL) and isinstance(data, dict):
        data = {**data, "backend_url": env[ENV_BACKEND_URL]}

    _validate_config_schema(data)

    return ImportConfig(
        backend_url=data["backend_url"].rstrip("/"),
        page_size=data.get("page_size", DEFAULT_PAGE_SIZE),
        undo_window_seconds=data.get("undo_window_seconds", DEFAULT_UNDO_WINDOW_SECONDS),
        request_timeout=data.get("request_timeout"),
        error_log_dir=data.get("error_log_dir", DEFAULT_ERROR_LOG_DIR),
    )


def load_session(environ: Mapping[str, str] | None = None) -> AuthSession:
    """Build the operator's credential from the environment.

    A missing token is not an error here; the importer refuses to submit
    without one.
    """
    env = os.environ if environ is None else environ
    token = (env.get(ENV_ACCESS_TOKEN) or "").strip()
    return AuthSession(access_token=token or None)
