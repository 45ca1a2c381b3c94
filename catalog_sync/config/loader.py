from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.translation_row import DEFAULT_LOCALE_COLUMNS

"""Config loader for the catalog synchronizer.

Responsibilities:
- Locate the YAML config (explicit path, $CATALOG_SYNC_CONFIG, config/sync.yml)
- Validate it against the packaged JSON schema (sync_schema.json)
- Apply defaults for every missing key

An explicitly requested file must exist; the default location is optional.
"""

SCHEMA_PATH = Path(__file__).parent / "sync_schema.json"
DEFAULT_CONFIG_PATH = Path("config/sync.yml")
CONFIG_ENV_VAR = "CATALOG_SYNC_CONFIG"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class SyncConfig:
    locale_columns: tuple[str, ...] = DEFAULT_LOCALE_COLUMNS
    locale_map: dict[str, str] = field(default_factory=dict)  # merged over the default table
    fallback: str = "empty"
    base_locale: str | None = None  # resolver fallback when no en* file exists
    backup_dir: str | None = None
    keep_backups: bool = False
    cleanup_temp_excel: bool = True
    temp_excel_dirs: tuple[str, ...] = (tempfile.gettempdir(),)
    audit_log_dir: str | None = "logs"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or data failing validation
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


def resolve_config_path(explicit: Path | None = None) -> tuple[Path, bool]:
    """Return (path, required). Explicit and env-provided paths are required."""
    if explicit is not None:
        return explicit, True
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path), True
    return DEFAULT_CONFIG_PATH, False


def load_config(path: Path | None = None) -> SyncConfig:
    config_path, required = resolve_config_path(path)
    if not config_path.exists():
        if required:
            raise ConfigError(f"config file not found: {config_path}")
        return SyncConfig()
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {config_path}")

    _validate_config_schema(data)

    defaults = SyncConfig()
    return SyncConfig(
        locale_columns=tuple(data.get("locale_columns", defaults.locale_columns)),
        locale_map=dict(data.get("locale_map", {})),
        fallback=data.get("fallback", defaults.fallback),
        base_locale=data.get("base_locale"),
        backup_dir=data.get("backup_dir"),
        keep_backups=data.get("keep_backups", defaults.keep_backups),
        cleanup_temp_excel=data.get("cleanup_temp_excel", defaults.cleanup_temp_excel),
        temp_excel_dirs=tuple(data.get("temp_excel_dirs", defaults.temp_excel_dirs)),
        audit_log_dir=data.get("audit_log_dir", defaults.audit_log_dir),
    )
