"""Application configuration model using pydantic-settings.

Settings are resolved from, in priority order: the ``TINYPNG_*`` environment
variables, the project ``.tinypngrc``, the ``"tinypng"`` field of the project
``package.json``, and the global ``~/.tinypngrc``. The first file that carries
an ``apiKey`` supplies the file-level values; files are never merged.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import PrivateAttr, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

GLOBAL_CONFIG_PATH = Path.home() / ".tinypngrc"
PROJECT_CONFIG_NAME = ".tinypngrc"
PACKAGE_JSON_FIELD = "tinypng"
API_KEY_ENV_VAR = "TINYPNG_API_KEY"

# File key -> (Config field, description)
CONFIG_KEYS: dict[str, tuple[str, str]] = {
    "apiKey": ("api_key", "TinyPNG API Key"),
    "maxConcurrency": ("max_concurrency", "Max concurrency (default: 5)"),
    "retries": ("retries", "Retry attempts on network failure (default: 3)"),
    "autoStage": ("auto_stage", "Auto git-add after compress in git mode (default: true)"),
    "respectGitignore": (
        "respect_gitignore",
        "Exclude .gitignore matched files (default: true)",
    ),
}

_MISSING_KEY_HELP = "\n".join(
    [
        "API Key not found! Please configure it in one of the following ways:",
        "",
        "  1. Environment variable:",
        f"     export {API_KEY_ENV_VAR}=<YOUR_API_KEY>",
        "",
        "  2. Global config:",
        f"     Create {GLOBAL_CONFIG_PATH}:",
        '     { "apiKey": "YOUR_API_KEY" }',
        "",
        "  3. Project config (recommended for project integration):",
        f"     Create {PROJECT_CONFIG_NAME} in project root:",
        '     { "apiKey": "YOUR_API_KEY" }',
        "",
        '  4. Add "tinypng" field in package.json:',
        '     { "tinypng": { "apiKey": "YOUR_API_KEY" } }',
    ]
)


class ConfigError(Exception):
    """Raised when no usable configuration can be resolved."""


class Config(BaseSettings):
    """Resolved configuration for a compression run."""

    model_config = SettingsConfigDict(
        env_prefix="TINYPNG_",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str
    max_concurrency: int = 5
    retries: int = 3
    auto_stage: bool = True
    respect_gitignore: bool = True
    request_timeout: float = 60.0
    log_level: str = "INFO"

    # Set by load_config; not a settings field, so no env var can reach it.
    _source: str = PrivateAttr(default="defaults")

    @property
    def source(self) -> str:
        """Where the API key came from, for display."""
        return self._source

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats values read from config files (passed as init kwargs).
        return (env_settings, init_settings)

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, value: str) -> str:
        """API key must be non-empty."""
        if not value.strip():
            msg = "api_key must not be empty"
            raise ValueError(msg)
        return value.strip()

    @field_validator("max_concurrency")
    @classmethod
    def validate_max_concurrency(cls, value: int) -> int:
        """At least one compression must be allowed in flight."""
        if value < 1:
            msg = "max_concurrency must be at least 1"
            raise ValueError(msg)
        return value

    @field_validator("retries")
    @classmethod
    def validate_retries(cls, value: int) -> int:
        """Retries must be between 0 and 10."""
        if value < 0 or value > 10:
            msg = "retries must be between 0 and 10"
            raise ValueError(msg)
        return value

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, value: float) -> float:
        """Request timeout must be positive."""
        if value <= 0:
            msg = "request_timeout must be greater than 0"
            raise ValueError(msg)
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Log level must be a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            msg = f"log_level must be one of {', '.join(sorted(valid_levels))}"
            raise ValueError(msg)
        return upper_value


def read_json_config(path: Path) -> dict[str, Any] | None:
    """Read a JSON object from ``path``; missing, empty or invalid files give None."""
    try:
        content = path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    if not content:
        return None
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def read_project_config(project_dir: Path) -> dict[str, Any] | None:
    return read_json_config(project_dir / PROJECT_CONFIG_NAME)


def read_package_json_config(project_dir: Path) -> dict[str, Any] | None:
    package = read_json_config(project_dir / "package.json")
    if package and isinstance(package.get(PACKAGE_JSON_FIELD), dict):
        return package[PACKAGE_JSON_FIELD]
    return None


def read_global_config(global_path: Path | None = None) -> dict[str, Any] | None:
    return read_json_config(global_path or GLOBAL_CONFIG_PATH)


def read_config_sources(
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> list[tuple[str, dict[str, Any]]]:
    """Return every discovered configuration source as (label, values) pairs.

    Sources are listed in display order: environment, global, project
    ``.tinypngrc``, ``package.json``. Absent sources are omitted.
    """
    cwd = project_dir or Path.cwd()
    global_file = global_path or GLOBAL_CONFIG_PATH
    sources: list[tuple[str, dict[str, Any]]] = []

    env_key = os.environ.get(API_KEY_ENV_VAR)
    if env_key:
        sources.append(("Environment", {API_KEY_ENV_VAR: env_key}))

    global_config = read_global_config(global_file)
    if global_config:
        sources.append((f"Global ({global_file})", global_config))

    project_config = read_project_config(cwd)
    if project_config:
        sources.append((f"Project ({cwd / PROJECT_CONFIG_NAME})", project_config))

    package_config = read_package_json_config(cwd)
    if package_config:
        sources.append(("Package.json", package_config))

    return sources


def _find_file_config(
    project_dir: Path, global_path: Path
) -> tuple[dict[str, Any] | None, str]:
    candidates = (
        (read_project_config(project_dir), f"project ({PROJECT_CONFIG_NAME})"),
        (read_package_json_config(project_dir), "project (package.json)"),
        (read_global_config(global_path), "global (~/.tinypngrc)"),
    )
    for values, source in candidates:
        if values and values.get("apiKey"):
            return values, source
    return None, ""


def _to_field_values(file_values: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase file keys onto Config field names, dropping unknown keys and nulls."""
    fields: dict[str, Any] = {}
    for key, (field_name, _description) in CONFIG_KEYS.items():
        if file_values.get(key) is not None:
            fields[field_name] = file_values[key]
    return fields


def load_config(
    project_dir: Path | str | None = None,
    global_path: Path | None = None,
) -> Config:
    """Resolve configuration for ``project_dir`` (defaults to the cwd).

    Raises:
        ConfigError: when no API key is available from any source.
        pydantic.ValidationError: when a resolved value is invalid.
    """
    cwd = Path(project_dir) if project_dir is not None else Path.cwd()
    file_values, source = _find_file_config(cwd, global_path or GLOBAL_CONFIG_PATH)

    if os.environ.get(API_KEY_ENV_VAR):
        source = f"env ({API_KEY_ENV_VAR})"
    elif file_values is None:
        raise ConfigError(_MISSING_KEY_HELP)

    config = Config(**_to_field_values(file_values or {}))
    config._source = source
    return config
