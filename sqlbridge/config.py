"""Database configuration loading and per-environment settings."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Mapping

import tomllib

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

CONFIG_FILE = Path("config") / "database.toml"
ENVIRONMENT_VARIABLE = "SQLBRIDGE_ENV"
DATABASE_URL_VARIABLE = "DATABASE_URL"

_ADAPTER_ALIASES = {"sqlite3": "sqlite", "postgresql": "postgres"}
_NO_SCHEMA_DUMP_ENVIRONMENTS = frozenset({"test", "production"})
_GLOBAL_OPTIONS = (
    "environment",
    "root",
    "max_connections",
    "search_path",
    "schema_dump",
    "load_database_tasks",
    "skip_connect",
)


class ConfigurationError(ValueError):
    """Raised when an environment cannot be turned into connection settings."""


class EnvironmentConfig(BaseModel):
    """Settings block for one named environment.

    Unknown keys are kept and passed through to the driver untouched.
    """

    model_config = ConfigDict(extra="allow")

    adapter: str | None = None
    host: str | None = None
    port: int | None = None
    database: str | None = None
    username: str | None = None
    owner: str | None = None
    password: str | None = None
    url: str | None = None
    search_path: str | list[str] | None = None
    max_connections: int | str | None = None

    def as_params(self) -> dict[str, Any]:
        """Flat mapping of every configured key, declared fields first."""

        return self.model_dump(exclude_none=True)


class DatabaseConfig(BaseModel):
    """Process-wide database configuration.

    ``environments`` holds the raw per-environment blocks; the remaining fields
    are global options. ``max_connections`` and ``search_path`` set here win
    over the same keys in any environment block.
    """

    environments: dict[str, dict[str, Any]] = Field(default_factory=dict)
    environment: str = Field(default_factory=lambda: os.environ.get(ENVIRONMENT_VARIABLE, "development"))
    root: Path = Field(default_factory=Path.cwd)
    max_connections: int | str | None = None
    search_path: str | list[str] | None = None
    schema_dump: bool | None = None
    load_database_tasks: bool = True
    skip_connect: bool = False
    after_connect: Callable[[Any], Any] | None = None

    @model_validator(mode="after")
    def _default_schema_dump(self) -> DatabaseConfig:
        if self.schema_dump is None:
            # Written to __dict__ so a derived value is not counted as explicitly set.
            self.__dict__["schema_dump"] = self.environment not in _NO_SCHEMA_DUMP_ENVIRONMENTS
        return self

    def merge(self, overrides: Mapping[str, object]) -> DatabaseConfig:
        """Return a validated copy with ``overrides`` applied on top.

        A ``schema_dump`` that was derived from the environment is derived
        again for the new one; an explicitly set value is kept.
        """

        unknown = set(overrides) - set(type(self).model_fields)
        if unknown:
            raise ConfigurationError(f"Unknown configuration option(s): {', '.join(sorted(unknown))}")
        data = self.model_dump()
        if "schema_dump" not in self.model_fields_set:
            data.pop("schema_dump")
        data.update(overrides)
        try:
            return type(self).model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration override: {exc}") from exc

    def with_environment(self, name: str, settings: Mapping[str, object]) -> DatabaseConfig:
        """Return a copy with the given environment block replaced."""

        environments = dict(self.environments)
        environments[name] = dict(settings)
        return self.model_copy(update={"environments": environments})

    def settings_for(self, name: str) -> EnvironmentConfig:
        """Validated settings for ``name`` with global overrides applied."""

        if name not in self.environments:
            raise ConfigurationError(f"No database configuration for environment '{name}'.")
        raw = self.environments[name]
        if not raw:
            raise ConfigurationError(f"Database configuration for environment '{name}' is empty.")
        data = dict(raw)
        if name == self.environment:
            database_url = os.environ.get(DATABASE_URL_VARIABLE)
            if database_url:
                data["url"] = database_url
        try:
            settings = EnvironmentConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid database configuration for '{name}': {exc}") from exc
        if not settings.adapter and not settings.url:
            raise ConfigurationError(f"Database configuration for '{name}' is missing 'adapter'.")
        return merge_settings(_normalize(settings, self.root), self)


def merge_settings(settings: EnvironmentConfig, config: DatabaseConfig) -> EnvironmentConfig:
    """Apply global overrides on top of an environment block.

    Global ``max_connections`` and ``search_path`` replace the per-environment
    values outright; nothing else is touched.
    """

    overrides: dict[str, object] = {}
    if config.max_connections is not None:
        overrides["max_connections"] = config.max_connections
    if config.search_path is not None:
        overrides["search_path"] = config.search_path
    if not overrides:
        return settings
    return settings.model_copy(update=overrides)


def load_config(path: Path | None = None, **overrides: object) -> DatabaseConfig:
    """Load configuration from a TOML file.

    Top-level tables are environment blocks; top-level scalars are global
    options. Keyword ``overrides`` replace values read from the file.
    """

    config_path = path or CONFIG_FILE
    try:
        raw = _read_config_file(config_path)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Database configuration file not found: {config_path}") from exc
    except (tomllib.TOMLDecodeError, OSError) as exc:
        raise ConfigurationError(f"Could not read database configuration {config_path}: {exc}") from exc

    environments: dict[str, dict[str, Any]] = {}
    options: dict[str, object] = {}
    for key, value in raw.items():
        if isinstance(value, dict):
            environments[key] = value
        elif key in _GLOBAL_OPTIONS:
            options[key] = value
    options.update(overrides)
    try:
        return DatabaseConfig(environments=environments, **options)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid database configuration {config_path}: {exc}") from exc


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    return raw if isinstance(raw, dict) else {}


def _normalize(settings: EnvironmentConfig, root: Path) -> EnvironmentConfig:
    # An explicit url keeps the adapter name exactly as configured.
    if settings.url:
        return settings
    updates: dict[str, object] = {}
    adapter = _ADAPTER_ALIASES.get(settings.adapter or "", settings.adapter)
    if adapter != settings.adapter:
        updates["adapter"] = adapter
    if adapter == "sqlite" and settings.database and settings.database != ":memory:":
        database = os.path.abspath(os.path.join(root, os.path.expanduser(settings.database)))
        updates["database"] = database
    if not updates:
        return settings
    return settings.model_copy(update=updates)


__all__ = [
    "CONFIG_FILE",
    "ConfigurationError",
    "DatabaseConfig",
    "EnvironmentConfig",
    "load_config",
    "merge_settings",
]
