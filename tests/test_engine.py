"""Tests for the SQLAlchemy connection factory."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import text

from sqlbridge import engine as engine_module
from sqlbridge.config import ConfigurationError, DatabaseConfig
from sqlbridge.connections import NativeConnectionBuilder
from sqlbridge.engine import create_engine_from
from sqlbridge.resolver import setup


class _EngineCapture:
    def __init__(self) -> None:
        self.url: Any = None
        self.kwargs: dict[str, Any] = {}

    def __call__(self, url: Any, **kwargs: Any) -> str:
        self.url = url
        self.kwargs = kwargs
        return "engine"


@pytest.fixture
def capture(monkeypatch: pytest.MonkeyPatch) -> _EngineCapture:
    fake = _EngineCapture()
    monkeypatch.setattr(engine_module, "create_engine", fake)
    return fake


def test_sqlite_memory_engine_executes() -> None:
    engine = create_engine_from({"adapter": "sqlite", "database": ":memory:"})

    with engine.connect() as conn:
        assert conn.execute(text("SELECT 1")).scalar() == 1
    assert engine.dialect.name == "sqlite"


def test_postgres_params_build_url_and_pool(capture: _EngineCapture) -> None:
    create_engine_from(
        {
            "adapter": "postgres",
            "host": "db",
            "port": 5433,
            "database": "app",
            "username": "app",
            "password": "s3cret",
            "search_path": "app,public",
            "max_connections": 12,
        }
    )

    assert capture.url.drivername == "postgresql"
    assert capture.url.host == "db"
    assert capture.url.port == 5433
    assert capture.url.database == "app"
    assert capture.url.username == "app"
    assert capture.url.password == "s3cret"
    assert capture.kwargs["pool_size"] == 12
    assert capture.kwargs["connect_args"] == {"options": "-csearch_path=app,public"}


def test_sqlite_ignores_pool_size(capture: _EngineCapture) -> None:
    create_engine_from({"adapter": "sqlite", "database": ":memory:", "max_connections": 4})

    assert "pool_size" not in capture.kwargs


def test_configured_url_is_used(capture: _EngineCapture) -> None:
    create_engine_from({"adapter": "postgres", "url": "postgresql://u@elsewhere/other", "host": "ignored"})

    assert capture.url.host == "elsewhere"
    assert capture.url.database == "other"


def test_jdbc_url_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="jdbc:postgresql"):
        create_engine_from("jdbc:postgresql://db/app", {"adapter": "jdbc:postgresql"})


def test_missing_adapter_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        create_engine_from({"host": "db"})


def test_setup_defaults_to_sqlalchemy_factory() -> None:
    config = DatabaseConfig(environments={"test": {"adapter": "sqlite3", "database": ":memory:"}})

    engine = setup("test", config, builder=NativeConnectionBuilder())

    assert engine.dialect.name == "sqlite"


def test_postgres_scheme_in_configured_url_maps_to_postgresql(capture: _EngineCapture) -> None:
    create_engine_from({"url": "postgres://u:p@db/app", "search_path": "app"})

    assert capture.url.drivername == "postgresql"
    assert capture.url.host == "db"
    assert capture.url.password == "p"
    assert capture.kwargs["connect_args"] == {"options": "-csearch_path=app"}


def test_driver_suffix_survives_dialect_mapping(capture: _EngineCapture) -> None:
    create_engine_from({"url": "postgres+psycopg://u@db/app"})

    assert capture.url.drivername == "postgresql+psycopg"


def test_database_url_with_postgres_scheme_reaches_engine(
    monkeypatch: pytest.MonkeyPatch, capture: _EngineCapture
) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://app:pw@db.internal:5432/app")
    config = DatabaseConfig(environments={"production": {"adapter": "postgres"}}, environment="production")

    assert setup("production", config, builder=NativeConnectionBuilder()) == "engine"
    assert capture.url.drivername == "postgresql"
    assert capture.url.host == "db.internal"


def test_unknown_dialect_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="nosuchdb"):
        create_engine_from({"url": "nosuchdb://db/app"})


def test_unknown_adapter_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="nosuchdb"):
        create_engine_from({"adapter": "nosuchdb", "host": "db"})


def test_malformed_url_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        create_engine_from({"url": "not a url"})
