"""Shared fixtures for the sqlbridge test suite."""

from __future__ import annotations

from typing import Any

import pytest

from sqlbridge.config import DATABASE_URL_VARIABLE, ENVIRONMENT_VARIABLE, DatabaseConfig
from sqlbridge.connections import RUNTIME_VARIABLE


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(DATABASE_URL_VARIABLE, raising=False)
    monkeypatch.delenv(ENVIRONMENT_VARIABLE, raising=False)
    monkeypatch.delenv(RUNTIME_VARIABLE, raising=False)


@pytest.fixture
def environments() -> dict[str, dict[str, Any]]:
    return {
        "development": {
            "adapter": "postgres",
            "owner": "app",
            "username": "app",
            "database": "sqlbridge_test_storage_dev",
            "host": "127.0.0.1",
        },
        "test": {
            "adapter": "postgres",
            "owner": "app",
            "username": "app",
            "database": "sqlbridge_test_storage_test",
            "host": "127.0.0.1",
        },
        "remote": {
            "adapter": "mysql",
            "host": "10.0.0.1",
            "database": "sqlbridge_test_storage_remote",
        },
        "production": {
            "host": "10.0.0.1",
            "database": "sqlbridge_test_storage_production",
        },
        "url_already_constructed": {
            "adapter": "adapter_name",
            "url": "jdbc:adapter_name://HOST/DB?user=U&password=P&ssl=true&sslfactory=sslFactoryOption",
        },
        "bogus": {},
    }


@pytest.fixture
def config(environments: dict[str, dict[str, Any]]) -> DatabaseConfig:
    return DatabaseConfig(environments=environments, environment="development")
