"""SQLAlchemy connection factory for native connection settings."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError

from .config import ConfigurationError

LOG = logging.getLogger(__name__)

_DIALECTS = {
    "postgres": "postgresql",
    "mysql2": "mysql",
    "sqlite": "sqlite",
}


def create_engine_from(
    params_or_url: Mapping[str, Any] | str,
    params: Mapping[str, Any] | None = None,
    **engine_kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine from a resolved native parameter mapping.

    A configured ``url`` keeps everything but its dialect name, which maps the
    same way as ``adapter`` so ``postgres://`` urls open PostgreSQL.
    ``search_path`` becomes the libpq ``options`` connect argument on
    PostgreSQL and ``max_connections`` sizes the pool on server databases. JDBC urls are rejected: opening them needs
    a JVM-side driver.
    """

    if isinstance(params_or_url, str):
        adapter = (params or {}).get("adapter", "jdbc")
        raise ConfigurationError(f"Cannot open a '{adapter}' url with SQLAlchemy; pass a JDBC connection factory.")

    settings = dict(params_or_url)
    url = _parse_url(settings["url"]) if settings.get("url") else _url_from(settings)
    dialect = url.get_backend_name()

    kwargs = dict(engine_kwargs)
    search_path = settings.get("search_path")
    if search_path and dialect == "postgresql":
        connect_args = dict(kwargs.get("connect_args", {}))
        connect_args.setdefault("options", f"-csearch_path={search_path}")
        kwargs["connect_args"] = connect_args
    max_connections = settings.get("max_connections")
    if max_connections is not None and dialect != "sqlite":
        kwargs.setdefault("pool_size", max_connections)

    LOG.debug("Creating engine", extra={"dialect": dialect, "database": url.database})
    try:
        return create_engine(url, **kwargs)
    except ArgumentError as exc:
        raise ConfigurationError(f"Cannot open a '{url.drivername}' database: {exc}") from exc


def _parse_url(value: str) -> URL:
    try:
        url = make_url(value)
    except ArgumentError as exc:
        raise ConfigurationError(f"Invalid database url: {exc}") from exc
    backend, sep, driver = url.drivername.partition("+")
    return url.set(drivername=f"{_DIALECTS.get(backend, backend)}{sep}{driver}")


def _url_from(settings: Mapping[str, Any]) -> URL:
    adapter = settings.get("adapter")
    if not adapter:
        raise ConfigurationError("Connection settings are missing 'adapter'.")
    return URL.create(
        drivername=_DIALECTS.get(adapter, adapter),
        username=settings.get("username") or settings.get("user"),
        password=settings.get("password"),
        host=settings.get("host"),
        port=settings.get("port"),
        database=settings.get("database"),
    )


__all__ = ["create_engine_from"]
