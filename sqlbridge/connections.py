"""Connection string builders for native and JVM-hosted runtimes."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable
from urllib.parse import quote

from .config import ConfigurationError, EnvironmentConfig

LOG = logging.getLogger(__name__)

JDBC_PREFIX = "jdbc:"

_JDBC_SCHEMES = {"postgres": "postgresql"}
# owner only matters to database creation, never to the driver.
_URL_FIELDS = frozenset({"adapter", "host", "port", "database", "owner"})
_QUERY_KEYS = {"username": "user"}
RUNTIME_VARIABLE = "SQLBRIDGE_RUNTIME"


@dataclass(frozen=True, slots=True)
class ResolvedConnection:
    """Connection descriptor handed to the connection factory.

    Native builders leave ``url`` unset and put everything in ``params``;
    JDBC builders produce a url plus a companion ``params`` mapping.
    """

    params: Mapping[str, Any]
    url: str | None = None

    def factory_args(self) -> tuple[Any, ...]:
        """Positional arguments for the connection factory call."""

        if self.url is None:
            return (dict(self.params),)
        return (self.url, dict(self.params))


@runtime_checkable
class ConnectionStringBuilder(Protocol):
    """Strategy turning validated settings into a :class:`ResolvedConnection`."""

    def build(self, settings: EnvironmentConfig) -> ResolvedConnection:
        """Build the connection descriptor for ``settings``."""


def format_search_path(value: str | Sequence[str]) -> str:
    """Comma-join schema names with surrounding whitespace removed."""

    parts = value.split(",") if isinstance(value, str) else [str(item) for item in value]
    return ",".join(part.strip() for part in parts if part.strip())


class NativeConnectionBuilder:
    """Builds a single flat parameter mapping for in-process drivers."""

    def build(self, settings: EnvironmentConfig) -> ResolvedConnection:
        params = settings.as_params()
        if "search_path" in params:
            params["search_path"] = format_search_path(params["search_path"])
        LOG.debug("Resolved native connection", extra={"adapter": params.get("adapter")})
        return ResolvedConnection(params=params)


class JdbcConnectionBuilder:
    """Builds JDBC urls for JVM-hosted runtimes.

    A configured ``url`` is passed through byte-for-byte; only the adapter
    name in the companion mapping gains the ``jdbc:`` prefix.
    """

    def build(self, settings: EnvironmentConfig) -> ResolvedConnection:
        params = settings.as_params()
        if "search_path" in params:
            params["search_path"] = format_search_path(params["search_path"])
        configured_url = params.pop("url", None)
        adapter = params.get("adapter")
        if configured_url:
            if adapter:
                params["adapter"] = _prefixed(adapter)
            LOG.debug("Using configured JDBC url", extra={"adapter": params.get("adapter")})
            return ResolvedConnection(params=params, url=configured_url)
        if not adapter:
            raise ConfigurationError("Cannot build a JDBC url without an adapter.")

        adapter = _prefixed(_JDBC_SCHEMES.get(adapter, adapter))
        params["adapter"] = adapter
        url = _jdbc_url(adapter, params)
        LOG.debug("Built JDBC url", extra={"adapter": adapter})
        return ResolvedConnection(params=params, url=url)


def default_builder() -> ConnectionStringBuilder:
    """Builder selected by the ``SQLBRIDGE_RUNTIME`` environment variable.

    ``jvm`` selects :class:`JdbcConnectionBuilder`; anything else, or no value,
    selects :class:`NativeConnectionBuilder`. JVM-hosted callers can also pass
    ``JdbcConnectionBuilder()`` explicitly.
    """

    if os.environ.get(RUNTIME_VARIABLE, "").strip().lower() == "jvm":
        return JdbcConnectionBuilder()
    return NativeConnectionBuilder()


def _prefixed(adapter: str) -> str:
    if adapter.startswith(JDBC_PREFIX):
        return adapter
    return f"{JDBC_PREFIX}{adapter}"


def _jdbc_url(adapter: str, params: Mapping[str, Any]) -> str:
    database = params.get("database")
    if "sqlite" in adapter:
        return f"{adapter}:{database or ''}"
    url = f"{adapter}://{params.get('host') or ''}"
    if params.get("port") is not None:
        url += f":{params['port']}"
    if database:
        url += f"/{database}"
    query = _query_string(params)
    if query:
        url += f"?{query}"
    return url


def _query_string(params: Mapping[str, Any]) -> str:
    pairs: list[str] = []
    for key, value in params.items():
        if key in _URL_FIELDS:
            continue
        pairs.append(f"{_QUERY_KEYS.get(key, key)}={quote(_query_value(value), safe=',')}")
    return "&".join(pairs)


def _query_value(value: object) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


__all__ = [
    "ConnectionStringBuilder",
    "JdbcConnectionBuilder",
    "NativeConnectionBuilder",
    "ResolvedConnection",
    "default_builder",
    "format_search_path",
]
