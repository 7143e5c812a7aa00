"""Resolve a named environment and open its database connection."""

from __future__ import annotations

import logging
from typing import Any, Callable

from .config import DatabaseConfig
from .connections import ConnectionStringBuilder, ResolvedConnection, default_builder
from .engine import create_engine_from

LOG = logging.getLogger(__name__)

ConnectionFactory = Callable[..., Any]


def resolve(
    environment: str,
    config: DatabaseConfig,
    *,
    builder: ConnectionStringBuilder | None = None,
) -> ResolvedConnection:
    """Translate ``environment``'s settings into a connection descriptor."""

    settings = config.settings_for(environment)
    resolved = (builder or default_builder()).build(settings)
    LOG.debug(
        "Resolved database configuration",
        extra={"environment": environment, "adapter": resolved.params.get("adapter"), "jdbc": resolved.url is not None},
    )
    return resolved


def setup(
    environment: str,
    config: DatabaseConfig,
    *,
    builder: ConnectionStringBuilder | None = None,
    connect: ConnectionFactory | None = None,
) -> Any:
    """Resolve ``environment`` and hand the result to the connection factory.

    The factory is called with the parameter mapping alone for native
    builders, or with ``(url, params)`` for JDBC builders. Returns whatever
    the factory returns, or None when ``config.skip_connect`` is set.
    """

    resolved = resolve(environment, config, builder=builder)
    if config.skip_connect:
        LOG.info("Skipping database connection", extra={"environment": environment})
        return None
    factory = connect or create_engine_from
    connection = factory(*resolved.factory_args())
    LOG.info("Connected to database", extra={"environment": environment, "adapter": resolved.params.get("adapter")})
    if config.after_connect is not None:
        config.after_connect(connection)
    return connection


__all__ = ["ConnectionFactory", "resolve", "setup"]
