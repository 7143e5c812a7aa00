"""Database configuration resolution and SQL-backed web sessions."""

from .config import ConfigurationError, DatabaseConfig, EnvironmentConfig, load_config
from .connections import (
    ConnectionStringBuilder,
    JdbcConnectionBuilder,
    NativeConnectionBuilder,
    ResolvedConnection,
)
from .resolver import resolve, setup

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "ConnectionStringBuilder",
    "DatabaseConfig",
    "EnvironmentConfig",
    "JdbcConnectionBuilder",
    "NativeConnectionBuilder",
    "ResolvedConnection",
    "__version__",
    "load_config",
    "resolve",
    "setup",
]
