"""Print the resolved connection for an environment: `python -m sqlbridge ENV`."""

from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import Sequence

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from .config import CONFIG_FILE, ConfigurationError, load_config
from .connections import JdbcConnectionBuilder, NativeConnectionBuilder
from .resolver import resolve

LOG = logging.getLogger(__name__)

_MASK = "********"
_QUERY_PASSWORD = re.compile(r"(?i)([?&;]password=)[^&;]*")
_USERINFO_PASSWORD = re.compile(r"(//[^/@:]*:)[^/@]*@")


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="sqlbridge", description=__doc__)
    parser.add_argument("environment", help="environment block to resolve")
    parser.add_argument("--config", type=Path, default=CONFIG_FILE, help=f"TOML file (default: {CONFIG_FILE})")
    parser.add_argument("--jdbc", action="store_true", help="build a JDBC url instead of a native mapping")
    args = parser.parse_args(argv)

    builder = JdbcConnectionBuilder() if args.jdbc else NativeConnectionBuilder()
    try:
        config = load_config(args.config)
        resolved = resolve(args.environment, config, builder=builder)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if resolved.url is not None:
        print(f"url = {_masked_url(resolved.url)}")
    for key, value in resolved.params.items():
        if key == "password":
            shown: object = _MASK
        elif key == "url" and isinstance(value, str):
            shown = _masked_url(value)
        else:
            shown = value
        print(f"{key} = {shown}")
    return 0


def _masked_url(url: str) -> str:
    """Hide credentials in userinfo and in a password= query parameter."""

    if not url.startswith("jdbc:"):
        try:
            url = make_url(url).render_as_string(hide_password=True)
        except ArgumentError:
            LOG.debug("Masking unparseable url textually")
    url = _USERINFO_PASSWORD.sub(lambda match: f"{match.group(1)}{_MASK}@", url)
    return _QUERY_PASSWORD.sub(lambda match: match.group(1) + _MASK, url)


if __name__ == "__main__":
    sys.exit(main())
