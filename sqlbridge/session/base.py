"""Contract between session middleware and session stores."""

from __future__ import annotations

import logging
import secrets
from abc import ABC, abstractmethod
from typing import Any, Literal, Mapping, MutableMapping

LOG = logging.getLogger(__name__)

SESSION_RECORD_KEY = "sqlbridge.session.record"
ENV_SESSION_OPTIONS_KEY = "sqlbridge.session.options"
ENV_SESSION_ID_KEY = "sqlbridge.session.id"

Environ = MutableMapping[str, Any]
SessionData = MutableMapping[str, Any]


class AbstractSessionStore(ABC):
    """Base class for stores plugged into a WSGI-style session middleware.

    The middleware keeps per-request state in the ``environ`` mapping: the
    session options (``id`` override, ``drop`` flag) live under
    :data:`ENV_SESSION_OPTIONS_KEY` and the current session id under
    :data:`ENV_SESSION_ID_KEY`. Subclasses implement the three hooks.
    """

    def __init__(self, *, sid_bits: int = 128) -> None:
        self._sid_bytes = max(sid_bits // 8, 1)

    def generate_sid(self) -> str:
        """Return a fresh random session id."""

        return secrets.token_hex(self._sid_bytes)

    def session_options(self, environ: Environ) -> MutableMapping[str, Any]:
        """Session options for this request, created empty when missing."""

        return environ.setdefault(ENV_SESSION_OPTIONS_KEY, {})

    def current_session_id(self, environ: Environ) -> str | None:
        return environ.get(ENV_SESSION_ID_KEY)

    def load_session(self, environ: Environ, sid: str | None = None) -> tuple[str, SessionData]:
        """Load the session for ``sid`` (or the requested ``id`` option)."""

        if sid is None:
            sid = self.session_options(environ).get("id")
        sid, data = self.get_session(environ, sid)
        environ[ENV_SESSION_ID_KEY] = sid
        return sid, data

    def commit_session(self, environ: Environ, data: SessionData) -> str | None:
        """Write ``data`` for the current request.

        Returns the id the data was stored under, or None when the session
        was dropped or the write failed.
        """

        options = self.session_options(environ)
        if options.get("drop"):
            self.destroy_session(environ, self.current_session_id(environ), options)
            environ.pop(ENV_SESSION_ID_KEY, None)
            return None
        sid = self.current_session_id(environ) or self.generate_sid()
        result = self.set_session(environ, sid, data, options)
        if result is False:
            LOG.warning("%s failed to save session; content dropped", type(self).__name__)
            return None
        environ[ENV_SESSION_ID_KEY] = result
        return result

    @abstractmethod
    def get_session(self, environ: Environ, sid: str | None) -> tuple[str, SessionData]:
        """Return ``(sid, data)``, generating an id when ``sid`` is None."""

    @abstractmethod
    def set_session(
        self,
        environ: Environ,
        sid: str,
        data: SessionData,
        options: Mapping[str, Any],
    ) -> str | Literal[False]:
        """Persist ``data``; return ``sid`` on success and False on failure."""

    @abstractmethod
    def destroy_session(self, environ: Environ, sid: str | None, options: Mapping[str, Any]) -> str | None:
        """Remove the current session; return a replacement id unless dropping."""


__all__ = [
    "AbstractSessionStore",
    "ENV_SESSION_ID_KEY",
    "ENV_SESSION_OPTIONS_KEY",
    "Environ",
    "SESSION_RECORD_KEY",
    "SessionData",
]
