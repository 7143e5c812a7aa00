"""SQLAlchemy-backed session store."""

from __future__ import annotations

import logging
from typing import Any, Literal, Mapping

from ..models import SessionRecord
from .base import SESSION_RECORD_KEY, AbstractSessionStore, Environ, SessionData
from .repository import SessionRepository

LOG = logging.getLogger(__name__)


class SqlAlchemySessionStore(AbstractSessionStore):
    """Keeps session payloads in the ``sessions`` table.

    The record resolved for a request is cached in the environ under
    :data:`SESSION_RECORD_KEY` so later hooks in the same request reuse it.
    """

    def __init__(self, repository: SessionRepository, *, sid_bits: int = 128) -> None:
        super().__init__(sid_bits=sid_bits)
        self._repository = repository

    @property
    def repository(self) -> SessionRepository:
        return self._repository

    def get_session(self, environ: Environ, sid: str | None) -> tuple[str, SessionData]:
        if sid is None:
            sid = self.generate_sid()
        record = self._repository.find(sid)
        environ[SESSION_RECORD_KEY] = record
        if record.data is None:
            record.data = {}
        return sid, record.data

    def set_session(
        self,
        environ: Environ,
        sid: str,
        data: SessionData,
        options: Mapping[str, Any],
    ) -> str | Literal[False]:
        record = self._record_for(environ, sid)
        record.data = data
        if not self._repository.save(record):
            return False
        return sid

    def destroy_session(self, environ: Environ, sid: str | None, options: Mapping[str, Any]) -> str | None:
        # The request's own id wins over whatever the caller passed in.
        current = self.current_session_id(environ)
        if current is not None:
            record = self._record_for(environ, current)
            self._repository.delete(record)
            environ[SESSION_RECORD_KEY] = None
            LOG.debug("Session destroyed", extra={"drop": bool(options.get("drop"))})
        if options.get("drop"):
            return None
        return self.generate_sid()

    def _record_for(self, environ: Environ, sid: str) -> SessionRecord:
        cached = environ.get(SESSION_RECORD_KEY)
        explicit_id = self.session_options(environ).get("id") is not None
        if cached is not None and not explicit_id and cached.session_id == sid:
            return cached
        record = self._repository.find(sid)
        environ[SESSION_RECORD_KEY] = record
        return record


__all__ = ["SqlAlchemySessionStore"]
