"""Persistence gateway for session rows."""

from __future__ import annotations

import logging

from sqlalchemy import delete, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.attributes import flag_modified

from ..models import SessionRecord

LOG = logging.getLogger(__name__)


def is_persisted(record: SessionRecord) -> bool:
    """True once ``record`` has been written to (or loaded from) the table."""

    return inspect(record).has_identity


class SessionRepository:
    """Reads and writes :class:`SessionRecord` rows through one engine.

    Create a single repository at process start and inject it into the
    store. Each operation runs in its own short-lived ORM session; records
    handed back are detached and keep their loaded state.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        """Create the ``sessions`` table if it does not exist."""

        SessionRecord.metadata.create_all(self._engine, tables=[SessionRecord.__table__])

    def find(self, session_id: str) -> SessionRecord:
        """Stored record for ``session_id``, or a new unsaved one with empty data."""

        statement = select(SessionRecord).where(SessionRecord.session_id == session_id).limit(1)
        with self._session_factory() as db:
            record = db.scalars(statement).first()
        if record is None:
            return SessionRecord(session_id=session_id, data={})
        return record

    def save(self, record: SessionRecord) -> bool:
        """Insert or update ``record``; return False instead of raising on failure."""

        if is_persisted(record):
            # In-place changes to the pickled payload are invisible to the ORM.
            flag_modified(record, "data")
        with self._session_factory() as db:
            try:
                db.add(record)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                LOG.warning("Session save failed", extra={"error": type(exc).__name__})
                LOG.debug(str(exc))
                return False
        return True

    def delete(self, record: SessionRecord) -> None:
        """Delete the row behind ``record``; unsaved records are ignored."""

        if not is_persisted(record):
            return
        with self._session_factory() as db:
            db.execute(delete(SessionRecord).where(SessionRecord.session_id == record.session_id))
            db.commit()


__all__ = ["SessionRepository", "is_persisted"]
