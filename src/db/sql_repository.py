"""Implementation of SharedStore using SQLAlchemy"""

import logging
from typing import Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import StaleWriteError, StoreFailureError
from src.db.repository import ABSENT, Versioned
from src.db.schema import DBEntry, utc_now

logger = logging.getLogger(__name__)


class SQLSharedStore:
    """
    Data stored in a single key/value table.

    Writes are compare-and-swap on the version column, so two peers writing back the same stale read
    cannot silently overwrite each other: the second one gets a StaleWriteError.
    Only columns are selected (never ORM entities) so a session never serves a cached row that another peer already replaced.
    """

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get(self, key: str) -> Versioned | None:
        """Get the value stored under key, if any."""
        query = select(DBEntry.value, DBEntry.version).where(DBEntry.key == key)
        try:
            row = self.db.execute(query).first()
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreFailureError(f"Could not read {key=}: {exc}") from exc
        if row is None:
            return None
        return Versioned(value=row.value, version=row.version)

    def put(self, key: str, value: Any, expected_version: int) -> int:
        """Store value if nobody wrote the key since expected_version was read."""
        if expected_version == ABSENT:
            return self._insert(key, value)
        return self._update(key, value, expected_version)

    def remove(self, key: str) -> bool:
        """Delete the value. False if there was nothing to delete."""
        try:
            result = self.db.execute(delete(DBEntry).where(DBEntry.key == key))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreFailureError(f"Could not remove {key=}: {exc}") from exc
        return result.rowcount > 0

    def ping(self) -> None:
        try:
            self.db.execute(select(1))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreFailureError(f"Shared store unreachable: {exc}") from exc

    def _insert(self, key: str, value: Any) -> int:
        try:
            self.db.execute(insert(DBEntry).values(key=key, value=value, version=1))
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise StaleWriteError(f"{key=} was created by another peer.") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreFailureError(f"Could not write {key=}: {exc}") from exc
        return 1

    def _update(self, key: str, value: Any, expected_version: int) -> int:
        new_version = expected_version + 1
        statement = (
            update(DBEntry)
            .where(DBEntry.key == key, DBEntry.version == expected_version)
            .values(value=value, version=new_version, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(statement)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreFailureError(f"Could not write {key=}: {exc}") from exc

        if result.rowcount == 0:
            logger.debug("Rejected write of %s at version %d", key, expected_version)
            raise StaleWriteError(
                f"{key=} changed since version {expected_version} was read."
            )
        return new_version
