# backend/lessonbook/store.py
"""Whole-collection key/value store on top of the ``collections`` table.

Every named collection is read and written as one JSON value. Writes are
conditional on the version that was read, so two requests computing against
the same snapshot cannot silently overwrite each other: the loser gets
``StoreConflict`` and re-runs its read-compute-write cycle via ``mutate``.
"""
import logging
from typing import Any, Callable, List, Optional, Tuple

from fastapi import Depends
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .db import get_db
from .errors import StoreConflict, StoreUnavailable

logger = logging.getLogger(__name__)

LESSONS = "lessons"
STUDENTS = "students"
TEACHERS = "teachers"
TIME_SLOTS = "timeSlots"


class ScheduleStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Tuple[List[Any], int]:
        """Return (value, version). A collection never written is ([], 0)."""
        try:
            row = self.db.execute(
                select(models.Collection.value, models.Collection.version)
                .where(models.Collection.key == key)
            ).first()
        except SQLAlchemyError as exc:
            logger.exception("Reading collection %r failed", key)
            self.db.rollback()
            raise StoreUnavailable(str(exc)) from exc

        if row is None:
            return [], 0
        value = row.value if isinstance(row.value, list) else []
        return value, row.version

    def read(self, key: str) -> List[Any]:
        return self.get(key)[0]

    def set(self, key: str, value: List[Any], expected_version: int) -> int:
        """Write ``value`` only if the stored version is still ``expected_version``.

        Returns the new version.
        """
        new_version = expected_version + 1
        try:
            if expected_version == 0:
                self.db.execute(
                    insert(models.Collection).values(key=key, value=value, version=new_version)
                )
            else:
                result = self.db.execute(
                    update(models.Collection)
                    .where(
                        models.Collection.key == key,
                        models.Collection.version == expected_version,
                    )
                    .values(value=value, version=new_version)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    self.db.rollback()
                    raise StoreConflict(f"Collection {key!r} changed since version {expected_version}")
            self.db.commit()
        except IntegrityError as exc:
            # another writer created the collection first
            self.db.rollback()
            raise StoreConflict(f"Collection {key!r} was created concurrently") from exc
        except SQLAlchemyError as exc:
            logger.exception("Writing collection %r failed", key)
            self.db.rollback()
            raise StoreUnavailable(str(exc)) from exc
        return new_version

    def mutate(
        self,
        key: str,
        compute: Callable[[List[Any]], Tuple[Any, Optional[List[Any]]]],
        attempts: Optional[int] = None,
    ):
        """Run read -> compute -> conditional write, retrying on conflict.

        ``compute`` gets a fresh snapshot on every attempt and returns
        ``(result, new_value)``; a ``None`` new_value means nothing to write.
        Errors raised by ``compute`` abort before any write.
        """
        attempts = max(1, attempts or settings.STORE_CAS_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            current, version = self.get(key)
            result, new_value = compute(list(current))
            if new_value is None:
                return result
            try:
                self.set(key, new_value, version)
                return result
            except StoreConflict:
                logger.warning("Conflict writing %r (attempt %d/%d)", key, attempt, attempts)
        raise StoreConflict(f"Gave up writing {key!r} after {attempts} attempts")


def get_store(db: Session = Depends(get_db)) -> ScheduleStore:
    return ScheduleStore(db)
