"""
Time-boxed cache of grade aggregation results.

Entries are insert-only: a new entry supersedes older ones and expiry is
evaluated on read. Cache faults never break a grade lookup; they are logged
and treated as a miss.
"""
import json
import logging
from datetime import datetime, timedelta
from typing import Dict, Any, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config.settings import settings
from database import CachedGradeResult

logger = logging.getLogger(__name__)


class ResultCache:
    """Grade result cache backed by the sportsgrades_cache table."""

    def __init__(self, db: Session, ttl_seconds: Optional[int] = None):
        self.db = db
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds

    def get(self, student_id: int, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        """
        Return the newest unexpired payload for a student, or None.
        """
        now = now or datetime.now()
        try:
            cached = (
                self.db.query(CachedGradeResult.data)
                .filter(CachedGradeResult.studentid == student_id)
                .filter(CachedGradeResult.timeexpires > now)
                .order_by(CachedGradeResult.timecreated.desc(), CachedGradeResult.id.desc())
                .first()
            )
            if cached is None:
                return None
            return json.loads(cached.data)
        except SQLAlchemyError:
            self.db.rollback()
            logger.warning("Grade cache read failed for student %s", student_id, exc_info=True)
            return None
        except ValueError:
            logger.warning("Grade cache read failed for student %s", student_id, exc_info=True)
            return None

    def put(
        self,
        student_id: int,
        payload: Dict[str, Any],
        ttl_seconds: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> bool:
        """
        Store a payload for a student. Always inserts a new row.

        Returns:
            True if the entry was written
        """
        now = now or datetime.now()
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        try:
            entry = CachedGradeResult(
                studentid=student_id,
                data=json.dumps(payload),
                timecreated=now,
                timeexpires=now + timedelta(seconds=ttl),
            )
            self.db.add(entry)
            self.db.commit()
            return True
        except (SQLAlchemyError, TypeError, ValueError):
            self.db.rollback()
            logger.warning("Grade cache write failed for student %s", student_id, exc_info=True)
            return False

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """
        Delete every expired entry.

        Returns:
            Number of rows removed
        """
        now = now or datetime.now()
        deleted = (
            self.db.query(CachedGradeResult)
            .filter(CachedGradeResult.timeexpires <= now)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info("Purged %d expired grade cache entries", deleted)
        return deleted
