"""
Academic period helpers.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from database import AcademicPeriod


def get_active_period_ids(db: Session, now: Optional[datetime] = None) -> List[str]:
    """
    Return the period_id of every academic period bracketing `now`.

    Sport memberships and demographics only count for these periods.
    """
    now = now or datetime.now()
    rows = (
        db.query(AcademicPeriod.period_id)
        .filter(AcademicPeriod.start_date <= now)
        .filter(AcademicPeriod.end_date >= now)
        .all()
    )
    return [period_id for (period_id,) in rows]
