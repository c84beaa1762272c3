"""
Student-athlete search for the Sports Grades service.

Students are matched through their current-period athletic team
memberships and filtered by the requester's access scope. Search never
raises: storage failures come back as an ``{"error": ...}`` result.
"""
import logging
from datetime import datetime
from typing import Dict, Any, Optional, List, Iterable, Mapping
from sqlalchemy import and_, or_, case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from database import (
    User,
    Sport,
    StudentMeta,
    ATHLETIC_TEAM_DATATYPE,
    UNIVERSAL_ID_DATATYPE,
    COLLEGE_DATATYPE,
    MAJOR_DATATYPE,
    CLASSIFICATION_DATATYPE,
)
from .access import AccessScope
from .periods import get_active_period_ids

logger = logging.getLogger(__name__)

SEARCH_ERROR_MESSAGE = "An error occurred while searching."

# Filters matched as case-insensitive substrings; the rest match exactly.
SUBSTRING_FILTERS = ("universal_id", "username", "firstname", "lastname", "major")
EXACT_FILTERS = ("classification", "sport")
SEARCH_FILTERS = SUBSTRING_FILTERS + EXACT_FILTERS


def normalize_filters(filters: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Drop unknown keys and blank values, strip the rest."""
    if not filters:
        return {}
    cleaned = {}
    for key in SEARCH_FILTERS:
        value = filters.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            cleaned[key] = value
    return cleaned


def _pivot(datatype: str):
    return func.max(
        case((StudentMeta.datatype == datatype, StudentMeta.data), else_=None)
    ).label(datatype)


def _demographics_subquery(period_ids: List[str]):
    """Pivot current-period demographic metadata to one row per student."""
    return (
        select(
            StudentMeta.studentid.label("userid"),
            _pivot(UNIVERSAL_ID_DATATYPE),
            _pivot(COLLEGE_DATATYPE),
            _pivot(MAJOR_DATATYPE),
            _pivot(CLASSIFICATION_DATATYPE),
        )
        .where(StudentMeta.academic_period_id.in_(period_ids))
        .group_by(StudentMeta.studentid)
        .subquery("demographics")
    )


def get_sports_for_students(
    db: Session,
    student_ids: Iterable[int],
    period_ids: List[str]
) -> Dict[int, List[Dict[str, Any]]]:
    """
    Get the current-period sports of several students at once.

    Returns:
        Mapping of student ID to a list of sport dicts ordered by name
    """
    student_ids = list(student_ids)
    sports = {student_id: [] for student_id in student_ids}
    if not student_ids or not period_ids:
        return sports

    rows = (
        db.query(StudentMeta.studentid, Sport)
        .join(Sport, StudentMeta.data == Sport.code)
        .filter(StudentMeta.studentid.in_(student_ids))
        .filter(StudentMeta.datatype == ATHLETIC_TEAM_DATATYPE)
        .filter(StudentMeta.academic_period_id.in_(period_ids))
        .distinct()
        .order_by(Sport.name.asc())
        .all()
    )
    for student_id, sport in rows:
        sports[student_id].append(sport.to_dict())
    return sports


def get_student_sports(
    db: Session,
    student_id: int,
    now: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """Get the sports a student belongs to in the active period(s)."""
    period_ids = get_active_period_ids(db, now)
    return get_sports_for_students(db, [student_id], period_ids)[student_id]


def search_students(
    db: Session,
    scope: AccessScope,
    filters: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Search student athletes visible to a scope.

    Args:
        db: Database session
        scope: Resolved access scope of the requester
        filters: Optional universal_id, username, firstname, lastname,
            major, classification and sport (code) filters
        now: Reference time for the active period (defaults to now)

    Returns:
        ``{"success": True, "results": [...]}`` or ``{"error": message}``
    """
    filters = normalize_filters(filters)

    if scope.is_empty:
        return {"success": True, "results": []}

    try:
        period_ids = get_active_period_ids(db, now)
        if not period_ids:
            logger.info("No active academic period; search returns nothing")
            return {"success": True, "results": []}

        membership = aliased(StudentMeta)
        demographics = _demographics_subquery(period_ids)

        query = (
            db.query(
                User.id,
                User.username,
                User.firstname,
                User.lastname,
                demographics.c.universal_id,
                demographics.c.college,
                demographics.c.major,
                demographics.c.classification,
            )
            .join(
                membership,
                and_(
                    membership.studentid == User.id,
                    membership.datatype == ATHLETIC_TEAM_DATATYPE,
                    membership.academic_period_id.in_(period_ids),
                )
            )
            .outerjoin(demographics, demographics.c.userid == User.id)
        )

        # Access scope
        if not scope.all_sports:
            allowed = []
            if scope.sport_codes:
                allowed.append(membership.data.in_(sorted(scope.sport_codes)))
            if scope.student_ids:
                allowed.append(User.id.in_(sorted(scope.student_ids)))
            query = query.filter(or_(*allowed))

        # Search filters
        substring_columns = {
            "universal_id": demographics.c.universal_id,
            "username": User.username,
            "firstname": User.firstname,
            "lastname": User.lastname,
            "major": demographics.c.major,
        }
        for key, column in substring_columns.items():
            if key in filters:
                query = query.filter(column.ilike(f"%{filters[key]}%"))

        if "classification" in filters:
            query = query.filter(demographics.c.classification == filters["classification"])

        if "sport" in filters:
            query = query.filter(membership.data == filters["sport"])

        rows = (
            query.order_by(
                func.lower(User.lastname).asc(),
                func.lower(User.firstname).asc(),
                User.id.asc(),
            )
            .all()
        )

        # A student can match through several memberships
        students = []
        seen = set()
        for row in rows:
            if row.id in seen:
                continue
            seen.add(row.id)
            students.append(row)

        sports = get_sports_for_students(db, seen, period_ids)

        results = [
            {
                "id": row.id,
                "username": row.username,
                "firstname": row.firstname,
                "lastname": row.lastname,
                "universal_id": row.universal_id,
                "college": row.college,
                "major": row.major,
                "classification": row.classification,
                "sports": sports[row.id],
            }
            for row in students
        ]
        return {"success": True, "results": results}

    except SQLAlchemyError:
        db.rollback()
        logger.exception("Student search failed")
        return {"error": SEARCH_ERROR_MESSAGE}
