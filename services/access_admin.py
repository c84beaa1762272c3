"""
Access grant management for the Sports Grades service.
All functions here are restricted to administrators.
"""
import logging
from datetime import datetime
from typing import Dict, Any, Optional, List, Iterable
from sqlalchemy.orm import Session

from database import User, Sport, AccessGrant, StudentAccessGrant
from .access import AccessPolicy
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

ALL_SPORTS_LABEL = "All Sports"

CLASSIFICATIONS = [
    {"code": "FR", "name": "Freshman"},
    {"code": "SO", "name": "Sophomore"},
    {"code": "JR", "name": "Junior"},
    {"code": "SR", "name": "Senior"},
    {"code": "GR", "name": "Graduate"},
]


def list_sports(db: Session) -> List[Dict[str, Any]]:
    """Return all sports ordered by name."""
    sports = db.query(Sport).order_by(Sport.name.asc()).all()
    return [s.to_dict() for s in sports]


def _sport_label(grant: AccessGrant, sport: Optional[Sport]) -> str:
    if sport:
        return sport.name
    if not grant.sportid:
        return ALL_SPORTS_LABEL
    return f"Unknown sport {grant.sportid}"


def _grant_to_dict(grant: AccessGrant, user: User, sport: Optional[Sport]) -> Dict[str, Any]:
    return {
        "id": grant.id,
        "userid": user.id,
        "username": user.username,
        "fullname": user.fullname,
        "sportid": grant.sportid,
        "sport_name": _sport_label(grant, sport),
        "timecreated": grant.timecreated.isoformat() if grant.timecreated else None,
        "createdby": grant.createdby,
    }


def add_access_grants(
    db: Session,
    admin_id: int,
    user_ids: Iterable[int],
    sport_id: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Grant one sport (or all sports) to several users.

    AUTHORIZATION: Administrator only.

    Args:
        db: Database session
        admin_id: ID of the administrator
        user_ids: Users receiving the grant
        sport_id: Sport to grant; None or 0 grants all sports

    Returns:
        List of created grants

    Raises:
        AdminOnlyError: If requester is not an administrator
        ValidationError: If a user or the sport does not exist
    """
    AccessPolicy(db).enforce_admin(admin_id, "manage_access")

    user_ids = list(dict.fromkeys(user_ids))
    if not user_ids:
        raise ValidationError("At least one user is required", field="user_ids")

    sport = None
    if sport_id:
        sport = db.query(Sport).filter(Sport.id == sport_id).first()
        if not sport:
            raise ValidationError(f"Sport with id {sport_id} not found", field="sport_id")
    else:
        sport_id = None

    users = db.query(User).filter(User.id.in_(user_ids)).all()
    found = {u.id: u for u in users}
    missing = [uid for uid in user_ids if uid not in found]
    if missing:
        raise ValidationError(f"Users not found: {missing}", field="user_ids")

    now = datetime.now()
    created = []
    for uid in user_ids:
        grant = AccessGrant(
            userid=uid,
            sportid=sport_id,
            timecreated=now,
            timemodified=now,
            createdby=admin_id,
            modifiedby=admin_id,
        )
        db.add(grant)
        created.append(grant)
    db.commit()

    logger.info(
        "User %s granted %s to users %s",
        admin_id, sport.code if sport else ALL_SPORTS_LABEL, user_ids
    )
    return [_grant_to_dict(g, found[g.userid], sport) for g in created]


def remove_access_grant(db: Session, admin_id: int, grant_id: int) -> Dict[str, Any]:
    """
    Remove a sport access grant.

    Raises:
        AdminOnlyError: If requester is not an administrator
        ValidationError: If the grant does not exist
    """
    AccessPolicy(db).enforce_admin(admin_id, "manage_access")

    grant = db.query(AccessGrant).filter(AccessGrant.id == grant_id).first()
    if not grant:
        raise ValidationError(f"Access grant with id {grant_id} not found", field="grant_id")

    db.delete(grant)
    db.commit()
    logger.info("User %s removed access grant %s", admin_id, grant_id)
    return {"success": True, "message": f"Access grant {grant_id} removed"}


def list_access_grants(db: Session, admin_id: int) -> List[Dict[str, Any]]:
    """
    List sport access grants grouped by sport.

    Groups are ordered by sport name with "All Sports" first; users within
    a group by last name, then first name.

    Raises:
        AdminOnlyError: If requester is not an administrator
    """
    AccessPolicy(db).enforce_admin(admin_id, "manage_access")

    rows = (
        db.query(AccessGrant, User, Sport)
        .join(User, AccessGrant.userid == User.id)
        .outerjoin(Sport, AccessGrant.sportid == Sport.id)
        .order_by(User.lastname.asc(), User.firstname.asc(), AccessGrant.id.asc())
        .all()
    )

    groups: Dict[str, List[Dict[str, Any]]] = {}
    for grant, user, sport in rows:
        name = _sport_label(grant, sport)
        groups.setdefault(name, []).append(_grant_to_dict(grant, user, sport))

    names = sorted(groups, key=lambda n: (n != ALL_SPORTS_LABEL, n.lower()))
    return [{"sport_name": name, "grants": groups[name]} for name in names]


def add_student_access_grant(
    db: Session,
    admin_id: int,
    user_id: int,
    student_id: int
) -> Dict[str, Any]:
    """
    Let a user view one specific student.

    Raises:
        AdminOnlyError: If requester is not an administrator
        ValidationError: If either user does not exist or the grant exists
    """
    AccessPolicy(db).enforce_admin(admin_id, "manage_access")

    for field_name, uid in (("user_id", user_id), ("student_id", student_id)):
        if not db.query(User.id).filter(User.id == uid).first():
            raise ValidationError(f"User with id {uid} not found", field=field_name)

    existing = (
        db.query(StudentAccessGrant)
        .filter(StudentAccessGrant.userid == user_id)
        .filter(StudentAccessGrant.studentid == student_id)
        .first()
    )
    if existing:
        raise ValidationError(
            f"User {user_id} already has access to student {student_id}", field="student_id"
        )

    grant = StudentAccessGrant(
        userid=user_id,
        studentid=student_id,
        timecreated=datetime.now(),
        createdby=admin_id,
    )
    db.add(grant)
    db.commit()
    logger.info("User %s granted student %s to user %s", admin_id, student_id, user_id)
    return {"id": grant.id, "userid": user_id, "studentid": student_id}


def remove_student_access_grant(db: Session, admin_id: int, grant_id: int) -> Dict[str, Any]:
    """
    Remove a per-student access grant.

    Raises:
        AdminOnlyError: If requester is not an administrator
        ValidationError: If the grant does not exist
    """
    AccessPolicy(db).enforce_admin(admin_id, "manage_access")

    grant = db.query(StudentAccessGrant).filter(StudentAccessGrant.id == grant_id).first()
    if not grant:
        raise ValidationError(f"Student access grant with id {grant_id} not found", field="grant_id")

    db.delete(grant)
    db.commit()
    logger.info("User %s removed student access grant %s", admin_id, grant_id)
    return {"success": True, "message": f"Student access grant {grant_id} removed"}
