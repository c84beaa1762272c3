"""
Access policy for the Sports Grades service.
Resolves which students a requesting user may view.

RULES:
1. Administrators are recognised by their role, never by username
2. A grant without a sport covers every sport
3. Grants are additive: the scope is the union of all of a user's grants
4. No grants means no visible students
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, Optional, Set
from sqlalchemy.orm import Session

from database import (
    User,
    UserRole,
    Sport,
    StudentMeta,
    AccessGrant,
    StudentAccessGrant,
    ATHLETIC_TEAM_DATATYPE,
)
from .exceptions import SportAccessDenied, AdminOnlyError, InvalidUserError
from .periods import get_active_period_ids

logger = logging.getLogger(__name__)


@dataclass
class AccessScope:
    """Resolved permission scope of one requesting user."""
    all_sports: bool = False
    sport_codes: Set[str] = field(default_factory=set)
    student_ids: Set[int] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        """True when the scope grants no students at all."""
        return not self.all_sports and not self.sport_codes and not self.student_ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            "all_sports": self.all_sports,
            "sport_codes": sorted(self.sport_codes),
            "student_ids": sorted(self.student_ids),
        }


class AccessPolicy:
    """
    Service for resolving and enforcing access scopes.
    Roles and grants are always read from the database.
    """
    
    def __init__(self, db: Session):
        self.db = db
    
    def get_user(self, user_id: int) -> User:
        """
        Get user from database.
        
        Raises:
            InvalidUserError: If user not found
        """
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise InvalidUserError(user_id)
        return user
    
    def is_admin(self, user_id: int) -> bool:
        """Check if user is a site administrator."""
        return self.get_user(user_id).role == UserRole.ADMIN
    
    def resolve(self, user_id: int) -> AccessScope:
        """
        Resolve the access scope of a user.
        
        Args:
            user_id: The requesting user's ID
            
        Returns:
            AccessScope with the union of the user's grants
            
        Raises:
            InvalidUserError: If user not found
        """
        scope = AccessScope()
        
        if self.is_admin(user_id):
            scope.all_sports = True
            return scope
        
        grants = (
            self.db.query(AccessGrant, Sport)
            .outerjoin(Sport, AccessGrant.sportid == Sport.id)
            .filter(AccessGrant.userid == user_id)
            .all()
        )
        for grant, sport in grants:
            if not grant.sportid:
                scope.all_sports = True
            elif sport is None:
                logger.warning(
                    "Access grant %s references missing sport %s; skipping",
                    grant.id, grant.sportid
                )
            else:
                scope.sport_codes.add(sport.code)
        
        student_grants = (
            self.db.query(StudentAccessGrant.studentid)
            .filter(StudentAccessGrant.userid == user_id)
            .all()
        )
        scope.student_ids.update(student_id for (student_id,) in student_grants)
        
        return scope
    
    def can_view_student(
        self,
        scope: AccessScope,
        student_id: int,
        now: Optional[datetime] = None
    ) -> bool:
        """
        Check whether a scope covers a student, directly or through one of
        the student's current sports.
        """
        if scope.all_sports or student_id in scope.student_ids:
            return True
        if not scope.sport_codes:
            return False
        
        period_ids = get_active_period_ids(self.db, now)
        if not period_ids:
            return False
        
        match = (
            self.db.query(StudentMeta.id)
            .filter(StudentMeta.studentid == student_id)
            .filter(StudentMeta.datatype == ATHLETIC_TEAM_DATATYPE)
            .filter(StudentMeta.academic_period_id.in_(period_ids))
            .filter(StudentMeta.data.in_(sorted(scope.sport_codes)))
            .first()
        )
        return match is not None
    
    def enforce_student_access(self, requester_id: int, student_id: int) -> AccessScope:
        """
        Enforce that the requester may view the student.
        
        Raises:
            SportAccessDenied: If no grant covers the student
            InvalidUserError: If the requester is not found
        """
        scope = self.resolve(requester_id)
        if not self.can_view_student(scope, student_id):
            raise SportAccessDenied(requester_id, student_id)
        return scope
    
    def enforce_admin(self, user_id: int, action: str) -> None:
        """
        Enforce that only administrators can perform an action.
        
        Raises:
            AdminOnlyError: If user is not an administrator
        """
        if not self.is_admin(user_id):
            raise AdminOnlyError(user_id, action)


def get_access_policy(db: Session) -> AccessPolicy:
    """Factory function to create AccessPolicy."""
    return AccessPolicy(db)
