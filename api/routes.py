"""
API routes for the Sports Grades service.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db, User
from services import (
    AccessPolicy,
    ResultCache,
    search_students,
    get_course_grades,
    list_sports,
    add_access_grants,
    remove_access_grant,
    list_access_grants,
    add_student_access_grant,
    remove_student_access_grant,
    AdminOnlyError,
    InvalidUserError,
    ValidationError,
    CLASSIFICATIONS,
    NO_ACCESS_MESSAGE,
    SEARCH_ERROR_MESSAGE,
)
from .schemas import (
    AddAccessGrantRequest,
    AddStudentAccessGrantRequest,
    SearchResponse,
    SearchOptionsResponse,
    StudentGradesResponse,
    AccessScopeResponse,
    AccessGrantResponse,
    AccessGrantGroup,
    SuccessResponse,
)

logger = logging.getLogger(__name__)


# Router for student search
search_router = APIRouter(prefix="/search", tags=["Search"])

# Router for grade lookups
grades_router = APIRouter(prefix="/grades", tags=["Grades"])

# Router for access management
access_router = APIRouter(prefix="/access", tags=["Access"])


# ============== Search Endpoints ==============

@search_router.get("/students", response_model=SearchResponse)
async def search_students_endpoint(
    requester_id: int,
    universal_id: Optional[str] = None,
    username: Optional[str] = None,
    firstname: Optional[str] = None,
    lastname: Optional[str] = None,
    major: Optional[str] = None,
    classification: Optional[str] = None,
    sport: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Search student athletes visible to the requester.

    Free-text fields match case-insensitive substrings; classification and
    sport (code) must match exactly. A requester without grants gets an
    empty result.
    """
    try:
        scope = AccessPolicy(db).resolve(requester_id)
    except InvalidUserError:
        raise HTTPException(status_code=404, detail="User not found")
    except SQLAlchemyError:
        logger.exception("Could not resolve access for user %s", requester_id)
        raise HTTPException(status_code=500, detail=SEARCH_ERROR_MESSAGE)

    result = search_students(
        db,
        scope,
        {
            "universal_id": universal_id,
            "username": username,
            "firstname": firstname,
            "lastname": lastname,
            "major": major,
            "classification": classification,
            "sport": sport,
        }
    )
    if "error" in result:
        raise HTTPException(status_code=500, detail=result["error"])
    return SearchResponse(**result)


@search_router.get("/options", response_model=SearchOptionsResponse)
async def search_options(db: Session = Depends(get_db)):
    """Sports and classifications offered as search choices."""
    return SearchOptionsResponse(sports=list_sports(db), classifications=CLASSIFICATIONS)


# ============== Grade Endpoints ==============

@grades_router.get("/{student_id}", response_model=StudentGradesResponse)
async def get_student_grades(
    student_id: int,
    requester_id: int,
    course_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """
    Get the per-course grade breakdown of a student.

    The selected course is the one matching `course_id`, else the most
    recent course.
    """
    student = db.query(User).filter(User.id == student_id).first()
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")

    result = get_course_grades(db, student_id=student_id, requester_id=requester_id)
    if "error" in result:
        if result["error"] == NO_ACCESS_MESSAGE:
            raise HTTPException(status_code=403, detail=result["error"])
        raise HTTPException(status_code=500, detail=result["error"])

    courses = result["courses"]
    selected = next((c for c in courses if c["id"] == course_id), None)
    if selected is None and courses:
        selected = courses[0]

    return {
        "student": {
            "id": student.id,
            "username": student.username,
            "firstname": student.firstname,
            "lastname": student.lastname,
        },
        "courses": courses,
        "selected_course": selected,
    }


# ============== Access Endpoints ==============

@access_router.get("/scope", response_model=AccessScopeResponse)
async def get_access_scope(requester_id: int, db: Session = Depends(get_db)):
    """Resolved access scope of the requester."""
    try:
        scope = AccessPolicy(db).resolve(requester_id)
    except InvalidUserError:
        raise HTTPException(status_code=404, detail="User not found")
    return AccessScopeResponse(user_id=requester_id, **scope.to_dict())


@access_router.get("/grants", response_model=list[AccessGrantGroup])
async def get_access_grants(requester_id: int, db: Session = Depends(get_db)):
    """List access grants grouped by sport (Administrator only)."""
    try:
        return list_access_grants(db, admin_id=requester_id)
    except AdminOnlyError:
        raise HTTPException(status_code=403, detail="Only administrators can manage access")
    except InvalidUserError:
        raise HTTPException(status_code=404, detail="User not found")


@access_router.post("/grants", response_model=list[AccessGrantResponse])
async def create_access_grants(request: AddAccessGrantRequest, db: Session = Depends(get_db)):
    """Grant a sport, or all sports, to users (Administrator only)."""
    try:
        return add_access_grants(
            db,
            admin_id=request.requester_id,
            user_ids=request.user_ids,
            sport_id=request.sport_id
        )
    except AdminOnlyError:
        raise HTTPException(status_code=403, detail="Only administrators can manage access")
    except InvalidUserError:
        raise HTTPException(status_code=404, detail="User not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


@access_router.delete("/grants/{grant_id}", response_model=SuccessResponse)
async def delete_access_grant(grant_id: int, requester_id: int, db: Session = Depends(get_db)):
    """Remove an access grant (Administrator only)."""
    try:
        return SuccessResponse(**remove_access_grant(db, admin_id=requester_id, grant_id=grant_id))
    except AdminOnlyError:
        raise HTTPException(status_code=403, detail="Only administrators can manage access")
    except InvalidUserError:
        raise HTTPException(status_code=404, detail="User not found")
    except ValidationError as e:
        raise HTTPException(status_code=404, detail=e.message)


@access_router.post("/student-grants", response_model=SuccessResponse)
async def create_student_access_grant(
    request: AddStudentAccessGrantRequest,
    db: Session = Depends(get_db)
):
    """Let a user view one specific student (Administrator only)."""
    try:
        grant = add_student_access_grant(
            db,
            admin_id=request.requester_id,
            user_id=request.user_id,
            student_id=request.student_id
        )
        return SuccessResponse(success=True, message="Student access granted", data=grant)
    except AdminOnlyError:
        raise HTTPException(status_code=403, detail="Only administrators can manage access")
    except InvalidUserError:
        raise HTTPException(status_code=404, detail="User not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


@access_router.delete("/student-grants/{grant_id}", response_model=SuccessResponse)
async def delete_student_access_grant(
    grant_id: int,
    requester_id: int,
    db: Session = Depends(get_db)
):
    """Remove a per-student access grant (Administrator only)."""
    try:
        return SuccessResponse(
            **remove_student_access_grant(db, admin_id=requester_id, grant_id=grant_id)
        )
    except AdminOnlyError:
        raise HTTPException(status_code=403, detail="Only administrators can manage access")
    except InvalidUserError:
        raise HTTPException(status_code=404, detail="User not found")
    except ValidationError as e:
        raise HTTPException(status_code=404, detail=e.message)


@access_router.post("/cache/purge", response_model=SuccessResponse)
async def purge_grade_cache(requester_id: int, db: Session = Depends(get_db)):
    """Delete expired grade cache entries (Administrator only)."""
    try:
        AccessPolicy(db).enforce_admin(requester_id, "purge_cache")
    except AdminOnlyError:
        raise HTTPException(status_code=403, detail="Only administrators can purge the cache")
    except InvalidUserError:
        raise HTTPException(status_code=404, detail="User not found")

    deleted = ResultCache(db).purge_expired()
    return SuccessResponse(
        success=True,
        message=f"Purged {deleted} expired cache entries",
        data={"deleted": deleted}
    )
