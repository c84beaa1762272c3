"""
Pydantic schemas for API requests and responses.
"""
from typing import Optional, List, Any
from pydantic import BaseModel, Field


# Request schemas
class AddAccessGrantRequest(BaseModel):
    """Request to grant a sport (or all sports) to users."""
    requester_id: int = Field(..., description="ID of the administrator")
    user_ids: List[int] = Field(..., min_length=1, description="Users receiving the grant")
    sport_id: Optional[int] = Field(None, description="Sport ID; null or 0 grants all sports")


class AddStudentAccessGrantRequest(BaseModel):
    """Request to grant access to one student."""
    requester_id: int = Field(..., description="ID of the administrator")
    user_id: int = Field(..., description="User receiving the grant")
    student_id: int = Field(..., description="Student the user may view")


# Response schemas
class SportResponse(BaseModel):
    """Sport reference data."""
    id: int
    code: str
    name: str


class StudentRow(BaseModel):
    """One student athlete in a search result."""
    id: int
    username: str
    firstname: str
    lastname: str
    universal_id: Optional[str]
    college: Optional[str]
    major: Optional[str]
    classification: Optional[str]
    sports: List[SportResponse]


class SearchResponse(BaseModel):
    """Search results."""
    success: bool
    results: List[StudentRow]


class ClassificationResponse(BaseModel):
    code: str
    name: str


class SearchOptionsResponse(BaseModel):
    """Values offered by the search form."""
    sports: List[SportResponse]
    classifications: List[ClassificationResponse]


class GradeItemResponse(BaseModel):
    """One grade item with its contribution to the final grade."""
    id: int
    name: Optional[str]
    type: str
    module: Optional[str]
    weight: Optional[float]
    weight_formatted: str
    grade: Optional[float]
    grade_formatted: str
    grademax: Optional[float]
    percentage: Optional[float]
    percentage_formatted: str
    contribution: Optional[float]
    contribution_formatted: str


class CourseGradeResponse(BaseModel):
    """A course with its final grade and grade items."""
    id: int
    fullname: str
    shortname: str
    section: str
    term: Optional[str]
    startdate: Optional[str]
    final_grade: Optional[float]
    final_grade_formatted: str
    letter_grade: str
    grade_items: List[GradeItemResponse]


class StudentSummary(BaseModel):
    id: int
    username: str
    firstname: str
    lastname: str


class StudentGradesResponse(BaseModel):
    """Grade breakdown of one student."""
    student: StudentSummary
    courses: List[CourseGradeResponse]
    selected_course: Optional[CourseGradeResponse]


class AccessScopeResponse(BaseModel):
    """Resolved access scope of a user."""
    user_id: int
    all_sports: bool
    sport_codes: List[str]
    student_ids: List[int]


class AccessGrantResponse(BaseModel):
    id: int
    userid: int
    username: str
    fullname: str
    sportid: Optional[int]
    sport_name: str
    timecreated: Optional[str]
    createdby: Optional[int]


class AccessGrantGroup(BaseModel):
    """Grants of one sport."""
    sport_name: str
    grants: List[AccessGrantResponse]


class SuccessResponse(BaseModel):
    """Generic success response."""
    success: bool
    message: str
    data: Optional[Any] = None
