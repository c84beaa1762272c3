"""API module for the Sports Grades service."""
from .routes import search_router, grades_router, access_router
from .schemas import (
    AddAccessGrantRequest,
    AddStudentAccessGrantRequest,
    SearchResponse,
    SearchOptionsResponse,
    StudentGradesResponse,
    AccessScopeResponse,
    AccessGrantGroup,
    SuccessResponse,
)

__all__ = [
    "search_router",
    "grades_router",
    "access_router",
    "AddAccessGrantRequest",
    "AddStudentAccessGrantRequest",
    "SearchResponse",
    "SearchOptionsResponse",
    "StudentGradesResponse",
    "AccessScopeResponse",
    "AccessGrantGroup",
    "SuccessResponse",
]
