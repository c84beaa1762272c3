"""Database module."""
from .models import (
    Base,
    User,
    UserRole,
    AcademicPeriod,
    Sport,
    StudentMeta,
    AccessGrant,
    StudentAccessGrant,
    Term,
    Course,
    CourseMeta,
    Enrollment,
    GradeItem,
    Grade,
    CachedGradeResult,
    ATHLETIC_TEAM_DATATYPE,
    UNIVERSAL_ID_DATATYPE,
    COLLEGE_DATATYPE,
    MAJOR_DATATYPE,
    CLASSIFICATION_DATATYPE,
    TERM_CODE_DATATYPE,
    SECTION_CODE_DATATYPE,
    COURSE_TOTAL_ITEMTYPE,
)
from .connection import engine, SessionLocal, build_engine, get_db, get_db_context, init_db

__all__ = [
    "Base",
    "User",
    "UserRole",
    "AcademicPeriod",
    "Sport",
    "StudentMeta",
    "AccessGrant",
    "StudentAccessGrant",
    "Term",
    "Course",
    "CourseMeta",
    "Enrollment",
    "GradeItem",
    "Grade",
    "CachedGradeResult",
    "ATHLETIC_TEAM_DATATYPE",
    "UNIVERSAL_ID_DATATYPE",
    "COLLEGE_DATATYPE",
    "MAJOR_DATATYPE",
    "CLASSIFICATION_DATATYPE",
    "TERM_CODE_DATATYPE",
    "SECTION_CODE_DATATYPE",
    "COURSE_TOTAL_ITEMTYPE",
    "engine",
    "SessionLocal",
    "build_engine",
    "get_db",
    "get_db_context",
    "init_db",
]
