"""
Services module for the Sports Grades service.

This module provides the access policy, student search, grade aggregation,
result cache and access administration used by the API, each taking the
requesting identity and the database session explicitly.
"""
from .exceptions import (
    AuthorizationError,
    SportAccessDenied,
    AdminOnlyError,
    InvalidUserError,
    ValidationError,
)

from .access import (
    AccessScope,
    AccessPolicy,
    get_access_policy,
)

from .periods import get_active_period_ids

from .search import (
    search_students,
    get_student_sports,
    normalize_filters,
    SEARCH_ERROR_MESSAGE,
)

from .cache import ResultCache

from .grades import (
    GradeAggregator,
    get_course_grades,
    letter_grade,
    compute_item_scores,
    NO_ACCESS_MESSAGE,
    GRADES_ERROR_MESSAGE,
)

from .access_admin import (
    list_sports,
    add_access_grants,
    remove_access_grant,
    list_access_grants,
    add_student_access_grant,
    remove_student_access_grant,
    CLASSIFICATIONS,
    ALL_SPORTS_LABEL,
)

__all__ = [
    # Exceptions
    "AuthorizationError",
    "SportAccessDenied",
    "AdminOnlyError",
    "InvalidUserError",
    "ValidationError",
    # Access
    "AccessScope",
    "AccessPolicy",
    "get_access_policy",
    "get_active_period_ids",
    # Search
    "search_students",
    "get_student_sports",
    "normalize_filters",
    "SEARCH_ERROR_MESSAGE",
    # Grades
    "ResultCache",
    "GradeAggregator",
    "get_course_grades",
    "letter_grade",
    "compute_item_scores",
    "NO_ACCESS_MESSAGE",
    "GRADES_ERROR_MESSAGE",
    # Access administration
    "list_sports",
    "add_access_grants",
    "remove_access_grant",
    "list_access_grants",
    "add_student_access_grant",
    "remove_student_access_grant",
    "CLASSIFICATIONS",
    "ALL_SPORTS_LABEL",
]
