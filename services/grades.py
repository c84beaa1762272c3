"""
Grade aggregation for the Sports Grades service.

Builds the per-course grade breakdown of one student: final grade, letter
grade and every weighted grade item with its percentage and contribution to
the final grade. Results are cached per student for a fixed window.

AUTHORIZATION: the requester must be an administrator, hold an all-sports
grant, hold a grant for one of the student's current sports, or hold a
grant for the student directly.
"""
import logging
from datetime import datetime
from typing import Dict, Any, Optional, List, Tuple
from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from database import (
    Course,
    CourseMeta,
    Enrollment,
    Grade,
    GradeItem,
    Term,
    User,
    TERM_CODE_DATATYPE,
    SECTION_CODE_DATATYPE,
    COURSE_TOTAL_ITEMTYPE,
)
from .access import AccessPolicy
from .cache import ResultCache
from .exceptions import SportAccessDenied, InvalidUserError

logger = logging.getLogger(__name__)

NO_ACCESS_MESSAGE = "You do not have access to view this student."
GRADES_ERROR_MESSAGE = "An error occurred while retrieving grades."
PLACEHOLDER = "-"

# (lower bound, letter), checked in order
LETTER_GRADES = (
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
)


def letter_grade(grade: float) -> str:
    """Convert a numeric grade to a letter grade."""
    for lower_bound, letter in LETTER_GRADES:
        if grade >= lower_bound:
            return letter
    return "F"


def format_value(value: Optional[float], suffix: str = "") -> str:
    """Format to two decimals, or the placeholder when missing."""
    if value is None:
        return PLACEHOLDER
    return f"{value:.2f}{suffix}"


def compute_item_scores(
    grade: Optional[float],
    grademax: Optional[float],
    weight: Optional[float]
) -> Tuple[Optional[float], Optional[float]]:
    """
    Compute an item's percentage and its contribution to the final grade.

    percentage = grade / grademax * 100
    contribution = percentage * weight / 100

    Any missing operand (or a zero grademax) leaves the dependent value None.

    Returns:
        Tuple of (percentage, contribution)
    """
    if grade is None or not grademax:
        return None, None
    percentage = grade * 100 / grademax
    if weight is None:
        return percentage, None
    return percentage, percentage * weight / 100


def effective_weight(weight: Optional[float], weight_override: Optional[float]) -> Optional[float]:
    """An explicit override wins over the configured weight."""
    if weight_override is not None:
        return weight_override
    return weight


def build_grade_item(item: GradeItem, grade: Optional[float]) -> Dict[str, Any]:
    """Shape one grade item and the student's grade on it."""
    weight = effective_weight(item.weight, item.weight_override)
    try:
        percentage, contribution = compute_item_scores(grade, item.grademax, weight)
    except (TypeError, ValueError, ArithmeticError):
        logger.warning("Could not compute scores for grade item %s", item.id, exc_info=True)
        percentage, contribution = None, None

    return {
        "id": item.id,
        "name": item.itemname,
        "type": item.itemtype,
        "module": item.itemmodule,
        "weight": weight,
        "weight_formatted": format_value(weight, "%"),
        "grade": grade,
        "grade_formatted": format_value(grade),
        "grademax": item.grademax,
        "percentage": percentage,
        "percentage_formatted": format_value(percentage, "%"),
        "contribution": contribution,
        "contribution_formatted": format_value(contribution, "%"),
    }


class GradeAggregator:
    """Computes and caches the course grade breakdown of a student."""

    def __init__(self, db: Session, cache: Optional[ResultCache] = None):
        self.db = db
        self.cache = cache or ResultCache(db)

    def get_enrolled_courses(self, student_id: int) -> List[Dict[str, Any]]:
        """
        List the distinct courses a student is enrolled in, with term label,
        start date and section code.
        """
        term_meta = aliased(CourseMeta)
        section_meta = aliased(CourseMeta)

        rows = (
            self.db.query(
                Course.id,
                Course.fullname,
                Course.shortname,
                Course.startdate,
                Term.name.label("term"),
                section_meta.data.label("section"),
            )
            .join(Enrollment, Enrollment.courseid == Course.id)
            .outerjoin(
                term_meta,
                and_(term_meta.courseid == Course.id, term_meta.datatype == TERM_CODE_DATATYPE)
            )
            .outerjoin(Term, Term.code == term_meta.data)
            .outerjoin(
                section_meta,
                and_(section_meta.courseid == Course.id, section_meta.datatype == SECTION_CODE_DATATYPE)
            )
            .filter(Enrollment.userid == student_id)
            .distinct()
            .order_by(Course.id.asc())
            .all()
        )

        courses = {}
        for row in rows:
            if row.id in courses:
                continue
            courses[row.id] = {
                "id": row.id,
                "fullname": row.fullname,
                "shortname": row.shortname,
                "section": row.section or "",
                "term": row.term,
                "startdate": row.startdate,
            }
        return list(courses.values())

    def get_final_grade(self, student_id: int, course_id: int) -> Optional[float]:
        """The student's grade on the course total item, if any."""
        row = (
            self.db.query(Grade.finalgrade)
            .join(GradeItem, Grade.itemid == GradeItem.id)
            .filter(GradeItem.courseid == course_id)
            .filter(GradeItem.itemtype == COURSE_TOTAL_ITEMTYPE)
            .filter(Grade.userid == student_id)
            .first()
        )
        return row.finalgrade if row else None

    def get_grade_items(self, student_id: int, course_id: int) -> List[Dict[str, Any]]:
        """Grade items of a course, course total excluded."""
        rows = (
            self.db.query(GradeItem, Grade.finalgrade)
            .outerjoin(
                Grade,
                and_(Grade.itemid == GradeItem.id, Grade.userid == student_id)
            )
            .filter(GradeItem.courseid == course_id)
            .filter(GradeItem.itemtype != COURSE_TOTAL_ITEMTYPE)
            .order_by(GradeItem.sortorder.asc(), GradeItem.id.asc())
            .all()
        )
        return [build_grade_item(item, grade) for item, grade in rows]

    def build_course(self, student_id: int, course: Dict[str, Any]) -> Dict[str, Any]:
        final_grade = self.get_final_grade(student_id, course["id"])
        return {
            "id": course["id"],
            "fullname": course["fullname"],
            "shortname": course["shortname"],
            "section": course["section"],
            "term": course["term"],
            "startdate": course["startdate"].isoformat() if course["startdate"] else None,
            "final_grade": final_grade,
            "final_grade_formatted": format_value(final_grade),
            "letter_grade": letter_grade(final_grade) if final_grade is not None else PLACEHOLDER,
            "grade_items": self.get_grade_items(student_id, course["id"]),
        }

    def aggregate(self, student_id: int) -> Dict[str, Any]:
        """
        Compute the full breakdown without touching access or cache.

        Courses are ordered newest start date first, then by name.
        """
        courses = self.get_enrolled_courses(student_id)
        courses.sort(key=lambda c: c["fullname"].lower())
        courses.sort(key=lambda c: c["startdate"] or datetime.min, reverse=True)
        return {"courses": [self.build_course(student_id, course) for course in courses]}

    def get_course_grades(self, student_id: int, requester_id: int) -> Dict[str, Any]:
        """
        Get the grade breakdown of a student.

        Args:
            student_id: ID of the student
            requester_id: ID of the user making the request

        Returns:
            ``{"courses": [...]}`` or ``{"error": message}``
        """
        try:
            try:
                AccessPolicy(self.db).enforce_student_access(requester_id, student_id)
            except (SportAccessDenied, InvalidUserError) as e:
                logger.info("Grade lookup refused: %s", e)
                return {"error": NO_ACCESS_MESSAGE}

            cached = self.cache.get(student_id)
            if cached is not None:
                return cached

            # Nothing is cached for a student that does not exist
            if self.db.query(User.id).filter(User.id == student_id).first() is None:
                return {"courses": []}

            result = self.aggregate(student_id)
            self.cache.put(student_id, result)
            return result

        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Grade lookup failed for student %s", student_id)
            return {"error": GRADES_ERROR_MESSAGE}


def get_course_grades(
    db: Session,
    student_id: int,
    requester_id: int
) -> Dict[str, Any]:
    """Convenience wrapper around GradeAggregator.get_course_grades."""
    return GradeAggregator(db).get_course_grades(student_id, requester_id)
