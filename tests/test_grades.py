"""
Unit tests for grade aggregation.
"""
import pytest
from sqlalchemy.exc import SQLAlchemyError

from database import CachedGradeResult, Grade
from services import (
    GradeAggregator,
    ResultCache,
    get_course_grades,
    letter_grade,
    compute_item_scores,
    NO_ACCESS_MESSAGE,
    GRADES_ERROR_MESSAGE,
)
import services.grades
from services.grades import effective_weight, format_value


class TestGradeMath:
    """Letter grades, percentages and contributions."""

    @pytest.mark.parametrize("grade,letter", [
        (100, "A"), (90, "A"), (89.99, "B"), (80, "B"), (79.99, "C"),
        (70, "C"), (69.99, "D"), (60, "D"), (59.99, "F"), (0, "F"),
    ])
    def test_letter_grade_boundaries(self, grade, letter):
        assert letter_grade(grade) == letter

    def test_contribution_formula(self):
        percentage, contribution = compute_item_scores(85, 100, 20)
        assert format_value(percentage) == "85.00"
        assert format_value(contribution) == "17.00"
        assert percentage == pytest.approx(85.0)
        assert contribution == pytest.approx(17.0)

    def test_missing_grade(self):
        assert compute_item_scores(None, 100, 20) == (None, None)

    def test_missing_or_zero_max(self):
        assert compute_item_scores(5, None, 20) == (None, None)
        assert compute_item_scores(5, 0, 20) == (None, None)

    def test_missing_weight_keeps_percentage(self):
        percentage, contribution = compute_item_scores(9, 10, None)
        assert percentage == pytest.approx(90.0)
        assert contribution is None

    def test_zero_grade_is_a_grade(self):
        assert compute_item_scores(0, 50, 10) == (0, 0)

    def test_weight_override_wins(self):
        assert effective_weight(30.0, 40.0) == 40.0
        assert effective_weight(30.0, None) == 30.0
        assert effective_weight(None, None) is None

    def test_format_value(self):
        assert format_value(None) == "-"
        assert format_value(17, "%") == "17.00%"


class TestGradeAggregation:
    """Course enumeration and shaping."""

    def test_course_order(self, db, dataset):
        result = GradeAggregator(db).aggregate(dataset["alice"])
        names = [c["fullname"] for c in result["courses"]]
        # Newest start date first; same start date by name, case-insensitively
        assert names == ["art History", "Calculus I", "General Biology"]

    def test_course_fields(self, db, dataset):
        result = GradeAggregator(db).aggregate(dataset["alice"])
        courses = {c["id"]: c for c in result["courses"]}

        calculus = courses[dataset["calculus"]]
        assert calculus["term"] == "Fall 2025"
        assert calculus["section"] == "001"
        assert calculus["final_grade"] == 88.5
        assert calculus["final_grade_formatted"] == "88.50"
        assert calculus["letter_grade"] == "B"

        biology = courses[dataset["biology"]]
        assert biology["term"] == "Fall 2024"
        assert biology["section"] == ""
        assert biology["letter_grade"] == "A"
        assert biology["grade_items"] == []

        art = courses[dataset["art"]]
        assert art["final_grade"] is None
        assert art["final_grade_formatted"] == "-"
        assert art["letter_grade"] == "-"
        assert art["term"] is None

    def test_grade_items(self, db, dataset):
        result = GradeAggregator(db).aggregate(dataset["alice"])
        calculus = next(c for c in result["courses"] if c["id"] == dataset["calculus"])
        items = {item["name"]: item for item in calculus["grade_items"]}

        # Course total is not listed
        assert list(items) == ["Homework", "Midterm", "Pop Quiz", "Participation"]

        homework = items["Homework"]
        assert homework["weight_formatted"] == "20.00%"
        assert homework["grade_formatted"] == "85.00"
        assert homework["percentage_formatted"] == "85.00%"
        assert homework["contribution_formatted"] == "17.00%"

        midterm = items["Midterm"]
        assert midterm["weight"] == 40.0
        assert midterm["percentage"] == pytest.approx(80.0)
        assert midterm["contribution"] == pytest.approx(32.0)

        quiz = items["Pop Quiz"]
        assert quiz["grade"] is None
        assert quiz["grade_formatted"] == "-"
        assert quiz["percentage_formatted"] == "-"
        assert quiz["contribution_formatted"] == "-"
        assert quiz["weight_formatted"] == "10.00%"

        participation = items["Participation"]
        assert participation["weight_formatted"] == "-"
        assert participation["percentage_formatted"] == "90.00%"
        assert participation["contribution_formatted"] == "-"

    def test_item_fault_is_isolated(self, db, dataset, monkeypatch):
        real_compute = services.grades.compute_item_scores

        def compute(grade, grademax, weight):
            if grademax == 50:
                raise ZeroDivisionError("bad grade item")
            return real_compute(grade, grademax, weight)

        monkeypatch.setattr(services.grades, "compute_item_scores", compute)
        result = GradeAggregator(db).aggregate(dataset["alice"])
        assert len(result["courses"]) == 3

        calculus = next(c for c in result["courses"] if c["id"] == dataset["calculus"])
        assert calculus["letter_grade"] == "B"
        items = {item["name"]: item for item in calculus["grade_items"]}

        midterm = items["Midterm"]
        assert midterm["grade_formatted"] == "40.00"
        assert midterm["percentage_formatted"] == "-"
        assert midterm["contribution_formatted"] == "-"

        assert items["Homework"]["contribution_formatted"] == "17.00%"
        assert items["Participation"]["percentage_formatted"] == "90.00%"

    def test_student_without_courses(self, db, dataset):
        result = get_course_grades(db, dataset["bob"], dataset["admin"])
        assert result == {"courses": []}


class TestGradeAccess:
    """Access checks before any aggregation."""

    def test_no_grants_is_refused(self, db, dataset):
        result = get_course_grades(db, dataset["alice"], dataset["nobody"])
        assert result == {"error": NO_ACCESS_MESSAGE}

    def test_other_sport_is_refused(self, db, dataset):
        result = get_course_grades(db, dataset["dana"], dataset["coach"])
        assert result == {"error": NO_ACCESS_MESSAGE}

    def test_unknown_requester_is_refused(self, db, dataset):
        result = get_course_grades(db, dataset["alice"], 9999)
        assert result == {"error": NO_ACCESS_MESSAGE}

    def test_refusal_does_not_cache(self, db, dataset):
        get_course_grades(db, dataset["alice"], dataset["nobody"])
        assert db.query(CachedGradeResult).count() == 0

    def test_sport_grant_allows(self, db, dataset):
        result = get_course_grades(db, dataset["alice"], dataset["coach"])
        assert len(result["courses"]) == 3

    def test_storage_failure_returns_error(self, db, dataset, monkeypatch):
        def broken(self, student_id):
            raise SQLAlchemyError("database unavailable")

        monkeypatch.setattr(GradeAggregator, "aggregate", broken)
        result = get_course_grades(db, dataset["alice"], dataset["admin"])
        assert result == {"error": GRADES_ERROR_MESSAGE}


class TestGradeCaching:
    """Cache interaction of grade lookups."""

    def test_second_lookup_is_served_from_cache(self, db, dataset):
        first = get_course_grades(db, dataset["alice"], dataset["coach"])

        # Change the underlying grade; the cached payload must still be served
        grade = db.query(Grade).filter_by(itemid=dataset["homework"], userid=dataset["alice"]).one()
        grade.finalgrade = 10.0
        db.commit()

        second = get_course_grades(db, dataset["alice"], dataset["coach"])
        assert second == first
        assert db.query(CachedGradeResult).count() == 1

    def test_cache_hit_skips_aggregation(self, db, dataset, monkeypatch):
        get_course_grades(db, dataset["alice"], dataset["admin"])

        def fail(self, student_id):
            raise AssertionError("aggregation should not run on a cache hit")

        monkeypatch.setattr(GradeAggregator, "aggregate", fail)
        result = get_course_grades(db, dataset["alice"], dataset["admin"])
        assert len(result["courses"]) == 3

    def test_access_checked_before_cache(self, db, dataset):
        get_course_grades(db, dataset["alice"], dataset["admin"])
        result = get_course_grades(db, dataset["alice"], dataset["nobody"])
        assert result == {"error": NO_ACCESS_MESSAGE}

    def test_cache_write_failure_still_returns_result(self, db, dataset, monkeypatch):
        monkeypatch.setattr(ResultCache, "put", lambda self, *args, **kwargs: False)
        result = get_course_grades(db, dataset["alice"], dataset["admin"])
        assert len(result["courses"]) == 3

    def test_unknown_student_is_not_cached(self, db, dataset):
        result = get_course_grades(db, 99999, dataset["admin"])
        assert result == {"courses": []}
        assert db.query(CachedGradeResult).count() == 0
