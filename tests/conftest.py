"""
Shared fixtures: an in-memory database per test and a small athletics
dataset with a known shape.
"""
import os
import sys
from datetime import datetime, timedelta

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import sessionmaker

from database import (
    Base, build_engine,
    User, AcademicPeriod, Sport, StudentMeta, AccessGrant, StudentAccessGrant,
    Term, Course, CourseMeta, Enrollment, GradeItem, Grade,
    ATHLETIC_TEAM_DATATYPE, UNIVERSAL_ID_DATATYPE, COLLEGE_DATATYPE,
    MAJOR_DATATYPE, CLASSIFICATION_DATATYPE, TERM_CODE_DATATYPE,
    SECTION_CODE_DATATYPE, COURSE_TOTAL_ITEMTYPE,
)


@pytest.fixture
def db():
    """Fresh in-memory database session."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def _add_student(db, username, firstname, lastname, period_id, sports, facts):
    student = User(username=username, firstname=firstname, lastname=lastname, role="user")
    db.add(student)
    db.flush()
    for datatype, data in facts.items():
        db.add(StudentMeta(
            studentid=student.id, datatype=datatype, data=data,
            academic_period_id=period_id,
        ))
    for code in sports:
        db.add(StudentMeta(
            studentid=student.id, datatype=ATHLETIC_TEAM_DATATYPE, data=code,
            academic_period_id=period_id,
        ))
    return student


@pytest.fixture
def dataset(db):
    """
    Users, sports, memberships, grants and one gradebook.

    Returns a dict of IDs keyed by a short name.
    """
    now = datetime.now()
    current = AcademicPeriod(
        period_id="CUR", name="Current",
        start_date=now - timedelta(days=30), end_date=now + timedelta(days=30),
    )
    old = AcademicPeriod(
        period_id="OLD", name="Old",
        start_date=now - timedelta(days=400), end_date=now - timedelta(days=300),
    )
    db.add_all([current, old])

    football = Sport(code="FB", name="Football")
    basketball = Sport(code="WBB", name="Women's Basketball")
    baseball = Sport(code="BSB", name="Baseball")
    db.add_all([football, basketball, baseball])

    admin = User(username="siteadmin", firstname="Site", lastname="Admin", role="admin")
    coach = User(username="fbcoach", firstname="Frank", lastname="Coach", role="user")
    director = User(username="director", firstname="Dana", lastname="Director", role="user")
    nobody = User(username="nobody", firstname="No", lastname="Body", role="user")
    mentor = User(username="mentor", firstname="Mel", lastname="Mentor", role="user")
    stale = User(username="stale", firstname="Stan", lastname="Stale", role="user")
    db.add_all([admin, coach, director, nobody, mentor, stale])
    db.flush()

    alice = _add_student(db, "aadams", "Alice", "Adams", "CUR", ["FB"], {
        UNIVERSAL_ID_DATATYPE: "890000001", COLLEGE_DATATYPE: "Science",
        MAJOR_DATATYPE: "Biology", CLASSIFICATION_DATATYPE: "SO",
    })
    bob = _add_student(db, "bbaker", "Bob", "Baker", "CUR", ["FB", "BSB"], {
        UNIVERSAL_ID_DATATYPE: "890000002", COLLEGE_DATATYPE: "Business",
        MAJOR_DATATYPE: "Business", CLASSIFICATION_DATATYPE: "JR",
    })
    carl = _add_student(db, "cclark", "Carl", "Clark", "CUR", ["BSB"], {
        UNIVERSAL_ID_DATATYPE: "890000003", COLLEGE_DATATYPE: "Human Sciences",
        MAJOR_DATATYPE: "Kinesiology", CLASSIFICATION_DATATYPE: "FR",
    })
    dana = _add_student(db, "dadams", "Dana", "Adams", "CUR", ["WBB"], {
        UNIVERSAL_ID_DATATYPE: "890000004", COLLEGE_DATATYPE: "Science",
        MAJOR_DATATYPE: "Marine Biology", CLASSIFICATION_DATATYPE: "SR",
    })
    # Only a member in a past period
    ed = _add_student(db, "eevans", "Ed", "Evans", "OLD", ["FB"], {
        UNIVERSAL_ID_DATATYPE: "890000005", MAJOR_DATATYPE: "History",
        CLASSIFICATION_DATATYPE: "SR",
    })
    db.flush()

    db.add_all([
        AccessGrant(userid=coach.id, sportid=football.id, createdby=admin.id, modifiedby=admin.id),
        AccessGrant(userid=director.id, sportid=None, createdby=admin.id, modifiedby=admin.id),
        AccessGrant(userid=stale.id, sportid=9999, createdby=admin.id, modifiedby=admin.id),
        StudentAccessGrant(userid=mentor.id, studentid=carl.id, createdby=admin.id),
    ])

    # Gradebook for Alice
    db.add_all([Term(code="2025F", name="Fall 2025"), Term(code="2024F", name="Fall 2024")])
    recent_start = now - timedelta(days=10)
    calculus = Course(fullname="Calculus I", shortname="MATH 1550", startdate=recent_start)
    art = Course(fullname="art History", shortname="ARTH 1440", startdate=recent_start)
    biology = Course(fullname="General Biology", shortname="BIOL 1201", startdate=now - timedelta(days=400))
    db.add_all([calculus, art, biology])
    db.flush()

    db.add_all([
        CourseMeta(courseid=calculus.id, datatype=TERM_CODE_DATATYPE, data="2025F"),
        CourseMeta(courseid=calculus.id, datatype=SECTION_CODE_DATATYPE, data="001"),
        CourseMeta(courseid=biology.id, datatype=TERM_CODE_DATATYPE, data="2024F"),
    ])
    for course in (calculus, art, biology):
        db.add(Enrollment(userid=alice.id, courseid=course.id))
    # Duplicate enrolment (second enrol method) must not duplicate the course
    db.add(Enrollment(userid=alice.id, courseid=calculus.id))

    calc_total = GradeItem(courseid=calculus.id, itemtype=COURSE_TOTAL_ITEMTYPE, grademax=100.0, sortorder=0)
    homework = GradeItem(courseid=calculus.id, itemtype="mod", itemmodule="assign",
                         itemname="Homework", grademax=100.0, weight=20.0, sortorder=1)
    midterm = GradeItem(courseid=calculus.id, itemtype="mod", itemmodule="quiz",
                        itemname="Midterm", grademax=50.0, weight=30.0, weight_override=40.0, sortorder=2)
    quiz = GradeItem(courseid=calculus.id, itemtype="mod", itemmodule="quiz",
                     itemname="Pop Quiz", grademax=10.0, weight=10.0, sortorder=3)
    participation = GradeItem(courseid=calculus.id, itemtype="manual", itemname="Participation",
                              grademax=10.0, weight=None, sortorder=4)
    bio_total = GradeItem(courseid=biology.id, itemtype=COURSE_TOTAL_ITEMTYPE, grademax=100.0, sortorder=0)
    db.add_all([calc_total, homework, midterm, quiz, participation, bio_total])
    db.flush()

    db.add_all([
        Grade(itemid=calc_total.id, userid=alice.id, finalgrade=88.5),
        Grade(itemid=homework.id, userid=alice.id, finalgrade=85.0),
        Grade(itemid=midterm.id, userid=alice.id, finalgrade=40.0),
        Grade(itemid=participation.id, userid=alice.id, finalgrade=9.0),
        Grade(itemid=bio_total.id, userid=alice.id, finalgrade=92.0),
    ])
    db.commit()

    return {
        "admin": admin.id,
        "coach": coach.id,
        "director": director.id,
        "nobody": nobody.id,
        "mentor": mentor.id,
        "stale": stale.id,
        "alice": alice.id,
        "bob": bob.id,
        "carl": carl.id,
        "dana": dana.id,
        "ed": ed.id,
        "football": football.id,
        "basketball": basketball.id,
        "baseball": baseball.id,
        "calculus": calculus.id,
        "art": art.id,
        "biology": biology.id,
        "homework": homework.id,
    }
