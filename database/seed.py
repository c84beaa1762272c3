"""
Seed data script for the Sports Grades service.
Creates sample data for testing and demonstration.
"""
from datetime import datetime, timedelta
import random
from database import (
    get_db_context, init_db,
    User, AcademicPeriod, Sport, StudentMeta, AccessGrant, StudentAccessGrant,
    Term, Course, CourseMeta, Enrollment, GradeItem, Grade, CachedGradeResult,
    ATHLETIC_TEAM_DATATYPE, UNIVERSAL_ID_DATATYPE, COLLEGE_DATATYPE,
    MAJOR_DATATYPE, CLASSIFICATION_DATATYPE, TERM_CODE_DATATYPE,
    SECTION_CODE_DATATYPE, COURSE_TOTAL_ITEMTYPE,
)


def seed_database():
    """Populate database with sample data."""

    with get_db_context() as db:
        # Clear existing data
        for model in (
            CachedGradeResult, Grade, GradeItem, Enrollment, CourseMeta, Course,
            Term, StudentAccessGrant, AccessGrant, StudentMeta, Sport,
            AcademicPeriod, User,
        ):
            db.query(model).delete()

        now = datetime.now()

        # Academic periods: the current one and last year's
        current = AcademicPeriod(
            period_id="FALL_CURRENT", name="Current Fall",
            start_date=now - timedelta(days=60), end_date=now + timedelta(days=60),
        )
        previous = AcademicPeriod(
            period_id="FALL_PREVIOUS", name="Previous Fall",
            start_date=now - timedelta(days=425), end_date=now - timedelta(days=305),
        )
        db.add_all([current, previous])

        # Staff
        admin = User(username="admin", firstname="Site", lastname="Admin", role="admin")
        coaches = [
            User(username="fcoach", firstname="Frank", lastname="Coach", role="user"),
            User(username="amentor", firstname="Alice", lastname="Mentor", role="user"),
            User(username="director", firstname="Dana", lastname="Director", role="user"),
        ]
        db.add(admin)
        db.add_all(coaches)

        # Sports
        sports = [
            Sport(code="FB", name="Football"),
            Sport(code="WBB", name="Women's Basketball"),
            Sport(code="BSB", name="Baseball"),
            Sport(code="SWM", name="Swimming"),
        ]
        db.add_all(sports)

        # Students
        students = [
            User(username="jsmith", firstname="John", lastname="Smith", role="user"),
            User(username="mjones", firstname="Maria", lastname="Jones", role="user"),
            User(username="tbrown", firstname="Tyler", lastname="Brown", role="user"),
            User(username="kdavis", firstname="Kayla", lastname="Davis", role="user"),
            User(username="rwilson", firstname="Ryan", lastname="Wilson", role="user"),
        ]
        db.add_all(students)
        db.flush()

        memberships = [
            (students[0], ["FB"]),
            (students[1], ["WBB", "SWM"]),
            (students[2], ["BSB"]),
            (students[3], ["WBB"]),
            (students[4], ["FB", "BSB"]),
        ]
        majors = ["Kinesiology", "Biology", "Business", "Mass Communication", "Engineering"]
        colleges = ["Human Sciences", "Science", "Business", "Mass Communication", "Engineering"]
        classifications = ["FR", "SO", "JR", "SR", "GR"]

        for i, (student, codes) in enumerate(memberships):
            facts = [
                (UNIVERSAL_ID_DATATYPE, f"89{i:07d}"),
                (COLLEGE_DATATYPE, colleges[i]),
                (MAJOR_DATATYPE, majors[i]),
                (CLASSIFICATION_DATATYPE, classifications[i]),
            ]
            for datatype, data in facts:
                db.add(StudentMeta(
                    studentid=student.id, datatype=datatype, data=data,
                    academic_period_id=current.period_id,
                ))
            for code in codes:
                db.add(StudentMeta(
                    studentid=student.id, datatype=ATHLETIC_TEAM_DATATYPE, data=code,
                    academic_period_id=current.period_id,
                ))

        # Access grants: football coach, basketball mentor, all-sports director
        db.add_all([
            AccessGrant(userid=coaches[0].id, sportid=sports[0].id, createdby=admin.id, modifiedby=admin.id),
            AccessGrant(userid=coaches[1].id, sportid=sports[1].id, createdby=admin.id, modifiedby=admin.id),
            AccessGrant(userid=coaches[2].id, sportid=None, createdby=admin.id, modifiedby=admin.id),
            StudentAccessGrant(userid=coaches[1].id, studentid=students[2].id, createdby=admin.id),
        ])

        # Terms and courses
        db.add_all([
            Term(code="2025F", name="Fall 2025"),
            Term(code="2024F", name="Fall 2024"),
        ])
        course_specs = [
            ("Calculus I", "MATH 1550", "2025F", "001", current.start_date),
            ("English Composition", "ENGL 1001", "2025F", "014", current.start_date),
            ("General Biology", "BIOL 1201", "2024F", "002", previous.start_date),
        ]
        courses = []
        for fullname, shortname, term_code, section, startdate in course_specs:
            course = Course(fullname=fullname, shortname=shortname, startdate=startdate)
            db.add(course)
            db.flush()
            db.add_all([
                CourseMeta(courseid=course.id, datatype=TERM_CODE_DATATYPE, data=term_code),
                CourseMeta(courseid=course.id, datatype=SECTION_CODE_DATATYPE, data=section),
            ])
            courses.append(course)

        # Gradebook: three weighted items plus the course total
        item_specs = [
            ("Homework", "assign", 100.0, 20.0),
            ("Midterm Exam", "quiz", 50.0, 30.0),
            ("Final Exam", "quiz", 100.0, 50.0),
        ]
        grade_count = 0
        for course in courses:
            items = []
            for order, (name, module, grademax, weight) in enumerate(item_specs, start=1):
                item = GradeItem(
                    courseid=course.id, itemtype="mod", itemmodule=module, itemname=name,
                    grademax=grademax, weight=weight, sortorder=order,
                )
                db.add(item)
                items.append(item)
            total = GradeItem(
                courseid=course.id, itemtype=COURSE_TOTAL_ITEMTYPE, itemname=None,
                grademax=100.0, sortorder=0,
            )
            db.add(total)
            db.flush()

            for student in students:
                db.add(Enrollment(userid=student.id, courseid=course.id))
                final = 0.0
                for item in items:
                    value = round(random.uniform(0.55, 1.0) * item.grademax, 1)
                    db.add(Grade(itemid=item.id, userid=student.id, finalgrade=value))
                    final += value * 100 / item.grademax * item.weight / 100
                    grade_count += 1
                db.add(Grade(itemid=total.id, userid=student.id, finalgrade=round(final, 2)))

        db.commit()

        print("Database seeded successfully!")
        print(f"Created:")
        print(f"  - {len(coaches) + 1} staff users")
        print(f"  - {len(students)} students")
        print(f"  - {len(sports)} sports")
        print(f"  - {len(courses)} courses")
        print(f"  - {grade_count} item grades")

        # Print some IDs for reference
        print("\nReference IDs:")
        print(f"  Admin: {(admin.id, admin.username)}")
        print(f"  Coaches: {[(c.id, c.username) for c in coaches]}")
        print(f"  Students: {[(s.id, s.username) for s in students]}")


if __name__ == "__main__":
    print("Initializing database...")
    init_db()
    print("Seeding database...")
    seed_database()
