"""
Database models for the Sports Grades service.

The platform tables (users, courses, enrolments, grades, student metadata)
are read-only here; only the access grant and grade cache tables are owned
by this service.
"""
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Enum, ForeignKey, Text,
    UniqueConstraint, Index
)
from sqlalchemy.orm import relationship, declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

# StudentMeta datatypes
ATHLETIC_TEAM_DATATYPE = "Athletic_Team_ID"
UNIVERSAL_ID_DATATYPE = "universal_id"
COLLEGE_DATATYPE = "college"
MAJOR_DATATYPE = "major"
CLASSIFICATION_DATATYPE = "classification"

# CourseMeta datatypes
TERM_CODE_DATATYPE = "term_code"
SECTION_CODE_DATATYPE = "section_code"

# GradeItem itemtype of the course total
COURSE_TOTAL_ITEMTYPE = "course"


class UserRole(str, PyEnum):
    """User roles enum."""
    ADMIN = "admin"
    USER = "user"


class User(Base):
    """
    Platform users: students, coaches/mentors and administrators.

    Attributes:
        id: Unique identifier
        username: Login name
        firstname: Given name
        lastname: Family name
        role: Either 'admin' or 'user'
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), nullable=False, unique=True)
    firstname = Column(String(100), nullable=False)
    lastname = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    role = Column(
        Enum(*[r.value for r in UserRole], name="user_role"),
        nullable=False,
        default=UserRole.USER.value
    )

    # Relationships
    meta = relationship("StudentMeta", back_populates="student")
    enrolments = relationship("Enrollment", back_populates="user")
    access_grants = relationship(
        "AccessGrant", back_populates="user", foreign_keys="AccessGrant.userid"
    )

    @property
    def fullname(self) -> str:
        return f"{self.firstname} {self.lastname}"

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"


class AcademicPeriod(Base):
    """
    Academic periods (terms/sessions).

    A period is active while start_date <= now <= end_date.
    """
    __tablename__ = "academic_periods"

    id = Column(Integer, primary_key=True, autoincrement=True)
    period_id = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<AcademicPeriod(period_id='{self.period_id}', name='{self.name}')>"


class Sport(Base):
    """
    Sports reference table.

    Attributes:
        id: Unique identifier
        code: Natural key used in grants and athletic team memberships
        name: Display name (e.g., "Football")
    """
    __tablename__ = "sports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<Sport(id={self.id}, code='{self.code}', name='{self.name}')>"

    def to_dict(self):
        return {"id": self.id, "code": self.code, "name": self.name}


class StudentMeta(Base):
    """
    Externally fed, period-scoped student facts.

    Sport memberships are the rows with datatype 'Athletic_Team_ID', whose
    data column holds the sport code. Demographics (universal_id, college,
    major, classification) use the same table.
    """
    __tablename__ = "student_meta"

    id = Column(Integer, primary_key=True, autoincrement=True)
    studentid = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    datatype = Column(String(100), nullable=False)
    data = Column(String(255), nullable=True)
    academic_period_id = Column(String(50), ForeignKey("academic_periods.period_id"), nullable=False)

    # Relationships
    student = relationship("User", back_populates="meta")

    __table_args__ = (
        Index("idx_student_meta_lookup", "studentid", "datatype", "academic_period_id"),
    )

    def __repr__(self):
        return f"<StudentMeta(studentid={self.studentid}, datatype='{self.datatype}', data='{self.data}')>"


class AccessGrant(Base):
    """
    Sport access grants.

    A null sportid means the grantee may view students of all sports.
    """
    __tablename__ = "sportsgrades_access"

    id = Column(Integer, primary_key=True, autoincrement=True)
    userid = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sportid = Column(Integer, ForeignKey("sports.id", ondelete="CASCADE"), nullable=True)
    timecreated = Column(DateTime, nullable=False, default=func.now())
    timemodified = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())
    createdby = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    modifiedby = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    user = relationship("User", back_populates="access_grants", foreign_keys=[userid])
    sport = relationship("Sport")

    def __repr__(self):
        return f"<AccessGrant(id={self.id}, userid={self.userid}, sportid={self.sportid})>"


class StudentAccessGrant(Base):
    """Per-student access grants (a mentor assigned to one student)."""
    __tablename__ = "sportsgrades_student_access"

    id = Column(Integer, primary_key=True, autoincrement=True)
    userid = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    studentid = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    timecreated = Column(DateTime, nullable=False, default=func.now())
    createdby = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    user = relationship("User", foreign_keys=[userid])
    student = relationship("User", foreign_keys=[studentid])

    __table_args__ = (
        UniqueConstraint("userid", "studentid", name="uq_student_access"),
    )


class Term(Base):
    """Term code to display label lookup."""
    __tablename__ = "terms"

    code = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)


class Course(Base):
    """Platform courses."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    fullname = Column(String(255), nullable=False)
    shortname = Column(String(100), nullable=False)
    startdate = Column(DateTime, nullable=False, default=func.now())

    # Relationships
    meta = relationship("CourseMeta", back_populates="course")
    grade_items = relationship("GradeItem", back_populates="course")

    def __repr__(self):
        return f"<Course(id={self.id}, shortname='{self.shortname}')>"


class CourseMeta(Base):
    """Externally fed course facts (term_code, section_code)."""
    __tablename__ = "course_meta"

    id = Column(Integer, primary_key=True, autoincrement=True)
    courseid = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    datatype = Column(String(100), nullable=False)
    data = Column(String(255), nullable=True)

    course = relationship("Course", back_populates="meta")


class Enrollment(Base):
    """Student enrolments in courses."""
    __tablename__ = "enrolments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    userid = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    courseid = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)

    user = relationship("User", back_populates="enrolments")
    course = relationship("Course")


class GradeItem(Base):
    """
    Gradebook items of a course.

    Attributes:
        itemtype: 'course' for the course total, else 'mod' or 'manual'
        itemmodule: Activity module (e.g., "assign", "quiz")
        grademax: Maximum attainable grade
        weight: Configured weight, as a percentage of the final grade
        weight_override: Explicit weight that takes precedence over weight
    """
    __tablename__ = "grade_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    courseid = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    itemtype = Column(String(30), nullable=False)
    itemmodule = Column(String(30), nullable=True)
    itemname = Column(String(255), nullable=True)
    grademax = Column(Float, nullable=True, default=100.0)
    weight = Column(Float, nullable=True)
    weight_override = Column(Float, nullable=True)
    sortorder = Column(Integer, nullable=False, default=0)

    # Relationships
    course = relationship("Course", back_populates="grade_items")
    grades = relationship("Grade", back_populates="item")

    def __repr__(self):
        return f"<GradeItem(id={self.id}, courseid={self.courseid}, itemtype='{self.itemtype}')>"


class Grade(Base):
    """A student's grade on one grade item."""
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, autoincrement=True)
    itemid = Column(Integer, ForeignKey("grade_items.id", ondelete="CASCADE"), nullable=False)
    userid = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    finalgrade = Column(Float, nullable=True)

    item = relationship("GradeItem", back_populates="grades")

    __table_args__ = (
        UniqueConstraint("itemid", "userid", name="uq_grade_item_user"),
    )


class CachedGradeResult(Base):
    """
    Cached grade aggregation results.

    Rows are never updated; a newer row supersedes older ones and expiry is
    checked when reading.
    """
    __tablename__ = "sportsgrades_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    studentid = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    data = Column(Text, nullable=False)
    timecreated = Column(DateTime, nullable=False)
    timeexpires = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_cache_student_expires", "studentid", "timeexpires"),
    )

    def __repr__(self):
        return f"<CachedGradeResult(studentid={self.studentid}, timeexpires={self.timeexpires})>"
