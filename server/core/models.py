from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel


def new_id() -> str:
    return uuid4().hex


def utc_now() -> datetime:
    """DB에 저장하는 모든 시각은 UTC aware datetime"""
    return datetime.now(timezone.utc)


class UserType(str, Enum):
    teacher = "teacher"
    student = "student"


class NotificationStatus(str, Enum):
    unread = "unread"
    read = "read"


class User(SQLModel, table=True):
    """인증용 기본 계정 - 역할 프로필(Student/Teacher)과 1:1"""
    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(unique=True, index=True, description="소문자로 정규화된 이메일")
    password_hash: str
    user_type: UserType = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)


class Student(SQLModel, table=True):
    __tablename__ = "students"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="users.id", unique=True, index=True)
    name: str
    course_year: int
    created_at: datetime = Field(default_factory=utc_now)


class Teacher(SQLModel, table=True):
    __tablename__ = "teachers"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="users.id", unique=True, index=True)
    name: str
    department: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utc_now)


class Course(SQLModel, table=True):
    __tablename__ = "courses"

    id: str = Field(default_factory=new_id, primary_key=True)
    teacher_id: str = Field(foreign_key="teachers.id", index=True)
    name: str
    code: str = Field(unique=True, index=True, description="참여 코드 (예: CRS-4K9ZQ2)")
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class Enrollment(SQLModel, table=True):
    """학생-강의 수강 관계 (student, course) 쌍은 유일"""
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("student_id", "course_id", name="uq_enrollment_student_course"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    student_id: str = Field(foreign_key="students.id", index=True)
    course_id: str = Field(foreign_key="courses.id", index=True)
    enrolled_at: datetime = Field(default_factory=utc_now)


class Assignment(SQLModel, table=True):
    __tablename__ = "assignments"

    id: str = Field(default_factory=new_id, primary_key=True)
    title: str
    description: str
    due_date: datetime = Field(index=True)
    teacher_id: str = Field(foreign_key="teachers.id", index=True)
    course_id: str = Field(foreign_key="courses.id", index=True)
    created_at: datetime = Field(default_factory=utc_now)


class Submission(SQLModel, table=True):
    """과제 제출 - 학생당 과제 1회"""
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("student_id", "assignment_id", name="uq_submission_student_assignment"),
        CheckConstraint("marks IS NULL OR (marks >= 0 AND marks <= 100)", name="ck_submission_marks_range"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    student_id: str = Field(foreign_key="students.id", index=True)
    assignment_id: str = Field(foreign_key="assignments.id", index=True)
    submission_file: str
    marks: Optional[float] = None
    submitted_at: datetime = Field(default_factory=utc_now)


class Resource(SQLModel, table=True):
    __tablename__ = "resources"

    id: str = Field(default_factory=new_id, primary_key=True)
    title: str
    file_url: str
    teacher_id: str = Field(foreign_key="teachers.id", index=True)
    course_id: str = Field(foreign_key="courses.id", index=True)
    created_at: datetime = Field(default_factory=utc_now)


class Access(SQLModel, table=True):
    """자료 열람 기록 (append-only)"""
    __tablename__ = "accesses"

    id: str = Field(default_factory=new_id, primary_key=True)
    student_id: str = Field(foreign_key="students.id", index=True)
    resource_id: str = Field(foreign_key="resources.id", index=True)
    accessed_at: datetime = Field(default_factory=utc_now)


class Notification(SQLModel, table=True):
    """teacher_id 는 보낸 강사, student_id 는 받는 학생"""
    __tablename__ = "notifications"

    id: str = Field(default_factory=new_id, primary_key=True)
    teacher_id: Optional[str] = Field(default=None, foreign_key="teachers.id", index=True)
    student_id: Optional[str] = Field(default=None, foreign_key="students.id", index=True)
    message: str
    status: NotificationStatus = Field(default=NotificationStatus.unread, index=True)
    created_at: datetime = Field(default_factory=utc_now)
