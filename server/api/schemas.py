"""
API 요청 스키마 및 응답 직렬화
- JSON 필드명은 기존 클라이언트와 같은 camelCase (userType, courseYear, fileUrl ...)
"""
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from core.models import (
    Access,
    Assignment,
    Course,
    Notification,
    Resource,
    Student,
    Submission,
    Teacher,
    User,
)


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ==================== 인증 ====================

class RegisterRequest(RequestModel):
    """회원가입 요청 - 학생은 courseYear, 강사는 department 필수"""
    email: EmailStr = Field(..., description="이메일")
    password: str = Field(..., min_length=6, description="비밀번호 (최소 6자)")
    name: str = Field(..., min_length=1, description="이름")
    course_year: Optional[int] = Field(default=None, ge=1, le=6, alias="courseYear")
    department: Optional[str] = Field(default=None, min_length=1)
    # 역할별 필수 필드 검사가 info.data를 쓰므로 마지막에 선언
    user_type: Literal["student", "teacher"] = Field(..., alias="userType")

    @field_validator("email")
    @classmethod
    def fold_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise PydanticCustomError("name_required", "Name is required")
        return v.strip()

    @field_validator("user_type")
    @classmethod
    def role_fields_present(cls, v: str, info: ValidationInfo) -> str:
        # 형식 오류로 이미 빠진 필드는 해당 필드의 에러로 보고됨
        required = "course_year" if v == "student" else "department"
        if required in info.data and not info.data[required]:
            raise PydanticCustomError(
                "role_fields_missing",
                "Missing required fields for the selected role (courseYear for students, department for teachers)",
            )
        return v


class LoginRequest(RequestModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# ==================== 강사 ====================

class CreateCourseRequest(RequestModel):
    name: str = Field(..., min_length=1, description="강의 이름")
    description: Optional[str] = None


class CreateAssignmentRequest(RequestModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    due_date: datetime = Field(..., description="마감일 (ISO 8601)")

    @field_validator("due_date")
    @classmethod
    def due_date_as_utc(cls, v: datetime) -> datetime:
        # 타임존 없는 입력은 UTC로 간주, 나머지는 UTC로 변환
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class CreateResourceRequest(RequestModel):
    title: str = Field(..., min_length=1)
    file_url: str = Field(..., min_length=1, alias="fileUrl")


# ==================== 학생 ====================

class JoinCourseRequest(RequestModel):
    code: str = Field(..., min_length=1, description="강의 참여 코드")


class SubmitAssignmentRequest(RequestModel):
    submission_file: str = Field(..., min_length=1, alias="submissionFile")


# ==================== 응답 직렬화 ====================

def iso_utc(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    # SQLite는 tzinfo 없이 돌려주지만 저장된 값은 모두 UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def user_out(user: User, name: Optional[str] = None) -> dict:
    data = {"id": user.id, "email": user.email, "userType": user.user_type.value}
    if name is not None:
        data["name"] = name
    return data


def profile_out(profile: Student | Teacher) -> dict:
    if isinstance(profile, Student):
        return {"id": profile.id, "name": profile.name, "courseYear": profile.course_year}
    return {"id": profile.id, "name": profile.name, "department": profile.department}


def course_out(course: Course) -> dict:
    return {
        "id": course.id,
        "teacherId": course.teacher_id,
        "name": course.name,
        "code": course.code,
        "description": course.description,
        "createdAt": iso_utc(course.created_at),
    }


def assignment_out(assignment: Assignment) -> dict:
    return {
        "id": assignment.id,
        "courseId": assignment.course_id,
        "teacherId": assignment.teacher_id,
        "title": assignment.title,
        "description": assignment.description,
        "due_date": iso_utc(assignment.due_date),
        "createdAt": iso_utc(assignment.created_at),
    }


def resource_out(resource: Resource) -> dict:
    return {
        "id": resource.id,
        "courseId": resource.course_id,
        "teacherId": resource.teacher_id,
        "title": resource.title,
        "fileUrl": resource.file_url,
        "createdAt": iso_utc(resource.created_at),
    }


def submission_out(submission: Submission) -> dict:
    return {
        "id": submission.id,
        "studentId": submission.student_id,
        "assignmentId": submission.assignment_id,
        "submissionFile": submission.submission_file,
        "marks": submission.marks,
        "submittedAt": iso_utc(submission.submitted_at),
    }


def access_out(access: Access) -> dict:
    return {
        "id": access.id,
        "studentId": access.student_id,
        "resourceId": access.resource_id,
        "accessedAt": iso_utc(access.accessed_at),
    }


def notification_out(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "teacherId": notification.teacher_id,
        "message": notification.message,
        "status": notification.status.value,
        "createdAt": iso_utc(notification.created_at),
    }
