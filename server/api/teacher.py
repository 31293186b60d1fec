"""
강사 전용 엔드포인트
- 강의 생성/목록
- 과제, 자료 등록 (자신의 강의만)
- 수강생, 제출물 조회
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from api.schemas import (
    CreateAssignmentRequest,
    CreateCourseRequest,
    CreateResourceRequest,
    assignment_out,
    course_out,
    iso_utc,
    profile_out,
    resource_out,
    submission_out,
)
from core.access import get_owned_course, get_teacher_profile
from core.courses import generate_course_code
from core.db import commit_or_conflict, get_session
from core.errors import Forbidden, NotFound
from core.models import Assignment, Course, Enrollment, Notification, Resource, Student, Submission
from core.security import TokenPayload, require_teacher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teacher", tags=["teacher"])


@router.post("/courses", status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CreateCourseRequest,
    current_user: TokenPayload = Depends(require_teacher()),
    session: Session = Depends(get_session),
) -> dict:
    """강의 생성 - 참여 코드 자동 발급"""
    teacher = get_teacher_profile(session, current_user)

    course = Course(
        teacher_id=teacher.id,
        name=payload.name.strip(),
        description=payload.description,
        code=generate_course_code(session),
    )
    session.add(course)
    # 코드 생성과 저장 사이의 경쟁은 unique 인덱스가 판정
    commit_or_conflict(session, "Course code already in use, please retry")
    session.refresh(course)
    logger.info(f"Teacher {teacher.id} created course {course.id} ({course.code})")

    return {
        "message": "Course created successfully",
        "course": course_out(course),
    }


@router.get("/courses")
def list_courses(
    current_user: TokenPayload = Depends(require_teacher()),
    session: Session = Depends(get_session),
) -> dict:
    """강사의 강의 목록 조회 (자신의 강의만)"""
    teacher = get_teacher_profile(session, current_user)
    courses = session.exec(
        select(Course).where(Course.teacher_id == teacher.id).order_by(Course.created_at)
    ).all()

    return {
        "courses": [
            {
                "id": course.id,
                "name": course.name,
                "code": course.code,
                "createdAt": iso_utc(course.created_at),
            }
            for course in courses
        ]
    }


@router.get("/courses/{course_id}/students")
def list_course_students(
    course_id: str,
    current_user: TokenPayload = Depends(require_teacher()),
    session: Session = Depends(get_session),
) -> dict:
    """강의 수강생 목록"""
    teacher = get_teacher_profile(session, current_user)
    course = get_owned_course(session, teacher, course_id, action="view students of")

    rows = session.exec(
        select(Student, Enrollment)
        .join(Enrollment, Enrollment.student_id == Student.id)
        .where(Enrollment.course_id == course.id)
        .order_by(Enrollment.enrolled_at)
    ).all()

    return {
        "courseId": course.id,
        "students": [
            {**profile_out(student), "enrolledAt": iso_utc(enrollment.enrolled_at)}
            for student, enrollment in rows
        ],
    }


@router.post("/courses/{course_id}/assignments", status_code=status.HTTP_201_CREATED)
def create_assignment(
    course_id: str,
    payload: CreateAssignmentRequest,
    current_user: TokenPayload = Depends(require_teacher()),
    session: Session = Depends(get_session),
) -> dict:
    """과제 등록 후 수강생에게 알림"""
    teacher = get_teacher_profile(session, current_user)
    course = get_owned_course(session, teacher, course_id, action="add assignments to")

    assignment = Assignment(
        title=payload.title.strip(),
        description=payload.description,
        due_date=payload.due_date,
        course_id=course.id,
        teacher_id=teacher.id,
    )
    session.add(assignment)
    session.commit()
    session.refresh(assignment)

    notified = notify_enrolled_students(
        session,
        course=course,
        teacher_id=teacher.id,
        message=f"New assignment '{assignment.title}' posted in {course.name}",
    )

    return {
        "message": "Assignment created successfully",
        "assignment": assignment_out(assignment),
        "notified": notified,
    }


def notify_enrolled_students(session: Session, *, course: Course, teacher_id: str, message: str) -> int:
    """수강생 전원에게 알림 생성. 실패해도 이미 저장된 과제는 유지"""
    student_ids = session.exec(
        select(Enrollment.student_id).where(Enrollment.course_id == course.id)
    ).all()
    for student_id in student_ids:
        session.add(Notification(teacher_id=teacher_id, student_id=student_id, message=message))
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Notification fan-out failed for course {course.id}: {e}", exc_info=True)
        return 0
    return len(student_ids)


@router.post("/courses/{course_id}/resources", status_code=status.HTTP_201_CREATED)
def create_resource(
    course_id: str,
    payload: CreateResourceRequest,
    current_user: TokenPayload = Depends(require_teacher()),
    session: Session = Depends(get_session),
) -> dict:
    """강의 자료 등록"""
    teacher = get_teacher_profile(session, current_user)
    course = get_owned_course(session, teacher, course_id, action="add resources to")

    resource = Resource(
        title=payload.title.strip(),
        file_url=payload.file_url,
        course_id=course.id,
        teacher_id=teacher.id,
    )
    session.add(resource)
    session.commit()
    session.refresh(resource)

    return {
        "message": "Resource uploaded successfully",
        "resource": resource_out(resource),
    }


@router.get("/assignments/{assignment_id}/submissions")
def list_submissions(
    assignment_id: str,
    current_user: TokenPayload = Depends(require_teacher()),
    session: Session = Depends(get_session),
) -> dict:
    """과제 제출물 목록 (자신의 강의 과제만)"""
    teacher = get_teacher_profile(session, current_user)
    assignment = session.get(Assignment, assignment_id)
    if not assignment:
        raise NotFound("Assignment not found")
    if assignment.teacher_id != teacher.id:
        raise Forbidden("You are not allowed to view submissions of this assignment")

    submissions = session.exec(
        select(Submission)
        .where(Submission.assignment_id == assignment.id)
        .order_by(Submission.submitted_at)
    ).all()

    return {
        "assignment": assignment_out(assignment),
        "submissions": [submission_out(submission) for submission in submissions],
    }
