"""
학생 전용 엔드포인트
- 강의 참여(코드/ID), 탈퇴, 목록
- 수강 중인 강의의 과제/자료 조회 및 과제 제출
- 알림
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select

from api.schemas import (
    JoinCourseRequest,
    SubmitAssignmentRequest,
    access_out,
    assignment_out,
    course_out,
    iso_utc,
    notification_out,
    resource_out,
    submission_out,
)
from core.access import find_enrollment, get_student_profile, require_enrollment
from core.db import commit_or_conflict, get_session
from core.errors import NotEnrolled, NotFound
from core.models import (
    Access,
    Assignment,
    Course,
    Enrollment,
    Notification,
    NotificationStatus,
    Resource,
    Submission,
)
from core.security import TokenPayload, require_student

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/student", tags=["student"])


def _course_summary(course: Course) -> dict:
    return {"id": course.id, "name": course.name, "code": course.code}


@router.post("/courses/join", status_code=status.HTTP_201_CREATED)
def join_course(
    payload: JoinCourseRequest,
    current_user: TokenPayload = Depends(require_student()),
    session: Session = Depends(get_session),
) -> dict:
    """참여 코드로 강의 등록 (대소문자 구분 없음)"""
    code = payload.code.strip().upper()
    course = session.exec(select(Course).where(Course.code == code)).first()
    if not course:
        raise NotFound("Invalid course code")

    student = get_student_profile(session, current_user)

    session.add(Enrollment(student_id=student.id, course_id=course.id))
    commit_or_conflict(session, "You have already joined this course")
    logger.info(f"Student {student.id} joined course {course.id} by code")

    return {
        "message": "Joined course successfully",
        "course": _course_summary(course),
    }


@router.post("/courses/{course_id}/enroll", status_code=status.HTTP_201_CREATED)
def enroll_course(
    course_id: str,
    current_user: TokenPayload = Depends(require_student()),
    session: Session = Depends(get_session),
) -> dict:
    """강의 ID 로 직접 등록"""
    course = session.get(Course, course_id)
    if not course:
        raise NotFound("Course not found")

    student = get_student_profile(session, current_user)

    enrollment = Enrollment(student_id=student.id, course_id=course.id)
    session.add(enrollment)
    commit_or_conflict(session, "You are already enrolled in this course")
    session.refresh(enrollment)

    return {
        "message": "Enrolled successfully",
        "enrollmentId": enrollment.id,
        "course": _course_summary(course),
        "enrolledAt": iso_utc(enrollment.enrolled_at),
    }


@router.get("/courses")
def list_courses(
    current_user: TokenPayload = Depends(require_student()),
    session: Session = Depends(get_session),
) -> dict:
    """학생이 등록한 강의 목록 조회"""
    student = get_student_profile(session, current_user)
    courses = session.exec(
        select(Course)
        .join(Enrollment, Enrollment.course_id == Course.id)
        .where(Enrollment.student_id == student.id)
        .order_by(Enrollment.enrolled_at)
    ).all()

    return {"courses": [course_out(course) for course in courses]}


@router.delete("/courses/{course_id}/leave")
def leave_course(
    course_id: str,
    current_user: TokenPayload = Depends(require_student()),
    session: Session = Depends(get_session),
) -> dict:
    """강의 탈퇴 - 등록되어 있지 않으면 400"""
    student = get_student_profile(session, current_user)
    enrollment = find_enrollment(session, student, course_id)
    if not enrollment:
        raise NotEnrolled()

    session.delete(enrollment)
    session.commit()

    return {
        "message": "Successfully left the course",
        "courseId": course_id,
    }


@router.get("/courses/{course_id}/assignments")
def list_course_assignments(
    course_id: str,
    current_user: TokenPayload = Depends(require_student()),
    session: Session = Depends(get_session),
) -> dict:
    """수강 중인 강의의 과제 목록 (마감일 순)"""
    student = get_student_profile(session, current_user)
    require_enrollment(session, student, course_id)

    assignments = session.exec(
        select(Assignment).where(Assignment.course_id == course_id).order_by(Assignment.due_date)
    ).all()

    return {"assignments": [assignment_out(assignment) for assignment in assignments]}


@router.get("/courses/{course_id}/content")
def course_content(
    course_id: str,
    current_user: TokenPayload = Depends(require_student()),
    session: Session = Depends(get_session),
) -> dict:
    """강의 정보 + 과제 + 자료 (수강생만, 미등록은 403)"""
    student = get_student_profile(session, current_user)
    require_enrollment(session, student, course_id)

    course = session.get(Course, course_id)
    if not course:
        raise NotFound("Course not found")

    assignments = session.exec(
        select(Assignment).where(Assignment.course_id == course_id).order_by(Assignment.due_date)
    ).all()
    resources = session.exec(
        select(Resource).where(Resource.course_id == course_id).order_by(Resource.created_at)
    ).all()

    return {
        "course": {
            "id": course.id,
            "name": course.name,
            "code": course.code,
            "description": course.description,
        },
        "assignments": [assignment_out(assignment) for assignment in assignments],
        "resources": [resource_out(resource) for resource in resources],
    }


@router.get("/resources/{resource_id}")
def open_resource(
    resource_id: str,
    current_user: TokenPayload = Depends(require_student()),
    session: Session = Depends(get_session),
) -> dict:
    """자료 열람 - 열람 기록(Access) 추가"""
    student = get_student_profile(session, current_user)
    resource = session.get(Resource, resource_id)
    if not resource:
        raise NotFound("Resource not found")
    require_enrollment(session, student, resource.course_id)

    access = Access(student_id=student.id, resource_id=resource.id)
    session.add(access)
    session.commit()
    session.refresh(access)

    return {
        "resource": resource_out(resource),
        "access": access_out(access),
    }


@router.post("/assignments/{assignment_id}/submit", status_code=status.HTTP_201_CREATED)
def submit_assignment(
    assignment_id: str,
    payload: SubmitAssignmentRequest,
    current_user: TokenPayload = Depends(require_student()),
    session: Session = Depends(get_session),
) -> dict:
    """과제 제출 - 과제가 속한 강의의 수강생만, 1회만 가능"""
    student = get_student_profile(session, current_user)

    assignment = session.get(Assignment, assignment_id)
    if not assignment:
        raise NotFound("Assignment not found")

    require_enrollment(session, student, assignment.course_id)

    submission = Submission(
        student_id=student.id,
        assignment_id=assignment.id,
        submission_file=payload.submission_file,
    )
    session.add(submission)
    commit_or_conflict(session, "You have already submitted this assignment")
    session.refresh(submission)

    return {
        "message": "Assignment submitted successfully",
        "submission": submission_out(submission),
    }


@router.get("/notifications")
def list_notifications(
    current_user: TokenPayload = Depends(require_student()),
    session: Session = Depends(get_session),
) -> dict:
    """내 알림 목록 (최신순)"""
    student = get_student_profile(session, current_user)
    notifications = session.exec(
        select(Notification)
        .where(Notification.student_id == student.id)
        .order_by(Notification.created_at.desc())
    ).all()

    return {
        "notifications": [notification_out(notification) for notification in notifications],
        "unread": sum(1 for n in notifications if n.status == NotificationStatus.unread),
    }


@router.patch("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: str,
    current_user: TokenPayload = Depends(require_student()),
    session: Session = Depends(get_session),
) -> dict:
    """알림 읽음 처리"""
    student = get_student_profile(session, current_user)
    notification = session.get(Notification, notification_id)
    # 다른 학생의 알림은 존재 여부도 노출하지 않음
    if not notification or notification.student_id != student.id:
        raise NotFound("Notification not found")

    notification.status = NotificationStatus.read
    session.add(notification)
    session.commit()
    session.refresh(notification)

    return {"notification": notification_out(notification)}
