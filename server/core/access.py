"""
요청마다 현재 DB 상태로 권한을 다시 확인하는 헬퍼
- 토큰의 userId 로 역할 프로필을 조회
- 강의 소유 여부 / 수강 여부 확인
"""
from sqlmodel import Session, select

from core.errors import Forbidden, NotFound
from core.models import Course, Enrollment, Student, Teacher
from core.security import TokenPayload


def get_teacher_profile(session: Session, current_user: TokenPayload) -> Teacher:
    teacher = session.exec(select(Teacher).where(Teacher.user_id == current_user.user_id)).first()
    if not teacher:
        raise NotFound("Teacher profile not found")
    return teacher


def get_student_profile(session: Session, current_user: TokenPayload) -> Student:
    student = session.exec(select(Student).where(Student.user_id == current_user.user_id)).first()
    if not student:
        raise NotFound("Student profile not found")
    return student


def get_owned_course(session: Session, teacher: Teacher, course_id: str, action: str = "modify") -> Course:
    """강사는 자신의 강의만 다룰 수 있음"""
    course = session.exec(
        select(Course).where(Course.id == course_id, Course.teacher_id == teacher.id)
    ).first()
    if not course:
        raise Forbidden(f"You are not allowed to {action} this course")
    return course


def find_enrollment(session: Session, student: Student, course_id: str) -> Enrollment | None:
    return session.exec(
        select(Enrollment).where(
            Enrollment.student_id == student.id,
            Enrollment.course_id == course_id,
        )
    ).first()


def require_enrollment(session: Session, student: Student, course_id: str) -> Enrollment:
    """학생은 등록한 강의만 접근 가능"""
    enrollment = find_enrollment(session, student, course_id)
    if not enrollment:
        raise Forbidden("Access denied. You are not enrolled in this course.")
    return enrollment
