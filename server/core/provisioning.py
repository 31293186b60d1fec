"""
회원가입 프로비저닝
- User 생성 후 역할 프로필(Student/Teacher) 생성
- 프로필 생성 실패 시 방금 만든 User 를 삭제 (보상 동작)

멀티 문서 트랜잭션 없이 두 레코드를 하나의 단위처럼 다룬다.
보상 삭제 전에 프로세스가 죽으면 프로필 없는 User 가 남을 수 있으며,
sweep_orphan_users() 로 정리한다.
"""
import logging
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from core.db import commit_or_conflict
from core.errors import Conflict, ProfileCreationFailed
from core.models import Student, Teacher, User, UserType
from core.security import hash_password

logger = logging.getLogger(__name__)

Profile = Union[Student, Teacher]


def normalize_email(email: str) -> str:
    return email.strip().lower()


def create_profile(
    session: Session,
    user: User,
    *,
    name: str,
    course_year: Optional[int] = None,
    department: Optional[str] = None,
) -> Profile:
    """User 에 연결된 역할 프로필 생성"""
    if user.user_type == UserType.student:
        profile: Profile = Student(user_id=user.id, name=name.strip(), course_year=course_year)
    else:
        profile = Teacher(
            user_id=user.id,
            name=name.strip(),
            department=department.strip() if department else None,
        )
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


def email_taken(session: Session, email: str) -> bool:
    return session.exec(select(User.id).where(User.email == email)).first() is not None


def rollback_user(session: Session, user_id: str) -> bool:
    """보상 동작: 프로필 없이 남은 User 삭제. 삭제했으면 True"""
    user = session.get(User, user_id)
    if not user:
        return False
    session.delete(user)
    session.commit()
    logger.warning(f"Compensated failed registration by deleting user {user_id}")
    return True


def register_user(
    session: Session,
    *,
    email: str,
    password: str,
    user_type: UserType | str,
    name: str,
    course_year: Optional[int] = None,
    department: Optional[str] = None,
) -> tuple[User, Profile]:
    """User + 역할 프로필을 함께 생성"""
    email = normalize_email(email)
    user_type = UserType(user_type)

    # 1. 이메일 중복 확인
    if email_taken(session, email):
        raise Conflict("User already exists with this email")

    # 2. 기본 User 생성
    user = User(email=email, password_hash=hash_password(password), user_type=user_type)
    session.add(user)
    # 동시 가입 경쟁은 unique 인덱스가 판정
    commit_or_conflict(session, "User already exists with this email")
    session.refresh(user)
    user_id = user.id

    # 3. 역할 프로필 생성, 실패하면 User 삭제 후 원래 에러를 전달
    try:
        profile = create_profile(
            session,
            user,
            name=name,
            course_year=course_year,
            department=department,
        )
    except Exception as profile_error:
        logger.error(f"Profile creation failed for user {user_id}: {profile_error}", exc_info=True)
        session.rollback()
        try:
            rollback_user(session, user_id)
        except SQLAlchemyError:
            session.rollback()
            logger.error(
                f"compensation failed, orphan user {user_id} left for sweep_orphans.py",
                exc_info=True,
            )
        raise ProfileCreationFailed() from profile_error

    logger.info(f"Registered {user_type.value} {user_id}")
    return user, profile


def get_profile(session: Session, user: User) -> Optional[Profile]:
    model = Student if user.user_type == UserType.student else Teacher
    return session.exec(select(model).where(model.user_id == user.id)).first()


def find_orphan_users(session: Session) -> list[User]:
    """역할 프로필이 없는 User 목록"""
    student_owners = select(Student.user_id)
    teacher_owners = select(Teacher.user_id)
    return list(
        session.exec(
            select(User).where(
                User.id.not_in(student_owners),
                User.id.not_in(teacher_owners),
            )
        ).all()
    )


def sweep_orphan_users(session: Session) -> list[str]:
    """프로필 없는 User 를 정리하고 삭제한 id 목록 반환"""
    removed: list[str] = []
    for orphan in find_orphan_users(session):
        try:
            if rollback_user(session, orphan.id):
                removed.append(orphan.id)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to remove orphan user {orphan.id}: {e}")
    return removed
