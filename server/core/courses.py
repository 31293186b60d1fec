import secrets
import string

from sqlmodel import Session, select

from core.config import settings
from core.models import Course

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


def _random_code() -> str:
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
    return f"{settings.course_code_prefix}{suffix}"


def code_in_use(session: Session, code: str) -> bool:
    return session.exec(select(Course.id).where(Course.code == code)).first() is not None


def generate_course_code(session: Session) -> str:
    """아직 사용되지 않은 강의 참여 코드 생성 (충돌 시 다시 생성)"""
    code = _random_code()
    while code_in_use(session, code):
        code = _random_code()
    return code
