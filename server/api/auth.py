"""
인증 엔드포인트
- 회원가입 (User + 역할 프로필 프로비저닝)
- 로그인
- 내 정보 조회
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select

from api.schemas import LoginRequest, RegisterRequest, profile_out, user_out
from core.db import get_session
from core.errors import NotFound, ValidationFailed
from core.models import User
from core.provisioning import get_profile, normalize_email, register_user
from core.security import TokenPayload, get_current_user, issue_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    session: Session = Depends(get_session),
) -> dict:
    """회원가입 - 기본 계정과 역할 프로필을 함께 생성"""
    user, profile = register_user(
        session,
        email=payload.email,
        password=payload.password,
        user_type=payload.user_type,
        name=payload.name,
        course_year=payload.course_year,
        department=payload.department,
    )
    token = issue_token(user.id, user.user_type)

    return {
        "message": "User registered successfully",
        "token": token,
        "user": user_out(user, name=profile.name),
    }


@router.post("/login")
def login(
    payload: LoginRequest,
    session: Session = Depends(get_session),
) -> dict:
    """로그인 - 이메일과 비밀번호로 인증"""
    user = session.exec(select(User).where(User.email == normalize_email(payload.email))).first()
    # 이메일/비밀번호 중 무엇이 틀렸는지 구분하지 않음
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info(f"Failed login attempt for {payload.email}")
        raise ValidationFailed("Invalid email or password")

    token = issue_token(user.id, user.user_type)

    return {
        "message": "Login successful",
        "token": token,
        "user": user_out(user),
    }


@router.get("/me")
def me(
    current_user: TokenPayload = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> dict:
    """토큰 주인의 계정과 프로필 조회"""
    user = session.get(User, current_user.user_id)
    if not user:
        raise NotFound("User not found")
    profile = get_profile(session, user)
    if not profile:
        raise NotFound(f"{user.user_type.value.capitalize()} profile not found")

    return {
        "user": user_out(user, name=profile.name),
        "profile": profile_out(profile),
    }
