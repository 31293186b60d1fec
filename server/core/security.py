"""
인증/인가 시스템
- bcrypt 비밀번호 해싱
- JWT 기반 인증 (userId, userType)
- 역할 기반 접근 제어 (teacher / student)
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

import bcrypt
from fastapi import Depends, Header, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.config import settings
from core.errors import Forbidden, TokenExpired, TokenInvalid, TokenMalformed, Unauthenticated
from core.models import UserType

logger = logging.getLogger(__name__)

# bcrypt 는 최대 72바이트까지만 처리
BCRYPT_MAX_BYTES = 72

# exp/iat 외의 claim 은 허용하지 않음
REGISTERED_CLAIMS = ("exp", "iat", "nbf")

# Authorization 헤더가 없을 때 x-access-token / ?token= 로 대체
security = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    """검증된 토큰의 사용자 정보"""
    model_config = ConfigDict(extra="forbid", strict=True, populate_by_name=True)

    user_id: str = Field(alias="userId")
    user_type: Literal["teacher", "student"] = Field(alias="userType")


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """비밀번호 해싱 (cost factor 는 BCRYPT_ROUNDS)"""
    if not password:
        raise ValueError("Password cannot be empty")
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """비밀번호 검증"""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # 저장된 해시 형식이 잘못된 경우
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def issue_token(user_id: str, user_type: UserType | str, expires_delta: Optional[timedelta] = None) -> str:
    """JWT 토큰 생성"""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.token_expire_days)
    claims = {
        "userId": user_id,
        "userType": UserType(user_type).value,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenPayload:
    """JWT 서명과 payload 형태를 모두 검증"""
    try:
        jwt.get_unverified_header(token)
    except JWTError:
        raise TokenMalformed("Invalid authorization token")

    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise TokenExpired()
    except JWTError:
        raise TokenInvalid()

    body = {key: value for key, value in claims.items() if key not in REGISTERED_CLAIMS}
    try:
        return TokenPayload.model_validate(body)
    except ValidationError:
        raise TokenMalformed()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_access_token: Optional[str] = Header(default=None),
    token: Optional[str] = Query(default=None),
) -> TokenPayload:
    """현재 사용자 정보 가져오기"""
    raw_token = credentials.credentials if credentials else None
    raw_token = raw_token or x_access_token or token
    if not raw_token:
        raise Unauthenticated("Authorization token missing")
    return verify_token(raw_token)


def require_role(role: UserType):
    """역할 기반 접근 제어"""
    def role_checker(current_user: TokenPayload = Depends(get_current_user)) -> TokenPayload:
        if current_user.user_type != role.value:
            raise Forbidden(f"Access denied. {role.value.capitalize()}s only.")
        return current_user
    return role_checker


def require_teacher():
    """강사만 접근 가능"""
    return require_role(UserType.teacher)


def require_student():
    """학생만 접근 가능"""
    return require_role(UserType.student)
