"""
도메인 에러 정의
- 모든 에러는 HTTP 상태 코드와 사용자에게 보여줄 메시지를 가짐
- main.py 의 exception handler 가 {"message": ...} 응답으로 변환
"""
from typing import Optional

from fastapi import status


class LearnLoopError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, headers: Optional[dict[str, str]] = None):
        self.message = message or self.message
        self.headers = headers
        super().__init__(self.message)


class ValidationFailed(LearnLoopError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"


class Unauthenticated(LearnLoopError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authorization token missing"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class TokenExpired(Unauthenticated):
    message = "Token expired"


class TokenMalformed(Unauthenticated):
    message = "Invalid token payload"


class TokenInvalid(Unauthenticated):
    message = "Invalid authorization token"


class Forbidden(LearnLoopError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied"


class NotFound(LearnLoopError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class Conflict(LearnLoopError):
    # 중복(unique 제약 위반)은 기존 클라이언트와 맞추기 위해 400 으로 응답
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Already exists"


class NotEnrolled(LearnLoopError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "You are not enrolled in this course"


class ProfileCreationFailed(LearnLoopError):
    message = "Failed to create user profile"


class InternalError(LearnLoopError):
    pass
