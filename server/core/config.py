import os
from pathlib import Path
from dataclasses import dataclass

from dotenv import load_dotenv

# server 폴더 기준 경로
SERVER_ROOT = Path(__file__).resolve().parent.parent

# .env 는 settings 인스턴스 생성 전에 읽어야 함
load_dotenv(dotenv_path=SERVER_ROOT.parent / ".env")


@dataclass
class AppSettings:
    """Global app settings."""

    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./data/learnloop.db")
    jwt_secret: str | None = os.getenv("JWT_SECRET")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    token_expire_days: int = int(os.getenv("TOKEN_EXPIRE_DAYS", "7"))
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
    course_code_prefix: str = os.getenv("COURSE_CODE_PREFIX", "CRS-")
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate(self) -> None:
        """Fail fast when required secrets are missing."""
        if not self.jwt_secret:
            raise RuntimeError("JWT_SECRET is not set; refusing to start without a token signing key")


settings = AppSettings()
