import logging
from typing import Generator
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, create_engine

from core.config import SERVER_ROOT, settings
from core.errors import Conflict

logger = logging.getLogger(__name__)


def _prepare_sqlite_url(url: str) -> str:
    """Ensure sqlite file path exists and is absolute, fallback to server data/ if permission denied."""
    if not url.startswith("sqlite"):
        return url

    parsed = make_url(url)
    # in-memory DB
    if not parsed.database or parsed.database == ":memory:":
        return url

    file_path = Path(parsed.database)
    # 상대 경로는 server 폴더 기준으로 해석
    if not file_path.is_absolute():
        file_path = SERVER_ROOT / file_path

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    except (PermissionError, OSError):
        # Read-only or permission-denied: fallback to server data directory
        fallback = SERVER_ROOT / "data" / file_path.name
        fallback.parent.mkdir(parents=True, exist_ok=True)
        file_path = fallback

    return f"sqlite:///{file_path}"


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """SQLite ignores REFERENCES clauses unless the pragma is set per connection."""
    if target.dialect.name != "sqlite":
        return

    @event.listens_for(target, "connect")
    def _set_pragma(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _build_engine(url: str) -> Engine:
    prepared = _prepare_sqlite_url(url)
    connect_args = {"check_same_thread": False} if prepared.startswith("sqlite") else {}
    built = create_engine(prepared, echo=False, connect_args=connect_args)
    enable_sqlite_foreign_keys(built)
    return built


engine = _build_engine(settings.database_url)


def init_db() -> None:
    """Create tables if they do not exist."""
    # 모델 모듈을 import 해야 metadata 에 테이블이 등록됨
    import core.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info(f"[DB] ✅ 데이터베이스 초기화 완료 - {engine.url.render_as_string(hide_password=True)}")


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def commit_or_conflict(session: Session, message: str) -> None:
    """unique 제약 위반을 '이미 존재함' 으로 해석"""
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.info(f"Unique constraint rejected write: {e.orig}")
        raise Conflict(message)
