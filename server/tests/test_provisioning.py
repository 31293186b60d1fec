"""
Provisioning saga: user + role profile creation with compensating delete.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from core import provisioning
from core.errors import Conflict, ProfileCreationFailed
from core.models import Student, Teacher, User, UserType
from core.provisioning import (
    find_orphan_users,
    register_user,
    rollback_user,
    sweep_orphan_users,
)
from core.security import hash_password, verify_password
from helpers import register


def _teacher(session, email="t@x.com"):
    return register_user(
        session,
        email=email,
        password="pw123456",
        user_type="teacher",
        name="  Ada  ",
        department="CS",
    )


def test_register_user_links_profile_to_user(session):
    user, profile = _teacher(session)
    assert isinstance(profile, Teacher)
    assert profile.user_id == user.id
    assert profile.name == "Ada"
    assert user.user_type == UserType.teacher
    assert verify_password("pw123456", user.password_hash)


def test_register_user_rejects_duplicate_email(session):
    _teacher(session, email="dup@x.com")
    with pytest.raises(Conflict):
        _teacher(session, email="  DUP@x.com ")
    assert len(session.exec(select(User)).all()) == 1


def test_profile_failure_removes_user_and_surfaces_cause(session, monkeypatch):
    def _boom(*args, **kwargs):
        raise OperationalError("INSERT INTO students", {}, Exception("disk I/O error"))

    monkeypatch.setattr(provisioning, "create_profile", _boom)

    with pytest.raises(ProfileCreationFailed) as excinfo:
        register_user(
            session,
            email="s@x.com",
            password="pw123456",
            user_type="student",
            name="Sam",
            course_year=2,
        )

    assert isinstance(excinfo.value.__cause__, OperationalError)
    assert session.exec(select(User)).all() == []
    assert session.exec(select(Student)).all() == []


@pytest.mark.anyio
async def test_profile_failure_over_http_leaves_no_user(client, session, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("profile store unavailable")

    monkeypatch.setattr(provisioning, "create_profile", _boom)

    r = await register(client)
    assert r.status_code == 500
    assert r.json() == {"message": "Failed to create user profile"}
    assert session.exec(select(User)).all() == []


def test_rollback_user_is_idempotent(session):
    user = User(email="orphan@x.com", password_hash=hash_password("pw123456"), user_type=UserType.student)
    session.add(user)
    session.commit()
    user_id = user.id

    assert rollback_user(session, user_id) is True
    assert rollback_user(session, user_id) is False
    assert session.get(User, user_id) is None


def test_sweep_removes_only_users_without_profile(session):
    kept, _ = _teacher(session)
    orphan = User(email="orphan@x.com", password_hash=hash_password("pw123456"), user_type=UserType.student)
    session.add(orphan)
    session.commit()
    orphan_id = orphan.id

    assert [u.id for u in find_orphan_users(session)] == [orphan_id]
    assert sweep_orphan_users(session) == [orphan_id]
    assert find_orphan_users(session) == []
    assert session.get(User, kept.id) is not None


def test_racing_registration_is_decided_by_unique_email(session, monkeypatch):
    _teacher(session, email="race@x.com")
    # 두 요청이 모두 중복 확인을 통과한 상황
    monkeypatch.setattr(provisioning, "email_taken", lambda *args: False)

    with pytest.raises(Conflict) as excinfo:
        _teacher(session, email="race@x.com")

    assert excinfo.value.message == "User already exists with this email"
    assert len(session.exec(select(User)).all()) == 1
    assert len(session.exec(select(Teacher)).all()) == 1


def test_failed_compensation_still_surfaces_profile_error(session, monkeypatch, caplog):
    profile_error = OperationalError("INSERT INTO students", {}, Exception("disk I/O error"))

    def _profile_boom(*args, **kwargs):
        raise profile_error

    def _delete_boom(*args, **kwargs):
        raise OperationalError("DELETE FROM users", {}, Exception("database is locked"))

    monkeypatch.setattr(provisioning, "create_profile", _profile_boom)
    monkeypatch.setattr(provisioning, "rollback_user", _delete_boom)

    with pytest.raises(ProfileCreationFailed) as excinfo:
        register_user(
            session,
            email="s@x.com",
            password="pw123456",
            user_type="student",
            name="Sam",
            course_year=2,
        )

    assert excinfo.value.__cause__ is profile_error
    assert "left for sweep_orphans.py" in caplog.text
    # 남은 User 는 sweep 대상으로 보임
    orphans = find_orphan_users(session)
    assert [u.email for u in orphans] == ["s@x.com"]


def test_new_rows_carry_utc_timestamps(session):
    user, _ = _teacher(session, email="tz@x.com")
    fresh = User(email="fresh@x.com", password_hash="x", user_type=UserType.student)
    assert fresh.created_at.tzinfo is not None
    assert fresh.created_at.utcoffset() == timedelta(0)

    # 저장 후 다시 읽어도 UTC 기준 값
    stored = session.get(User, user.id)
    offset = stored.created_at.utcoffset()
    assert offset in (None, timedelta(0))
    created = stored.created_at.replace(tzinfo=timezone.utc)
    assert abs(datetime.now(timezone.utc) - created) < timedelta(minutes=5)
