"""
App wiring: fallback 404 body, liveness endpoints, startup config checks.
"""
import time

import anyio
import pytest

from core import provisioning
from core.config import AppSettings
from core.security import hash_password
from helpers import register


pytestmark = pytest.mark.anyio


async def test_unmatched_route_returns_fixed_body(client):
    r = await client.get("/does/not/exist")
    assert r.status_code == 404
    assert r.json() == {"message": "Route not found"}


async def test_root_and_health(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json() == {"status": "The server is running fine"}

    r = await client.get("/health")
    assert r.json()["status"] == "ok"


async def test_responses_carry_process_time(client):
    r = await client.get("/")
    assert r.headers["X-Process-Time"].endswith("ms")


async def test_slow_registration_does_not_block_other_requests(client, monkeypatch):
    def _slow_hash(password: str) -> str:
        time.sleep(0.5)
        return hash_password(password)

    monkeypatch.setattr(provisioning, "hash_password", _slow_hash)
    health_latency = None

    async def _health_during_registration():
        nonlocal health_latency
        await anyio.sleep(0.05)
        started = time.perf_counter()
        r = await client.get("/health")
        health_latency = time.perf_counter() - started
        assert r.status_code == 200

    async with anyio.create_task_group() as tg:
        tg.start_soon(register, client)
        tg.start_soon(_health_during_registration)

    assert health_latency < 0.3


async def test_wrong_method_uses_message_body(client):
    r = await client.get("/auth/register")
    assert r.status_code == 405
    assert "message" in r.json()


def test_settings_validate_requires_jwt_secret():
    with pytest.raises(RuntimeError):
        AppSettings(jwt_secret=None).validate()
    AppSettings(jwt_secret="configured").validate()


def test_allowed_origins_are_split():
    assert AppSettings(cors_origins="https://a.example, https://b.example").allowed_origins == [
        "https://a.example",
        "https://b.example",
    ]
