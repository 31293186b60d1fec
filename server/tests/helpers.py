"""Shared request helpers for API tests."""
import httpx


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def register(client: httpx.AsyncClient, **overrides) -> httpx.Response:
    body = {
        "email": "t@x.com",
        "password": "pw123456",
        "userType": "teacher",
        "name": "Teacher T",
        "department": "CS",
    }
    body.update(overrides)
    return await client.post("/auth/register", json=body)


async def register_teacher(client: httpx.AsyncClient, email: str = "t@x.com") -> str:
    r = await register(client, email=email)
    assert r.status_code == 201, r.text
    return r.json()["token"]


async def register_student(client: httpx.AsyncClient, email: str = "s@x.com") -> str:
    r = await register(
        client,
        email=email,
        userType="student",
        name="Student S",
        department=None,
        courseYear=2,
    )
    assert r.status_code == 201, r.text
    return r.json()["token"]


async def create_course(client: httpx.AsyncClient, token: str, name: str = "Algo") -> dict:
    r = await client.post("/teacher/courses", json={"name": name}, headers=auth_headers(token))
    assert r.status_code == 201, r.text
    return r.json()["course"]


async def create_assignment(client: httpx.AsyncClient, token: str, course_id: str, **overrides) -> dict:
    body = {"title": "HW1", "description": "Sort things", "due_date": "2030-01-15T12:00:00"}
    body.update(overrides)
    r = await client.post(f"/teacher/courses/{course_id}/assignments", json=body, headers=auth_headers(token))
    assert r.status_code == 201, r.text
    return r.json()["assignment"]
