"""Auth module tests — registration, login, JWT claims, /me, RBAC."""

from __future__ import annotations

import uuid

import pytest
from jose import jwt
from sqlalchemy import func, select

from vibeflow.auth.service import hash_password, verify_password
from vibeflow.common.constants import PERMISSIONS, ROUTES, UserRole
from vibeflow.config import settings
from vibeflow.leave.models import LeaveBalance
from vibeflow.profiles.models import Profile
from tests.conftest import (
    TEST_PASSWORD,
    TestSessionFactory,
    auth_for,
    create_access_token,
    seed_profile,
)


async def _count_profiles(email: str) -> int:
    async with TestSessionFactory() as session:
        return (await session.execute(
            select(func.count()).select_from(Profile).where(Profile.email == email)
        )).scalar_one()


# ── Passwords ───────────────────────────────────────────────────────


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_malformed_hash():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


# ── Registration ────────────────────────────────────────────────────


async def test_register_creates_profile_and_balance(client):
    resp = await client.post(
        "/api/v1/auth/register",
        json={"name": "John", "email": "John@X.com", "password": "secret123"},
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == settings.JWT_EXPIRY_HOURS * 3600
    user = body["user"]
    assert user["email"] == "john@x.com"
    assert user["role"] == "employee"
    assert user["department"] == settings.DEFAULT_DEPARTMENT
    assert user["leave_balance"] == {
        "annual": settings.DEFAULT_ANNUAL_LEAVE,
        "sick": settings.DEFAULT_SICK_LEAVE,
        "personal": settings.DEFAULT_PERSONAL_LEAVE,
    }
    assert "password_hash" not in user

    async with TestSessionFactory() as session:
        balance = await session.get(LeaveBalance, uuid.UUID(user["id"]))
    assert balance is not None


async def test_register_duplicate_email_conflict(client):
    payload = {"name": "John", "email": "john@x.com", "password": "secret123"}
    first = await client.post("/api/v1/auth/register", json=payload)
    second = await client.post(
        "/api/v1/auth/register", json={**payload, "email": "JOHN@x.com"},
    )

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["errors"]["email"]
    assert await _count_profiles("john@x.com") == 1


async def test_register_validates_payload(client):
    resp = await client.post(
        "/api/v1/auth/register",
        json={"name": "John", "email": "not-an-email", "password": "123"},
    )

    assert resp.status_code == 400
    errors = resp.json()["errors"]
    assert "email" in errors
    assert "password" in errors


@pytest.mark.parametrize("password", ["p" * 100, "é" * 40, "é" * 37])
async def test_register_rejects_password_over_bcrypt_limit(client, password):
    resp = await client.post(
        "/api/v1/auth/register",
        json={"name": "John", "email": "john@x.com", "password": password},
    )

    assert resp.status_code == 400
    assert "password" in resp.json()["errors"]
    assert await _count_profiles("john@x.com") == 0


async def test_register_accepts_password_at_bcrypt_limit(client):
    password = "é" * 36  # 72 bytes
    resp = await client.post(
        "/api/v1/auth/register",
        json={"name": "John", "email": "john@x.com", "password": password},
    )
    assert resp.status_code == 201

    login = await client.post(
        "/api/v1/auth/login", json={"email": "john@x.com", "password": password},
    )
    assert login.status_code == 200


async def test_privileged_self_registration_can_be_disabled(client, monkeypatch):
    monkeypatch.setattr(settings, "ALLOW_PRIVILEGED_REGISTRATION", False)

    denied = await client.post(
        "/api/v1/auth/register",
        json={"name": "Eve", "email": "eve@x.com", "password": "secret123", "role": "admin"},
    )
    allowed = await client.post(
        "/api/v1/auth/register",
        json={"name": "John", "email": "john@x.com", "password": "secret123"},
    )

    assert denied.status_code == 403
    assert await _count_profiles("eve@x.com") == 0
    assert allowed.status_code == 201
    assert allowed.json()["user"]["role"] == "employee"


# ── Login ───────────────────────────────────────────────────────────


async def test_login_returns_token_with_claims(client, employee_profile):
    resp = await client.post(
        "/api/v1/auth/login",
        json={"email": "ERIN@example.com", "password": TEST_PASSWORD},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["user"]["leave_balance"]["annual"] == 10
    payload = jwt.decode(body["token"], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    assert payload["userId"] == str(employee_profile.id)
    assert payload["role"] == "employee"
    assert payload["email"] == "erin@example.com"
    assert payload["exp"] - payload["iat"] == 3600


async def test_login_wrong_password_and_unknown_email_look_alike(client, employee_profile):
    wrong = await client.post(
        "/api/v1/auth/login",
        json={"email": "erin@example.com", "password": "nope"},
    )
    unknown = await client.post(
        "/api/v1/auth/login",
        json={"email": "ghost@example.com", "password": "nope"},
    )

    assert wrong.status_code == 401
    assert unknown.status_code == 401
    assert wrong.json()["detail"] == unknown.json()["detail"]
    assert wrong.headers["www-authenticate"] == "Bearer"


async def test_login_rate_limited(client):
    statuses = set()
    limit = int(settings.LOGIN_RATE_LIMIT.split("/")[0])
    for _ in range(limit + 1):
        resp = await client.post(
            "/api/v1/auth/login",
            json={"email": "ghost@example.com", "password": "nope"},
        )
        statuses.add(resp.status_code)
    assert 429 in statuses


# ── /me ─────────────────────────────────────────────────────────────


async def test_me_returns_profile_permissions_routes(client, manager_profile):
    resp = await client.get("/api/v1/auth/me", headers=auth_for(manager_profile))

    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "mona@example.com"
    assert body["permissions"] == PERMISSIONS[UserRole.manager]
    assert body["routes"] == ROUTES[UserRole.manager]
    assert body["leave_balance"] == {"annual": 10, "sick": 5, "personal": 3}


async def test_me_without_token(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.headers["content-type"].startswith("application/problem+json")


async def test_me_expired_token(client, employee_profile):
    token = create_access_token(employee_profile.id, expired=True)
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token has expired."


async def test_me_token_signed_with_other_secret(client, employee_profile):
    token = jwt.encode(
        {"userId": str(employee_profile.id), "role": "admin"},
        "some-other-secret",
        algorithm="HS256",
    )
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_me_token_for_deleted_profile(client):
    token = create_access_token(uuid.uuid4())
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


# ── Role source ─────────────────────────────────────────────────────


async def test_authorization_uses_stored_role_not_token_claim(client, employee_profile):
    """A token claiming admin grants nothing beyond the stored role."""
    forged_claim = create_access_token(employee_profile.id, role=UserRole.admin)
    resp = await client.get(
        "/api/v1/leaves/pending",
        headers={"Authorization": f"Bearer {forged_claim}"},
    )
    assert resp.status_code == 403


async def test_role_switch_applies_without_relogin(client, admin_profile):
    employee = await seed_profile(name="Sam")
    headers = auth_for(employee)

    before = await client.get("/api/v1/leaves/pending", headers=headers)
    assert before.status_code == 403

    resp = await client.put(
        f"/api/v1/profiles/{employee.id}/role",
        json={"role": "manager"},
        headers=auth_for(admin_profile),
    )
    assert resp.status_code == 200

    after = await client.get("/api/v1/leaves/pending", headers=headers)
    assert after.status_code == 200
    me = await client.get("/api/v1/auth/me", headers=headers)
    assert me.json()["role"] == "manager"
    assert "/approvals" in me.json()["routes"]
