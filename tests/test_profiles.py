"""Profiles module tests — listing, lookup, team view, admin edits, role switches."""

from __future__ import annotations

import uuid

from sqlalchemy import select

from vibeflow.common.audit import AuditTrail
from vibeflow.common.constants import UserRole
from vibeflow.profiles.models import Profile
from tests.conftest import TestSessionFactory, auth_for, seed_profile


async def _stored(profile_id: uuid.UUID) -> Profile:
    async with TestSessionFactory() as session:
        return await session.get(Profile, profile_id)


# ── Listing ─────────────────────────────────────────────────────────


async def test_list_profiles_paginated_by_name(client, employee_profile, hr_profile, manager_profile):
    resp = await client.get(
        "/api/v1/profiles", params={"page_size": 2}, headers=auth_for(employee_profile),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert [p["name"] for p in body["data"]] == ["Erin Employee", "Harper HR"]
    assert body["meta"] == {
        "page": 1,
        "page_size": 2,
        "total": 3,
        "total_pages": 2,
        "has_next": True,
        "has_prev": False,
    }
    assert body["data"][0]["leave_balance"] == {"annual": 10, "sick": 5, "personal": 3}


async def test_list_profiles_filters(client, employee_profile, hr_profile):
    await seed_profile(name="Dana Designer", email="dana@example.com", department="Design")

    by_role = await client.get(
        "/api/v1/profiles", params={"role": "hr"}, headers=auth_for(employee_profile),
    )
    assert [p["email"] for p in by_role.json()["data"]] == ["harper@example.com"]

    by_dept = await client.get(
        "/api/v1/profiles", params={"department": "Design"}, headers=auth_for(employee_profile),
    )
    assert [p["email"] for p in by_dept.json()["data"]] == ["dana@example.com"]

    by_search = await client.get(
        "/api/v1/profiles", params={"search": "HARP"}, headers=auth_for(employee_profile),
    )
    assert [p["email"] for p in by_search.json()["data"]] == ["harper@example.com"]


async def test_list_profiles_sort_descending(client, employee_profile, hr_profile):
    resp = await client.get(
        "/api/v1/profiles", params={"sort": "-name"}, headers=auth_for(employee_profile),
    )
    assert [p["name"] for p in resp.json()["data"]] == ["Harper HR", "Erin Employee"]


async def test_list_profiles_ignores_unknown_sort(client, employee_profile):
    resp = await client.get(
        "/api/v1/profiles", params={"sort": "password_hash; drop"}, headers=auth_for(employee_profile),
    )
    assert resp.status_code == 200


async def test_count_profiles(client, employee_profile, hr_profile):
    resp = await client.get("/api/v1/profiles/count", headers=auth_for(employee_profile))
    assert resp.json() == {"count": 2}


# ── Lookup ──────────────────────────────────────────────────────────


async def test_get_profile(client, employee_profile, hr_profile):
    resp = await client.get(f"/api/v1/profiles/{hr_profile.id}", headers=auth_for(employee_profile))
    assert resp.status_code == 200
    assert resp.json()["role"] == "hr"

    resp = await client.get(f"/api/v1/profiles/{uuid.uuid4()}", headers=auth_for(employee_profile))
    assert resp.status_code == 404
    assert resp.json()["status"] == 404


async def test_get_profile_bad_uuid(client, employee_profile):
    resp = await client.get("/api/v1/profiles/not-a-uuid", headers=auth_for(employee_profile))
    assert resp.status_code == 400


async def test_team_lists_direct_reports(client, manager_profile, employee_profile):
    report_b = await seed_profile(name="Bea", manager_id=manager_profile.id)
    report_a = await seed_profile(name="Abe", manager_id=manager_profile.id)

    resp = await client.get(
        f"/api/v1/profiles/{manager_profile.id}/team", headers=auth_for(employee_profile),
    )

    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == [str(report_a.id), str(report_b.id)]


# ── Admin edits ─────────────────────────────────────────────────────


async def test_hr_updates_profile(client, employee_profile, hr_profile, manager_profile):
    resp = await client.put(
        f"/api/v1/profiles/{employee_profile.id}",
        json={
            "department": "Platform",
            "avatar_url": "https://cdn.example.com/erin.png",
            "manager_id": str(manager_profile.id),
        },
        headers=auth_for(hr_profile),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["department"] == "Platform"
    assert body["manager_id"] == str(manager_profile.id)
    stored = await _stored(employee_profile.id)
    assert stored.avatar_url == "https://cdn.example.com/erin.png"
    assert stored.position == "Engineer"

    async with TestSessionFactory() as session:
        entry = (await session.execute(
            select(AuditTrail).where(
                AuditTrail.entity_id == employee_profile.id,
                AuditTrail.action == "update",
            )
        )).scalars().one()
    assert entry.actor_id == hr_profile.id
    assert entry.new_values["department"] == "Platform"


async def test_update_profile_self_manager_rejected(client, employee_profile, hr_profile):
    resp = await client.put(
        f"/api/v1/profiles/{employee_profile.id}",
        json={"manager_id": str(employee_profile.id)},
        headers=auth_for(hr_profile),
    )
    assert resp.status_code == 400


async def test_update_profile_rejects_manager_cycle(client, hr_profile):
    top = await seed_profile(name="Tess Top", role=UserRole.manager)
    middle = await seed_profile(name="Mid Manager", role=UserRole.manager, manager_id=top.id)
    bottom = await seed_profile(name="Bo Bottom", role=UserRole.manager, manager_id=middle.id)

    direct = await client.put(
        f"/api/v1/profiles/{middle.id}",
        json={"manager_id": str(bottom.id)},
        headers=auth_for(hr_profile),
    )
    indirect = await client.put(
        f"/api/v1/profiles/{top.id}",
        json={"manager_id": str(bottom.id)},
        headers=auth_for(hr_profile),
    )

    assert direct.status_code == 400
    assert "manager_id" in direct.json()["errors"]
    assert indirect.status_code == 400
    assert (await _stored(top.id)).manager_id is None
    assert (await _stored(middle.id)).manager_id == top.id


async def test_update_profile_reassigns_manager_within_tree(client, hr_profile):
    top = await seed_profile(name="Tess Top", role=UserRole.manager)
    middle = await seed_profile(name="Mid Manager", role=UserRole.manager, manager_id=top.id)
    bottom = await seed_profile(name="Bo Bottom", manager_id=middle.id)

    resp = await client.put(
        f"/api/v1/profiles/{bottom.id}",
        json={"manager_id": str(top.id)},
        headers=auth_for(hr_profile),
    )

    assert resp.status_code == 200
    assert (await _stored(bottom.id)).manager_id == top.id


async def test_update_profile_unknown_manager(client, employee_profile, hr_profile):
    resp = await client.put(
        f"/api/v1/profiles/{employee_profile.id}",
        json={"manager_id": str(uuid.uuid4())},
        headers=auth_for(hr_profile),
    )
    assert resp.status_code == 404


async def test_employee_cannot_update_profile(client, employee_profile, hr_profile):
    resp = await client.put(
        f"/api/v1/profiles/{hr_profile.id}",
        json={"name": "Hacked"},
        headers=auth_for(employee_profile),
    )
    assert resp.status_code == 403
    assert (await _stored(hr_profile.id)).name == "Harper HR"


# ── Role switches ───────────────────────────────────────────────────


async def test_admin_changes_role(client, employee_profile, admin_profile):
    resp = await client.put(
        f"/api/v1/profiles/{employee_profile.id}/role",
        json={"role": "hr"},
        headers=auth_for(admin_profile),
    )

    assert resp.status_code == 200
    assert resp.json()["role"] == "hr"
    assert (await _stored(employee_profile.id)).role == UserRole.hr


async def test_hr_cannot_change_role(client, employee_profile, hr_profile):
    resp = await client.put(
        f"/api/v1/profiles/{employee_profile.id}/role",
        json={"role": "admin"},
        headers=auth_for(hr_profile),
    )
    assert resp.status_code == 403
    assert (await _stored(employee_profile.id)).role == UserRole.employee


async def test_change_role_rejects_unknown_role(client, employee_profile, admin_profile):
    resp = await client.put(
        f"/api/v1/profiles/{employee_profile.id}/role",
        json={"role": "superuser"},
        headers=auth_for(admin_profile),
    )
    assert resp.status_code == 400
