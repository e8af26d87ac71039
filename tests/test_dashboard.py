"""Dashboard tests — caller summary and reviewer queue sizes."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from vibeflow.common.constants import LeaveStatus
from tests.conftest import auth_for, seed_expense, seed_leave, seed_profile


async def test_summary_for_employee(client, employee_profile):
    now = datetime.now(timezone.utc)
    for i in range(6):
        await seed_leave(
            employee_profile.id,
            start_date=date(2026, 11, 2) + timedelta(days=i * 7),
            end_date=date(2026, 11, 2) + timedelta(days=i * 7),
            status=LeaveStatus.pending if i % 2 else LeaveStatus.approved,
            created_at=now - timedelta(hours=6 - i),
        )
    await seed_expense(employee_profile.id)

    resp = await client.get("/api/v1/dashboard/summary", headers=auth_for(employee_profile))

    assert resp.status_code == 200
    body = resp.json()
    assert body["balance"]["annual"] == 10
    assert body["pending_leaves"] == 3
    assert body["pending_expenses"] == 1
    assert len(body["recent_leaves"]) == 5
    assert body["recent_leaves"][0]["start_date"] == "2026-12-07"
    assert len(body["recent_expenses"]) == 1
    assert body["awaiting_review"] is None


async def test_summary_review_queue_for_manager(client, manager_profile, employee_profile):
    report = await seed_profile(manager_id=manager_profile.id)
    await seed_leave(report.id)
    await seed_expense(report.id)
    await seed_expense(report.id)
    await seed_leave(employee_profile.id)

    resp = await client.get("/api/v1/dashboard/summary", headers=auth_for(manager_profile))

    assert resp.json()["awaiting_review"] == {"leaves": 1, "expenses": 2}


async def test_summary_review_queue_for_hr(client, hr_profile, employee_profile, manager_profile):
    await seed_leave(employee_profile.id)
    await seed_leave(manager_profile.id)
    await seed_leave(hr_profile.id)

    resp = await client.get("/api/v1/dashboard/summary", headers=auth_for(hr_profile))

    body = resp.json()
    assert body["awaiting_review"] == {"leaves": 2, "expenses": 0}
    assert body["pending_leaves"] == 1


async def test_summary_requires_auth(client):
    resp = await client.get("/api/v1/dashboard/summary")
    assert resp.status_code == 401
