#!/usr/bin/env python3
"""VibeFlow HR smoke workflow — exercise the leave approval path end to end.

Steps:
  1. API responds on /api/v1/health
  2. Register an HR account and an employee account
  3. HR sets the employee's annual balance
  4. Employee applies for a multi-day annual leave
  5. HR approves it
  6. The employee's annual balance dropped by the inclusive day count
  7. A second review of the same leave is refused with 409

Every run registers fresh accounts (random e-mail suffix), so it is safe to
repeat against a shared environment.

Usage:
    python scripts/smoke_workflow.py                               # http://localhost:8000
    python scripts/smoke_workflow.py --url https://hr.example.com
    python scripts/smoke_workflow.py --days 3 --balance 10 --json

Exit codes:
    0 = all checks passed
    1 = one or more checks failed
    2 = critical failure (cannot reach target at all)
"""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import httpx

# ══════════════════════════════════════════════════════════════════════
# Check result model
# ══════════════════════════════════════════════════════════════════════


class CheckResult:
    """Single workflow step result."""

    def __init__(self, name: str, passed: bool, message: str, detail: str = ""):
        self.name = name
        self.passed = passed
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "passed": self.passed,
            "message": self.message,
            "detail": self.detail,
        }

    def __str__(self) -> str:
        icon = "✅" if self.passed else "❌"
        s = f"{icon} {self.name}: {self.message}"
        if self.detail:
            s += f"\n     {self.detail}"
        return s


class WorkflowAborted(Exception):
    """A step failed and later steps depend on it."""


# ══════════════════════════════════════════════════════════════════════
# Workflow
# ══════════════════════════════════════════════════════════════════════


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _problem(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    return body.get("detail") or json.dumps(body)[:200]


def _register(client: httpx.Client, results: list[CheckResult], role: str, suffix: str) -> dict:
    email = f"smoke-{role}-{suffix}@example.com"
    resp = client.post("/api/v1/auth/register", json={
        "name": f"Smoke {role.title()}",
        "email": email,
        "password": f"smoke-{suffix}",
        "role": role,
    })
    if resp.status_code != 201:
        results.append(CheckResult(
            f"Register {role}", False,
            f"HTTP {resp.status_code} (expected 201)", _problem(resp),
        ))
        raise WorkflowAborted
    body = resp.json()
    results.append(CheckResult(f"Register {role}", True, email))
    return body


def run_workflow(client: httpx.Client, days: int, balance: int) -> list[CheckResult]:
    results: list[CheckResult] = []
    suffix = uuid.uuid4().hex[:8]

    try:
        hr = _register(client, results, "hr", suffix)
        employee = _register(client, results, "employee", suffix)
        employee_id = employee["user"]["id"]

        resp = client.put(
            f"/api/v1/leave-balances/{employee_id}",
            json={"annual": balance},
            headers=_auth(hr["token"]),
        )
        if resp.status_code != 200:
            results.append(CheckResult(
                "Set balance", False, f"HTTP {resp.status_code}", _problem(resp),
            ))
            raise WorkflowAborted
        results.append(CheckResult("Set balance", True, f"annual = {balance}"))

        start = date.today() + timedelta(days=30)
        end = start + timedelta(days=days - 1)
        resp = client.post(
            "/api/v1/leaves",
            json={
                "type": "annual",
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "reason": "smoke workflow",
            },
            headers=_auth(employee["token"]),
        )
        if resp.status_code != 201:
            results.append(CheckResult(
                "Apply leave", False, f"HTTP {resp.status_code}", _problem(resp),
            ))
            raise WorkflowAborted
        leave = resp.json()
        results.append(CheckResult(
            "Apply leave", True, f"{leave['total_days']} day(s), status {leave['status']}",
        ))

        status_url = f"/api/v1/leaves/{leave['id']}/status"
        resp = client.put(
            status_url, json={"status": "approved"}, headers=_auth(hr["token"]),
        )
        approved = resp.status_code == 200 and resp.json().get("status") == "approved"
        results.append(CheckResult(
            "Approve leave", approved,
            "approved" if approved else f"HTTP {resp.status_code}",
            "" if approved else _problem(resp),
        ))
        if not approved:
            raise WorkflowAborted

        resp = client.get(
            f"/api/v1/leave-balances/{employee_id}", headers=_auth(employee["token"]),
        )
        remaining: Optional[int] = resp.json().get("annual") if resp.status_code == 200 else None
        expected = balance - days
        results.append(CheckResult(
            "Balance deducted", remaining == expected,
            f"annual = {remaining} (expected {expected})",
        ))

        resp = client.put(
            status_url, json={"status": "approved"}, headers=_auth(hr["token"]),
        )
        results.append(CheckResult(
            "Second review refused", resp.status_code == 409,
            f"HTTP {resp.status_code} (expected 409)",
        ))
    except WorkflowAborted:
        pass

    return results


# ══════════════════════════════════════════════════════════════════════
# CLI
# ══════════════════════════════════════════════════════════════════════


def main():
    parser = argparse.ArgumentParser(
        description="VibeFlow HR smoke workflow",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/smoke_workflow.py
  python scripts/smoke_workflow.py --url http://localhost:8000 --days 2
  python scripts/smoke_workflow.py --json
""",
    )
    parser.add_argument("--url", type=str, default="http://localhost:8000",
                        help="Base URL of the API (default: http://localhost:8000)")
    parser.add_argument("--days", type=int, default=3,
                        help="Inclusive length of the test leave (default: 3)")
    parser.add_argument("--balance", type=int, default=10,
                        help="Annual balance granted before applying (default: 10)")
    parser.add_argument("--json", dest="output_json", action="store_true",
                        help="Output results as JSON")
    parser.add_argument("--timeout", type=int, default=10,
                        help="HTTP timeout in seconds (default: 10)")
    args = parser.parse_args()

    if args.days < 1 or args.balance < args.days:
        parser.error("--days must be >= 1 and --balance must be >= --days")

    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    if not args.output_json:
        print(f"""
{'=' * 60}
  VIBEFLOW HR — SMOKE WORKFLOW
  Target : {args.url}
  Time   : {now}
{'=' * 60}
""")

    with httpx.Client(base_url=args.url.rstrip("/"), timeout=args.timeout) as client:
        try:
            health = client.get("/api/v1/health")
            health.raise_for_status()
        except httpx.HTTPError as e:
            result = CheckResult("Backend API", False, "Unreachable", str(e))
            print(json.dumps(result.to_dict()) if args.output_json else result)
            sys.exit(2)

        results = [CheckResult("Backend API", True, f"Healthy ({health.json().get('environment')})")]
        results.extend(run_workflow(client, args.days, args.balance))

    if args.output_json:
        print(json.dumps({
            "timestamp": now,
            "target": args.url,
            "checks": [r.to_dict() for r in results],
            "all_passed": all(r.passed for r in results),
        }, indent=2))
    else:
        for result in results:
            print(result)
        failed = sum(1 for r in results if not r.passed)
        print(f"\n{'=' * 60}")
        if failed == 0:
            print(f"  ✅ ALL {len(results)} CHECKS PASSED")
        else:
            print(f"  ❌ {failed}/{len(results)} CHECKS FAILED")
        print(f"{'=' * 60}")

    sys.exit(1 if any(not r.passed for r in results) else 0)


if __name__ == "__main__":
    main()
