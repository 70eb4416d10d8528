"""Seed script for development data.

Run with:  python -m app.seed

Users are written straight to the database (there is no user API); requests
are then created and decided through the running API so the full login and
approval path is exercised.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import UTC, date, datetime, timedelta

import httpx

from app.db import dispose_engine, get_session_factory, init_models
from app.exceptions import AppError
from app.services.credentials import create_user

BASE_URL = "http://localhost:8000"
DEMO_PASSWORD = "ChangeMe123!"

USERS = [
    {"username": "admin", "full_name": "Ada Admin", "department": None, "is_admin": True},
    {"username": "hr", "full_name": "Harper Hughes", "department": "HR", "is_hr": True},
    {"username": "sales.manager", "full_name": "Sam Sales", "department": "Sales", "is_manager": True},
    {"username": "east.manager", "full_name": "Erin East", "department": "Sales-East", "is_manager": True},
    {"username": "alice", "full_name": "Alice Johnson", "department": "Sales-East"},
    {"username": "bob", "full_name": "Bob Smith", "department": "Sales-West"},
    {"username": "it.manager", "full_name": "Ian Tech", "department": "IT", "is_manager": True},
    {"username": "carol", "full_name": "Carol Williams", "department": "IT-Support"},
]


async def seed_users() -> None:
    """Create demo users, skipping any that already exist."""
    print("\n--- Seeding users ---")
    await init_models()
    factory = get_session_factory()
    for fields in USERS:
        async with factory() as session:
            try:
                await create_user(session, password=DEMO_PASSWORD, **fields)  # type: ignore[arg-type]
                print(f"  [OK] User {fields['username']}")
            except AppError:
                print(f"  [SKIP] User {fields['username']} (already exists)")
    await dispose_engine()


async def _login(client: httpx.AsyncClient, username: str) -> dict[str, str]:
    resp = await client.post(f"{BASE_URL}/auth/login", json={"username": username, "password": DEMO_PASSWORD})
    resp.raise_for_status()
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


async def _safe_post(
    client: httpx.AsyncClient,
    url: str,
    headers: dict[str, str],
    label: str,
    json: dict | None = None,
) -> dict | None:
    resp = await client.post(url, json=json, headers=headers)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code == 409:
        print(f"  [SKIP] {label} ({resp.json().get('detail')})")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


def _next_business_day(start: date, days_ahead: int) -> date:
    candidate = start + timedelta(days=days_ahead)
    while candidate.weekday() >= 5:
        candidate += timedelta(days=1)
    return candidate


async def seed_requests(client: httpx.AsyncClient) -> None:
    """Create requests at each stage of the approval flow."""
    print("\n--- Seeding requests ---")
    today = datetime.now(UTC).date()
    alice = await _login(client, "alice")
    bob = await _login(client, "bob")
    carol = await _login(client, "carol")
    sales_manager = await _login(client, "sales.manager")
    it_manager = await _login(client, "it.manager")
    hr = await _login(client, "hr")

    # Alice: stays pending with her manager
    alice_start = _next_business_day(today, 7)
    await _safe_post(
        client,
        f"{BASE_URL}/requests",
        alice,
        "Request: Alice annual leave (PENDING)",
        {"leave_type": "ANNUAL", "start_date": alice_start.isoformat(), "reason": "Family visit"},
    )

    # Bob: manager approved, waiting on HR
    bob_start = _next_business_day(today, 14)
    result = await _safe_post(
        client,
        f"{BASE_URL}/requests",
        bob,
        "Request: Bob annual leave",
        {
            "leave_type": "ANNUAL",
            "start_date": bob_start.isoformat(),
            "end_date": _next_business_day(bob_start, 2).isoformat(),
            "reason": "Vacation",
        },
    )
    if result:
        await _safe_post(
            client,
            f"{BASE_URL}/requests/{result['id']}/manager-approve",
            sales_manager,
            "Manager approved Bob's request",
            {"remarks": "Enjoy"},
        )

    # Carol: fully approved
    carol_start = _next_business_day(today, 3)
    result = await _safe_post(
        client,
        f"{BASE_URL}/requests",
        carol,
        "Request: Carol work from home",
        {"leave_type": "WORK_FROM_HOME", "start_date": carol_start.isoformat()},
    )
    if result:
        await _safe_post(
            client, f"{BASE_URL}/requests/{result['id']}/manager-approve", it_manager, "IT manager approved"
        )
        await _safe_post(client, f"{BASE_URL}/requests/{result['id']}/hr-approve", hr, "HR approved Carol's request")


async def main() -> None:
    print("=" * 60)
    print("  Leave Approvals: Development Seed Script")
    print("=" * 60)

    await seed_users()

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            print("Users were created; start the API to seed requests")
            sys.exit(1)

        await seed_requests(client)

    print("\nDone. Every demo user's password is", DEMO_PASSWORD)


if __name__ == "__main__":
    asyncio.run(main())
