"""
End-to-End Access Flow Tests

Complete trace through registration, approval, revocation and re-approval,
checking the caller-visible outcome and the audit trail at each step.
"""

import pytest
from httpx import AsyncClient

from accessgate.api.access.audit import AuditLog
from accessgate.api.accounts.store import AccountStore

from accessgate.api.tests.conftest import ADMIN_PASSWORD


@pytest.mark.asyncio
async def test_full_access_lifecycle(
    async_client: AsyncClient, db_session, admin_headers, admin_user, helpers
):
    # 1. Register: pending
    response = await async_client.post(
        "/api/auth/register",
        json={"name": "Alice", "email": "alice@example.com", "password": "secret123"},
    )
    assert response.status_code == 201
    user_id = response.json()["user"]["id"]

    # 2. Login refused while pending
    response = await helpers.login(async_client, "alice@example.com", "secret123")
    helpers.assert_error(response, 403, "access_pending")

    # 3. Admin grants
    response = await async_client.post(
        f"/api/admin/grant-access/{user_id}", headers=admin_headers
    )
    assert response.status_code == 200

    # 4. Login succeeds and the token works
    response = await helpers.login(async_client, "alice@example.com", "secret123")
    assert response.status_code == 200
    token = response.json()["token"]

    response = await async_client.get("/api/auth/me", headers=helpers.bearer(token))
    assert response.status_code == 200
    assert response.json()["user"]["access_status"] == "granted"

    # 5. Admin revokes; the still-valid token is refused on the next request
    response = await async_client.post(
        f"/api/admin/revoke-access/{user_id}",
        json={"reason": "Policy violation"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    response = await async_client.get("/api/auth/me", headers=helpers.bearer(token))
    helpers.assert_error(response, 403, "access_revoked")
    assert response.json()["message"] == "Access has been revoked. Contact administrator."

    # 6. Login refused while revoked
    response = await helpers.login(async_client, "alice@example.com", "secret123")
    helpers.assert_error(response, 403, "access_revoked")

    # 7. Re-grant restores the same token
    response = await async_client.post(
        f"/api/admin/grant-access/{user_id}", headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["user"]["previous_status"] == "revoked"

    response = await async_client.get("/api/auth/me", headers=helpers.bearer(token))
    assert response.status_code == 200

    # Audit trail: one record per login outcome and per transition
    response = await async_client.get(
        f"/api/admin/access-history/{user_id}", headers=admin_headers
    )
    actions = [r["action"] for r in response.json()["logs"]]
    assert actions == [
        "granted",
        "access_denied",
        "revoked",
        "login_success",
        "granted",
        "access_denied",
    ]

    account = await AccountStore(db_session).get_by_email("alice@example.com")
    assert await AuditLog(db_session).count(account.id) == 6
    assert account.access_granted_by == admin_user.id
    assert account.access_revoked_at is None


@pytest.mark.asyncio
async def test_two_admins_share_the_trail(
    async_client: AsyncClient, db_session, admin_headers, other_admin, granted_user, helpers
):
    """Revocation by one admin is visible to and reversible by another."""
    other_token = (
        await helpers.login(async_client, other_admin.email, ADMIN_PASSWORD)
    ).json()["token"]
    user_id = granted_user.id

    response = await async_client.post(
        f"/api/admin/revoke-access/{user_id}", headers=admin_headers
    )
    assert response.status_code == 200

    response = await async_client.post(
        f"/api/admin/grant-access/{user_id}", headers=helpers.bearer(other_token)
    )
    assert response.status_code == 200
    assert response.json()["user"]["access_granted_by"] == str(other_admin.id)

    response = await async_client.get(
        f"/api/admin/access-history/{user_id}", headers=admin_headers
    )
    logs = response.json()["logs"]
    assert [log["performed_by"]["email"] for log in logs] == [
        other_admin.email,
        "admin@example.com",
    ]
