"""
Tests for API Schemas
=====================

Tests request validation and response shaping.
"""

import uuid
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from accessgate.api.admin.schemas import (
    AccessHistoryResponse,
    AdminUserResponse,
    AuditRecordResponse,
    RevokeAccessRequest,
)
from accessgate.api.auth.schemas import (
    AccountSummary,
    AdminRegisterRequest,
    UserRegisterRequest,
)
from accessgate.api.db.models import AccessAudit, AccessStatus, AuditAction, Role


class TestRequests:
    """Tests for inbound validation."""

    def test_register_normalizes(self):
        """Should trim the name and lowercase the email."""
        data = UserRegisterRequest(name="  Bob ", email="Bob@Example.COM", password="secret1")
        assert data.name == "Bob"
        assert data.email == "bob@example.com"

    def test_register_short_password(self):
        """Should require at least six characters."""
        with pytest.raises(ValidationError):
            UserRegisterRequest(name="Bob", email="bob@example.com", password="12345")

    def test_admin_code_alias(self):
        """Should accept the camelCase field name and the Python name."""
        by_alias = AdminRegisterRequest(
            name="Root", email="root@example.com", password="secret1", adminCode="c0de"
        )
        by_name = AdminRegisterRequest(
            name="Root", email="root@example.com", password="secret1", admin_code="c0de"
        )
        assert by_alias.admin_code == by_name.admin_code == "c0de"

    def test_admin_code_required(self):
        """Should refuse admin registration without a code."""
        with pytest.raises(ValidationError):
            AdminRegisterRequest(name="Root", email="root@example.com", password="secret1")

    def test_revoke_reason_optional(self):
        assert RevokeAccessRequest().reason is None


class TestResponses:
    """Tests for outbound shaping."""

    def test_summary_hides_credential(self, make_account):
        """Should never expose the password hash."""
        summary = AccountSummary.model_validate(make_account())
        assert "password_hash" not in summary.model_dump()

    def test_admin_view_without_provenance(self, make_account):
        """Should render unset granting and revoking admins as null."""
        account = make_account(AccessStatus.PENDING)
        account.created_at = account.updated_at = datetime.now(timezone.utc)

        view = AdminUserResponse.from_account(account)
        assert view.access_status == "pending"
        assert view.access_granted_by is None
        assert view.access_revoked_by is None

    def test_admin_view_self_granted(self, make_account):
        """Should expand an admin that granted itself."""
        admin = make_account(AccessStatus.GRANTED, Role.ADMIN)
        admin.access_granted_by = admin.id
        admin.created_at = admin.updated_at = datetime.now(timezone.utc)

        view = AdminUserResponse.from_account(admin, {admin.id: admin})
        assert view.access_granted_by.id == admin.id
        assert view.access_granted_by.email == admin.email
        assert view.access_revoked_by is None

    def test_audit_record_view(self, make_account):
        """Should expand the target and performer."""
        target = make_account(AccessStatus.GRANTED)
        admin = make_account(AccessStatus.GRANTED)
        record = AccessAudit(
            id=7,
            account_id=target.id,
            action=AuditAction.GRANTED.value,
            performed_by=admin.id,
            details={"previousStatus": "pending", "newStatus": "granted"},
            created_at=datetime.now(timezone.utc),
        )
        record.account = target
        record.performer = admin

        view = AuditRecordResponse.from_record(record)
        assert view.user_id == target.id
        assert view.user.email == target.email
        assert view.user.role == "user"
        assert view.performed_by.id == admin.id
        assert view.metadata == {"previousStatus": "pending", "newStatus": "granted"}

        assert AuditRecordResponse.from_record(record, include_target=False).user is None

    @pytest.mark.parametrize(
        "total, limit, pages",
        [(0, 100, 0), (1, 100, 1), (100, 100, 1), (101, 100, 2), (5, 2, 3)],
    )
    def test_page_count(self, total, limit, pages):
        assert AccessHistoryResponse.page_count(total, limit) == pages

    def test_ids_are_uuids(self, make_account):
        account = make_account()
        assert isinstance(AccountSummary.model_validate(account).id, uuid.UUID)
