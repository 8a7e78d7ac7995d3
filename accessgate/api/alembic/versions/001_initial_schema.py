"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the initial AccessGate database schema with:
- accounts: User and admin accounts with access status and provenance
- audit_records: Append-only access audit ledger

UPDATE, DELETE and TRUNCATE on audit_records are revoked from PUBLIC and
from DATABASE_APP_ROLE. The service must connect as that role, not as the
table owner, for the restriction to hold.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from accessgate.api.config import settings

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Accounts table
    op.create_table(
        "accounts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("access_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("access_granted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("access_granted_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("access_revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("access_revoked_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["access_granted_by"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["access_revoked_by"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_accounts_role"),
        sa.CheckConstraint(
            "access_status IN ('pending', 'granted', 'revoked')",
            name="ck_accounts_access_status",
        ),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=True)

    # Audit records table
    op.create_table(
        "audit_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(30), nullable=False),
        sa.Column("performed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["performed_by"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "action IN ('granted', 'revoked', 'login_success', 'login_failed', 'access_denied')",
            name="ck_audit_records_action",
        ),
    )
    op.create_index(
        "ix_audit_records_account_created",
        "audit_records",
        ["account_id", sa.text("created_at DESC")],
    )
    op.create_index(
        "ix_audit_records_action_created",
        "audit_records",
        ["action", sa.text("created_at DESC")],
    )

    # Append-only at the database level. The table owner keeps every
    # privilege, so the service must connect as DATABASE_APP_ROLE.
    if op.get_bind().dialect.name == "postgresql":
        op.execute("REVOKE UPDATE, DELETE, TRUNCATE ON audit_records FROM PUBLIC;")

        role = settings.DATABASE_APP_ROLE
        if role:
            op.execute(f'GRANT SELECT, INSERT, UPDATE ON accounts TO "{role}";')
            op.execute(f'GRANT SELECT, INSERT ON audit_records TO "{role}";')
            op.execute(f'GRANT USAGE ON SEQUENCE audit_records_id_seq TO "{role}";')
            op.execute(f'REVOKE UPDATE, DELETE, TRUNCATE ON audit_records FROM "{role}";')


def downgrade() -> None:
    op.drop_table("audit_records")
    op.drop_table("accounts")
