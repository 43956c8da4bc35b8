"""Initial schema — registration_tokens, pending_registrations, members, audit_log.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "registration_tokens",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("created_by", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_uses", sa.Integer, nullable=False, server_default="-1"),
        sa.Column("current_uses", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("metadata_version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("purpose", sa.String(200), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.CheckConstraint("current_uses >= 0", name="ck_tokens_uses_non_negative"),
        sa.CheckConstraint("max_uses = -1 OR max_uses > 0", name="ck_tokens_max_uses_valid"),
        sa.CheckConstraint(
            "max_uses = -1 OR current_uses <= max_uses", name="ck_tokens_uses_within_cap",
        ),
    )
    op.create_index("ix_registration_tokens_token", "registration_tokens", ["token"], unique=True)
    op.create_index("ix_registration_tokens_created_by", "registration_tokens", ["created_by"])
    op.create_index("ix_registration_tokens_is_active", "registration_tokens", ["is_active"])

    op.create_table(
        "pending_registrations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("token_id", sa.String(36), sa.ForeignKey("registration_tokens.id"), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("email_normalized", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("phone_digits", sa.String(40), nullable=True),
        sa.Column("birthdate", sa.Date, nullable=True),
        sa.Column("gender", sa.String(10), nullable=True),
        sa.Column("address", sa.JSON, nullable=True),
        sa.Column("member_status", sa.String(10), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("approval_status", sa.String(10), nullable=False, server_default="pending"),
        sa.Column("approved_by", sa.String(128), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("member_id", sa.String(36), nullable=True),
        sa.CheckConstraint(
            "approval_status IN ('pending', 'approved', 'rejected')",
            name="ck_registrations_status_valid",
        ),
        sa.CheckConstraint(
            "(approval_status = 'approved' AND member_id IS NOT NULL) OR "
            "(approval_status <> 'approved' AND member_id IS NULL)",
            name="ck_registrations_member_iff_approved",
        ),
        sa.CheckConstraint(
            "(approval_status = 'rejected' AND rejection_reason IS NOT NULL) OR "
            "(approval_status <> 'rejected' AND rejection_reason IS NULL)",
            name="ck_registrations_reason_iff_rejected",
        ),
    )
    op.create_index("ix_pending_registrations_token_id", "pending_registrations", ["token_id"])
    op.create_index("ix_pending_registrations_email_normalized", "pending_registrations", ["email_normalized"])
    op.create_index("ix_pending_registrations_phone_digits", "pending_registrations", ["phone_digits"])
    op.create_index("ix_pending_registrations_submitted_at", "pending_registrations", ["submitted_at"])
    op.create_index("ix_pending_registrations_approval_status", "pending_registrations", ["approval_status"])

    op.create_table(
        "members",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("email_normalized", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("phone_digits", sa.String(40), nullable=True),
        sa.Column("birthdate", sa.Date, nullable=True),
        sa.Column("gender", sa.String(10), nullable=True),
        sa.Column("role", sa.String(10), nullable=False, server_default="member"),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("source_registration_id", sa.String(36), nullable=True),
    )
    op.create_index("ix_members_email_normalized", "members", ["email_normalized"])
    op.create_index("ix_members_phone_digits", "members", ["phone_digits"])
    op.create_index("ix_members_source_registration_id", "members", ["source_registration_id"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("actor_id", sa.String(128), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(128), nullable=False),
        sa.Column("result", sa.String(10), nullable=False),
        sa.Column("risk_level", sa.String(10), nullable=False),
        sa.Column("details", sa.JSON, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_log_actor_id", "audit_log", ["actor_id"])
    op.create_index("ix_audit_log_target_id", "audit_log", ["target_id"])
    op.create_index("ix_audit_log_risk_level", "audit_log", ["risk_level"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("members")
    op.drop_table("pending_registrations")
    op.drop_table("registration_tokens")
