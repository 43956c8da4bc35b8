"""PendingRegistration ORM — persists a visitor submission awaiting staff disposition.

Invariants:
    - Always belongs to a RegistrationToken (token_id FK)
    - approval_status starts 'pending' and changes exactly once (conditional UPDATE in the store)
    - member_id IS NOT NULL iff approval_status = 'approved' (CHECK)
    - rejection_reason IS NOT NULL iff approval_status = 'rejected' (CHECK)
    - Rows are never deleted — they are the audit trail of every submission

Design Decisions:
    - email_normalized / phone_digits stored alongside the raw values: duplicate lookup
      becomes an indexed equality query instead of a scan
    - JSON for address: optional free-form block, never queried
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    CheckConstraint, Date, DateTime, ForeignKey, JSON, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from church_intake.core.domain_types import USER_AGENT_MAX_LENGTH
from church_intake.db.base import Base


class PendingRegistration(Base):
    """Pending registration — one self-registration form submission."""
    __tablename__ = "pending_registrations"
    __table_args__ = (
        CheckConstraint(
            "approval_status IN ('pending', 'approved', 'rejected')",
            name="ck_registrations_status_valid",
        ),
        CheckConstraint(
            "(approval_status = 'approved' AND member_id IS NOT NULL) OR "
            "(approval_status <> 'approved' AND member_id IS NULL)",
            name="ck_registrations_member_iff_approved",
        ),
        CheckConstraint(
            "(approval_status = 'rejected' AND rejection_reason IS NOT NULL) OR "
            "(approval_status <> 'rejected' AND rejection_reason IS NULL)",
            name="ck_registrations_reason_iff_rejected",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
    )
    token_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("registration_tokens.id"),
        nullable=False, index=True,
    )

    # Personal information
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    email_normalized: Mapped[str | None] = mapped_column(
        String(320), nullable=True, index=True,
    )
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    phone_digits: Mapped[str | None] = mapped_column(
        String(40), nullable=True, index=True,
    )
    birthdate: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    address: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    member_status: Mapped[str] = mapped_column(String(10), nullable=False)

    # Submission metadata
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(
        String(USER_AGENT_MAX_LENGTH), nullable=True,
    )

    # Disposition
    approval_status: Mapped[str] = mapped_column(
        String(10), nullable=False, default="pending", index=True,
    )
    approved_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    member_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
