"""RegistrationToken ORM — persists a printable, capped/expirable registration credential.

Invariants:
    - token is unique and never updated after insert
    - current_uses only grows; when max_uses >= 0, current_uses <= max_uses (CHECK)
    - is_active only goes true -> false (enforced by conditional UPDATE in the store)
    - Rows are never deleted

Design Decisions:
    - Metadata flattened into columns with metadata_version: fixed schema over a JSON bag
    - String ids generated in Python: records carry the id before the INSERT runs
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from church_intake.db.base import Base


class RegistrationToken(Base):
    """Registration token — one QR code / link handed out by staff."""
    __tablename__ = "registration_tokens"
    __table_args__ = (
        CheckConstraint("current_uses >= 0", name="ck_tokens_uses_non_negative"),
        CheckConstraint(
            "max_uses = -1 OR max_uses > 0", name="ck_tokens_max_uses_valid",
        ),
        CheckConstraint(
            "max_uses = -1 OR current_uses <= max_uses",
            name="ck_tokens_uses_within_cap",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
    )
    token: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True,
    )
    created_by: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    max_uses: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)
    current_uses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, index=True,
    )

    # Metadata (schema version 1)
    metadata_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    purpose: Mapped[str] = mapped_column(String(200), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
