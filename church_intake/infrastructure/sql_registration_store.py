"""SQL Registration Store — RegistrationStore implementation over SQLAlchemy async sessions.

Invariants:
    - create_consuming_use runs the usage increment and the INSERT in ONE transaction:
      the increment is conditional ("iff uses remain"), and a failed INSERT rolls it back
    - mark_approved / mark_rejected only match rows still 'pending'; rowcount decides the outcome
    - No method deletes a registration row

Design Decisions:
    - The increment predicate repeats core/token_rules.evaluate_token in SQL so the
      database re-checks activity, expiry and cap at commit time, not at validation time
    - synchronize_session=False: records are rebuilt from fresh reads, never from the identity map
"""

from datetime import datetime

from sqlalchemy import or_, select, update

from church_intake.core.domain_types import (
    ActorId, ApprovalStatus, MemberId, RegistrationId, TokenId, UNLIMITED_USES,
)
from church_intake.core.records import ContactRecord, PendingRegistration
from church_intake.infrastructure.database import DatabaseSessionManager
from church_intake.infrastructure.record_mapping import (
    registration_contact, registration_to_record, registration_to_row,
)
from church_intake.models.pending_registration import (
    PendingRegistration as PendingRegistrationModel,
)
from church_intake.models.registration_token import (
    RegistrationToken as RegistrationTokenModel,
)


class SqlRegistrationStore:
    """Pending registration persistence with conditional token-usage increment."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def create_consuming_use(
        self, registration: PendingRegistration, now: datetime,
    ) -> bool:
        async with self._db.transaction() as session:
            result = await session.execute(
                update(RegistrationTokenModel)
                .where(RegistrationTokenModel.id == registration.token_id)
                .where(RegistrationTokenModel.is_active.is_(True))
                .where(or_(
                    RegistrationTokenModel.expires_at.is_(None),
                    RegistrationTokenModel.expires_at >= now,
                ))
                .where(or_(
                    RegistrationTokenModel.max_uses == UNLIMITED_USES,
                    RegistrationTokenModel.current_uses
                    < RegistrationTokenModel.max_uses,
                ))
                .values(current_uses=RegistrationTokenModel.current_uses + 1)
                .execution_options(synchronize_session=False),
            )
            if result.rowcount != 1:
                return False
            session.add(registration_to_row(registration))
        return True

    async def get(
        self, registration_id: RegistrationId,
    ) -> PendingRegistration | None:
        async with self._db.session() as session:
            row = await session.get(PendingRegistrationModel, registration_id)
            return registration_to_record(row) if row else None

    async def list_by_status(
        self, status: ApprovalStatus,
    ) -> list[PendingRegistration]:
        return await self._list(PendingRegistrationModel.approval_status == status.value)

    async def list_by_token(self, token_id: TokenId) -> list[PendingRegistration]:
        return await self._list(PendingRegistrationModel.token_id == token_id)

    async def list_submitted_between(
        self, start: datetime, end: datetime,
    ) -> list[PendingRegistration]:
        return await self._list(
            PendingRegistrationModel.submitted_at >= start,
            PendingRegistrationModel.submitted_at <= end,
        )

    async def find_contacts(
        self, email_key: str | None, phone_key: str | None,
    ) -> list[ContactRecord]:
        conditions = []
        if email_key:
            conditions.append(PendingRegistrationModel.email_normalized == email_key)
        if phone_key:
            conditions.append(PendingRegistrationModel.phone_digits == phone_key)
        if not conditions:
            return []
        async with self._db.session() as session:
            rows = await session.scalars(
                select(PendingRegistrationModel).where(or_(*conditions)),
            )
            return [registration_contact(row) for row in rows]

    async def mark_approved(
        self,
        registration_id: RegistrationId,
        approved_by: ActorId,
        approved_at: datetime,
        member_id: MemberId,
    ) -> bool:
        return await self._transition(
            registration_id,
            approval_status=ApprovalStatus.APPROVED.value,
            approved_by=approved_by,
            approved_at=approved_at,
            member_id=member_id,
        )

    async def mark_rejected(
        self,
        registration_id: RegistrationId,
        rejected_by: ActorId,
        rejected_at: datetime,
        reason: str,
    ) -> bool:
        return await self._transition(
            registration_id,
            approval_status=ApprovalStatus.REJECTED.value,
            approved_by=rejected_by,
            approved_at=rejected_at,
            rejection_reason=reason,
        )

    async def _transition(self, registration_id: RegistrationId, **values) -> bool:
        """UPDATE … WHERE id = :id AND approval_status = 'pending'."""
        async with self._db.transaction() as session:
            result = await session.execute(
                update(PendingRegistrationModel)
                .where(PendingRegistrationModel.id == registration_id)
                .where(
                    PendingRegistrationModel.approval_status
                    == ApprovalStatus.PENDING.value,
                )
                .values(**values)
                .execution_options(synchronize_session=False),
            )
            return result.rowcount == 1

    async def _list(self, *conditions) -> list[PendingRegistration]:
        async with self._db.session() as session:
            rows = await session.scalars(
                select(PendingRegistrationModel)
                .where(*conditions)
                .order_by(PendingRegistrationModel.submitted_at.desc()),
            )
            return [registration_to_record(row) for row in rows]
