"""SQL Member Directory & Audit Log — member-creation and audit-sink collaborators.

Invariants:
    - create_member commits before returning the new id (caller commits state afterwards)
    - discard_member removes only a member created by a failed approval commit
    - The audit log is insert-only
"""

from sqlalchemy import delete, or_, select

from church_intake.core.domain_types import MemberId
from church_intake.core.records import AuditEntry, ContactRecord, NewMember
from church_intake.infrastructure.database import DatabaseSessionManager
from church_intake.infrastructure.record_mapping import (
    audit_to_row, member_contact, member_to_row,
)
from church_intake.models.member import Member


class SqlMemberDirectory:
    """Member records created from approved registrations."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def create_member(self, member: NewMember) -> MemberId:
        async with self._db.transaction() as session:
            row = member_to_row(member)
            session.add(row)
            await session.flush()
            member_id = MemberId(row.id)
        return member_id

    async def discard_member(self, member_id: MemberId) -> None:
        async with self._db.transaction() as session:
            await session.execute(delete(Member).where(Member.id == member_id))

    async def find_contacts(
        self, email_key: str | None, phone_key: str | None,
    ) -> list[ContactRecord]:
        conditions = []
        if email_key:
            conditions.append(Member.email_normalized == email_key)
        if phone_key:
            conditions.append(Member.phone_digits == phone_key)
        if not conditions:
            return []
        async with self._db.session() as session:
            rows = await session.scalars(select(Member).where(or_(*conditions)))
            return [member_contact(row) for row in rows]


class SqlAuditLog:
    """Append-only audit sink."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def append(self, entry: AuditEntry) -> None:
        async with self._db.transaction() as session:
            session.add(audit_to_row(entry))
