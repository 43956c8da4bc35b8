"""Boundary Protocols — contracts between core services and the persistence shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Every mutation that can race is a single conditional update returning bool:
      True = predicate held and the write committed, False = nothing was written
    - Records cross the boundary, never ORM rows

Design Decisions:
    - Protocol over ABC: structural subtyping, in-memory fakes need no inheritance
    - Async in Protocol: implementations do IO; the core rules they feed stay sync and pure
    - Collaborators injected through constructors (no module-level singletons) so tests
      substitute fakes for the database, member directory and audit sink
"""

from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from church_intake.core.domain_types import (
    ActorId, ApprovalStatus, MemberId, RegistrationId, TokenId,
)
from church_intake.core.records import (
    AuditEntry, ContactRecord, NewMember, PendingRegistration, RegistrationToken,
)


Clock = Callable[[], datetime]


class TokenStore(Protocol):
    """Contract for registration token persistence — implemented by shell."""
    async def insert_if_unique(self, token: RegistrationToken) -> bool: ...
    async def get(self, token_id: TokenId) -> RegistrationToken | None: ...
    async def find_by_token(self, token: str) -> RegistrationToken | None: ...
    async def list_active(self) -> list[RegistrationToken]: ...
    async def list_by_creator(self, created_by: ActorId) -> list[RegistrationToken]: ...
    async def list_expired_active(self, now: datetime) -> list[RegistrationToken]: ...
    async def deactivate(self, token_id: TokenId) -> bool: ...


class RegistrationStore(Protocol):
    """Contract for pending registration persistence — implemented by shell."""
    async def create_consuming_use(
        self, registration: PendingRegistration, now: datetime,
    ) -> bool:
        """Increment the token's uses iff it still admits one, and insert — both or neither."""
        ...

    async def get(
        self, registration_id: RegistrationId,
    ) -> PendingRegistration | None: ...
    async def list_by_status(
        self, status: ApprovalStatus,
    ) -> list[PendingRegistration]: ...
    async def list_by_token(self, token_id: TokenId) -> list[PendingRegistration]: ...
    async def list_submitted_between(
        self, start: datetime, end: datetime,
    ) -> list[PendingRegistration]: ...
    async def find_contacts(
        self, email_key: str | None, phone_key: str | None,
    ) -> list[ContactRecord]: ...
    async def mark_approved(
        self,
        registration_id: RegistrationId,
        approved_by: ActorId,
        approved_at: datetime,
        member_id: MemberId,
    ) -> bool: ...
    async def mark_rejected(
        self,
        registration_id: RegistrationId,
        rejected_by: ActorId,
        rejected_at: datetime,
        reason: str,
    ) -> bool: ...


class MemberDirectory(Protocol):
    """Member-creation collaborator — raises on failure."""
    async def create_member(self, member: NewMember) -> MemberId: ...
    async def discard_member(self, member_id: MemberId) -> None: ...
    async def find_contacts(
        self, email_key: str | None, phone_key: str | None,
    ) -> list[ContactRecord]: ...


class AuditSink(Protocol):
    """Append-only security audit log."""
    async def append(self, entry: AuditEntry) -> None: ...
