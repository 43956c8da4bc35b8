"""Domain Records — immutable value types exchanged between core, services and stores.

Invariants:
    - Records are frozen: every state change produces a new record from the store
    - TokenMetadata is a fixed-field value type (METADATA_SCHEMA_VERSION bumps on change)
    - PendingRegistration.member_id is set iff approval_status is APPROVED
    - PendingRegistration.rejection_reason is non-empty iff approval_status is REJECTED

Design Decisions:
    - Plain dataclasses over ORM objects: core never touches a session (ADR: functional core)
    - Stores convert rows to records at the boundary, so fakes and SQL stores are interchangeable
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from church_intake.core.domain_types import (
    ActorId, ApprovalStatus, AuditAction, AuditResult, CandidateSource,
    DirectoryStatus, Gender, MatchField, MemberId, MemberRole, MemberStatus,
    RegistrationId, RiskLevel, TokenId, UNLIMITED_USES, ValidationReason,
)
from church_intake.core.errors import IntakeError


METADATA_SCHEMA_VERSION: int = 1


# ─── Tokens ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class TokenMetadata:
    """What a token was printed for. Schema version 1."""
    purpose: str
    notes: str | None = None
    event_date: datetime | None = None
    location: str | None = None


@dataclass(frozen=True)
class RegistrationToken:
    id: TokenId
    token: str
    created_by: ActorId
    created_at: datetime
    max_uses: int
    current_uses: int
    is_active: bool
    metadata: TokenMetadata
    expires_at: datetime | None = None

    @property
    def is_unlimited(self) -> bool:
        return self.max_uses == UNLIMITED_USES

    @property
    def remaining_uses(self) -> int | None:
        if self.is_unlimited:
            return None
        return max(self.max_uses - self.current_uses, 0)


@dataclass(frozen=True)
class TokenValidation:
    """Read-only verdict on a token string. token is set only when found."""
    valid: bool
    reason: ValidationReason | None = None
    token: RegistrationToken | None = None


# ─── Registrations ───────────────────────────────────────────────

@dataclass(frozen=True)
class Address:
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class RegistrationForm:
    """Raw visitor form input, before normalization."""
    first_name: str
    last_name: str
    member_status: MemberStatus = MemberStatus.VISITOR
    email: str | None = None
    phone: str | None = None
    birthdate: date | None = None
    gender: Gender | None = None
    address: Address | None = None
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class PendingRegistration:
    id: RegistrationId
    token_id: TokenId
    first_name: str
    last_name: str
    member_status: MemberStatus
    submitted_at: datetime
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    email: str | None = None
    phone: str | None = None
    birthdate: date | None = None
    gender: Gender | None = None
    address: Address | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    approved_by: ActorId | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    member_id: MemberId | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class NewMember:
    """Fields handed to the member-creation collaborator on approval."""
    registration_id: RegistrationId
    first_name: str
    last_name: str
    role: MemberRole
    status: DirectoryStatus
    joined_at: datetime
    email: str | None = None
    phone: str | None = None
    birthdate: date | None = None
    gender: Gender | None = None


@dataclass(frozen=True)
class ApprovedMember:
    registration_id: RegistrationId
    member_id: MemberId
    approved_by: ActorId
    approved_at: datetime


# ─── Duplicate detection ─────────────────────────────────────────

@dataclass(frozen=True)
class ContactRecord:
    """Contact identifiers of an existing registration or member, as stored.

    registration_id is the submission a member was approved from, when known.
    """
    source: CandidateSource
    id: str
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    registration_id: str | None = None


@dataclass(frozen=True)
class DuplicateCandidate:
    source: CandidateSource
    id: str
    first_name: str
    last_name: str
    matched_on: frozenset[MatchField]
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class RegistrationWithDuplicates:
    registration: PendingRegistration
    candidates: list[DuplicateCandidate]


# ─── Audit & identity ────────────────────────────────────────────

@dataclass(frozen=True)
class ActorContext:
    """Identity supplied by upstream auth. Trusted as-is."""
    actor_id: ActorId
    role: MemberRole


@dataclass(frozen=True)
class AuditEntry:
    actor_id: ActorId
    action: AuditAction
    target_id: str
    result: AuditResult
    risk_level: RiskLevel
    occurred_at: datetime
    details: dict = field(default_factory=dict)


# ─── Bulk approval ───────────────────────────────────────────────

@dataclass(frozen=True)
class BulkFailure:
    id: RegistrationId
    error: IntakeError


@dataclass
class BulkApprovalReport:
    successful: list[ApprovedMember] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed
