"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - TokenId, RegistrationId, MemberId, ActorId wrap strings — never pass bare ids in domain logic
    - UNLIMITED_USES (-1) is the only negative value max_uses may take
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and to DB string columns without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

TokenId = NewType("TokenId", str)
RegistrationId = NewType("RegistrationId", str)
MemberId = NewType("MemberId", str)
ActorId = NewType("ActorId", str)


# ─── Constants ───────────────────────────────────────────────────

UNLIMITED_USES: int = -1
TOKEN_ALPHABET: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
TOKEN_MIN_LENGTH: int = 8
TOKEN_MAX_LENGTH: int = 64
DEFAULT_COUNTRY: str = "USA"
USER_AGENT_MAX_LENGTH: int = 500


# ─── Enums ───────────────────────────────────────────────────────

class ApprovalStatus(str, Enum):
    """Pending registration lifecycle — maps to DB `approval_status` column."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalAction(str, Enum):
    """Admin dispositions that drive the approval state machine."""
    APPROVE = "approve"
    REJECT = "reject"


class MemberStatus(str, Enum):
    """Self-declared status on the visitor form."""
    MEMBER = "member"
    VISITOR = "visitor"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


class MemberRole(str, Enum):
    """Role assigned to the member record created on approval."""
    ADMIN = "admin"
    PASTOR = "pastor"
    MEMBER = "member"


class DirectoryStatus(str, Enum):
    """Status of a member record in the directory."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class ValidationReason(str, Enum):
    """Why a token failed validation. Checked in declaration order after format."""
    INVALID_FORMAT = "INVALID_FORMAT"
    NOT_FOUND = "NOT_FOUND"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"
    EXHAUSTED = "EXHAUSTED"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AuditResult(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    DENIED = "DENIED"


class AuditAction(str, Enum):
    """Security-relevant actions recorded in the audit log."""
    TOKEN_CREATED = "token_created"
    TOKEN_DEACTIVATED = "token_deactivated"
    REGISTRATION_APPROVED = "registration_approved"
    REGISTRATION_REJECTED = "registration_rejected"
    UNAUTHORIZED_ACCESS = "unauthorized_access"


class CandidateSource(str, Enum):
    """Where a duplicate candidate was found."""
    REGISTRATION = "registration"
    MEMBER = "member"


class MatchField(str, Enum):
    EMAIL = "email"
    PHONE = "phone"


STAFF_ROLES: frozenset[MemberRole] = frozenset({MemberRole.ADMIN, MemberRole.PASTOR})
