"""Approval State Machine — PENDING -> APPROVED | REJECTED, both terminal.

Invariants:
    - next_status is total over (ApprovalStatus, ApprovalAction); terminal states return None
    - Matching is exhaustive: adding a status or action without a branch fails type checking
    - A rejection reason is non-empty after trimming
    - Member status derives from the form: MEMBER -> active, VISITOR -> inactive

Design Decisions:
    - Pure transition table; the store enforces it with "transition iff status = pending"
      so the check here is advisory and the conditional update is authoritative
"""

from datetime import datetime
from typing import assert_never

from church_intake.core.domain_types import (
    ApprovalAction, ApprovalStatus, DirectoryStatus, MemberRole, MemberStatus,
)
from church_intake.core.errors import InvalidReasonError
from church_intake.core.records import NewMember, PendingRegistration


def next_status(
    current: ApprovalStatus, action: ApprovalAction,
) -> ApprovalStatus | None:
    """Target state for action from current, or None if the transition is illegal."""
    match current:
        case ApprovalStatus.PENDING:
            match action:
                case ApprovalAction.APPROVE:
                    return ApprovalStatus.APPROVED
                case ApprovalAction.REJECT:
                    return ApprovalStatus.REJECTED
                case _:
                    assert_never(action)
        case ApprovalStatus.APPROVED | ApprovalStatus.REJECTED:
            return None
        case _:
            assert_never(current)


def is_terminal(status: ApprovalStatus) -> bool:
    return status is not ApprovalStatus.PENDING


def check_rejection_reason(reason: str | None) -> InvalidReasonError | None:
    if reason is None or not reason.strip():
        return InvalidReasonError()
    return None


def directory_status_for(member_status: MemberStatus) -> DirectoryStatus:
    match member_status:
        case MemberStatus.MEMBER:
            return DirectoryStatus.ACTIVE
        case MemberStatus.VISITOR:
            return DirectoryStatus.INACTIVE
        case _:
            assert_never(member_status)


def new_member_from(
    registration: PendingRegistration, role: MemberRole, now: datetime,
) -> NewMember:
    """Member-creation fields for an approved registration."""
    return NewMember(
        registration_id=registration.id,
        first_name=registration.first_name,
        last_name=registration.last_name,
        role=role,
        status=directory_status_for(registration.member_status),
        joined_at=now,
        email=registration.email,
        phone=registration.phone,
        birthdate=registration.birthdate,
        gender=registration.gender,
    )
