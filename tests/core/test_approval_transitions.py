"""Approval Transitions — tests for the pending -> approved | rejected state machine.

Tests cover:
    - Only PENDING has outgoing transitions
    - APPROVED and REJECTED are terminal
    - Rejection reason must be non-blank
    - Member fields derive from the registration
"""

from datetime import datetime, timezone

import pytest

from church_intake.core.approval_transitions import (
    check_rejection_reason, directory_status_for, is_terminal, new_member_from,
    next_status,
)
from church_intake.core.domain_types import (
    ApprovalAction, ApprovalStatus, DirectoryStatus, MemberRole, MemberStatus,
    RegistrationId, TokenId,
)
from church_intake.core.records import PendingRegistration

NOW = datetime(2026, 4, 6, 9, 0, tzinfo=timezone.utc)


def test_pending_approve_goes_to_approved():
    assert next_status(ApprovalStatus.PENDING, ApprovalAction.APPROVE) is ApprovalStatus.APPROVED


def test_pending_reject_goes_to_rejected():
    assert next_status(ApprovalStatus.PENDING, ApprovalAction.REJECT) is ApprovalStatus.REJECTED


@pytest.mark.parametrize("current", [ApprovalStatus.APPROVED, ApprovalStatus.REJECTED])
@pytest.mark.parametrize("action", list(ApprovalAction))
def test_terminal_states_have_no_transitions(current, action):
    assert next_status(current, action) is None
    assert is_terminal(current)


def test_pending_not_terminal():
    assert not is_terminal(ApprovalStatus.PENDING)


@pytest.mark.parametrize("reason", [None, "", "   \n"])
def test_blank_reason_rejected(reason):
    assert check_rejection_reason(reason).code == "INVALID_REASON"


def test_reason_accepted():
    assert check_rejection_reason("Duplicate of an existing member") is None


def test_directory_status_follows_member_status():
    assert directory_status_for(MemberStatus.MEMBER) is DirectoryStatus.ACTIVE
    assert directory_status_for(MemberStatus.VISITOR) is DirectoryStatus.INACTIVE


def test_new_member_from_registration():
    registration = PendingRegistration(
        id=RegistrationId("r1"),
        token_id=TokenId("t1"),
        first_name="Ana",
        last_name="Silva",
        member_status=MemberStatus.VISITOR,
        submitted_at=NOW,
        email="ana@example.com",
    )
    member = new_member_from(registration, MemberRole.MEMBER, NOW)
    assert member.registration_id == "r1"
    assert member.role is MemberRole.MEMBER
    assert member.status is DirectoryStatus.INACTIVE
    assert member.email == "ana@example.com"
    assert member.joined_at == NOW
