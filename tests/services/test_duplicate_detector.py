"""Duplicate Detector — advisory matches across registrations and members.

Tests cover:
    - Email matching ignores case ("A@x.com" finds "a@x.com")
    - Members are candidates as well as pending registrations
    - A registration is never its own duplicate
    - The member created by approving a registration is not its duplicate
    - pending_with_duplicates lists only pending registrations that have candidates
    - The background scan logs and never raises
"""

import logging

from church_intake.core.domain_types import (
    ApprovalStatus, CandidateSource, DirectoryStatus, MatchField, MemberRole,
    RegistrationId,
)
from church_intake.core.records import NewMember
from church_intake.services.duplicate_detector import scan_for_duplicates
from tests.services.fakes import T0, make_registration


def _seed(registration_store, *registrations):
    for registration in registrations:
        registration_store.registrations[registration.id] = registration


async def test_email_match_ignores_case(detector, registration_store):
    _seed(registration_store, make_registration("r1", email="a@x.com"))

    candidates = await detector.find_duplicates(email="A@x.com")

    assert [c.id for c in candidates] == ["r1"]
    assert candidates[0].matched_on == frozenset({MatchField.EMAIL})


async def test_members_are_candidates(detector, directory):
    await directory.create_member(NewMember(
        registration_id=RegistrationId("old"), first_name="Ana", last_name="Silva",
        role=MemberRole.MEMBER, status=DirectoryStatus.ACTIVE, joined_at=T0,
        phone="(555) 010-2000",
    ))

    [candidate] = await detector.find_duplicates(phone="555.010.2000")

    assert candidate.source is CandidateSource.MEMBER
    assert candidate.matched_on == frozenset({MatchField.PHONE})


async def test_no_identifiers_no_lookup(detector, registration_store):
    assert await detector.find_duplicates() == []
    assert registration_store.reads == 0


async def test_duplicates_for_excludes_self(detector, registration_store):
    _seed(
        registration_store,
        make_registration("r1", email="a@x.com"),
        make_registration("r2", email="A@X.COM"),
    )

    outcome = await detector.duplicates_for(RegistrationId("r1"))

    assert [c.id for c in outcome.value] == ["r2"]


async def test_duplicates_for_skips_member_approved_from_it(
    detector, registration_store, directory,
):
    _seed(
        registration_store,
        make_registration("r1", email="a@x.com", approval_status=ApprovalStatus.APPROVED,
                          approved_by="pastor-1", approved_at=T0, member_id="member-1"),
    )
    for source in ("r1", "older"):
        await directory.create_member(NewMember(
            registration_id=RegistrationId(source), first_name="Ana", last_name="Silva",
            role=MemberRole.MEMBER, status=DirectoryStatus.ACTIVE, joined_at=T0,
            email="a@x.com",
        ))

    outcome = await detector.duplicates_for(RegistrationId("r1"))

    assert [c.id for c in outcome.value] == ["member-2"]


async def test_duplicates_for_unknown_registration(detector):
    outcome = await detector.duplicates_for(RegistrationId("missing"))
    assert outcome.code == "RESOURCE_NOT_FOUND"


async def test_pending_with_duplicates(detector, registration_store):
    _seed(
        registration_store,
        make_registration("r1", email="a@x.com"),
        make_registration("r2", email="a@x.com", approval_status=ApprovalStatus.REJECTED,
                          approved_by="pastor-1", approved_at=T0, rejection_reason="dup"),
        make_registration("r3", email="unique@x.com"),
    )

    flagged = await detector.pending_with_duplicates()

    assert [item.registration.id for item in flagged] == ["r1"]
    assert [c.id for c in flagged[0].candidates] == ["r2"]


async def test_scan_logs_warning_on_match(detector, registration_store, caplog):
    _seed(
        registration_store,
        make_registration("r1", email="a@x.com"),
        make_registration("r2", email="a@x.com"),
    )

    with caplog.at_level(logging.WARNING):
        await scan_for_duplicates(detector, RegistrationId("r2"))

    assert "Possible duplicate registration" in caplog.text


async def test_scan_swallows_storage_errors(detector, registration_store, caplog):
    _seed(registration_store, make_registration("r1", email="a@x.com"))
    registration_store.fail_reads = 5

    with caplog.at_level(logging.ERROR):
        await scan_for_duplicates(detector, RegistrationId("r1"))

    assert "Duplicate scan failed" in caplog.text
