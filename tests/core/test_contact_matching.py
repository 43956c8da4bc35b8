"""Contact Matching — tests for normalization and advisory duplicate labelling.

Tests cover:
    - Emails compare case-insensitively after trimming
    - Phones compare on digits only
    - matched_on names every shared identifier
    - exclude_id and repeated (source, id) pairs are dropped
    - Members approved from the excluded registration are dropped
    - No identifiers means no candidates
"""

from church_intake.core.contact_matching import (
    match_candidates, normalize_email, normalize_phone,
)
from church_intake.core.domain_types import CandidateSource, MatchField
from church_intake.core.records import ContactRecord


def _record(
    id_, email=None, phone=None, source=CandidateSource.REGISTRATION, registration_id=None,
):
    return ContactRecord(source, id_, "Ana", "Silva", email, phone, registration_id)


def test_normalize_email():
    assert normalize_email("  A@X.com ") == "a@x.com"
    assert normalize_email("   ") is None
    assert normalize_email(None) is None


def test_normalize_phone():
    assert normalize_phone("(555) 010-2000") == "5550102000"
    assert normalize_phone("555.010.2000") == "5550102000"
    assert normalize_phone("ext.") is None


def test_email_match_is_case_insensitive():
    candidates = match_candidates("A@x.com", None, [_record("r1", email="a@x.com")])
    assert [c.id for c in candidates] == ["r1"]
    assert candidates[0].matched_on == frozenset({MatchField.EMAIL})


def test_phone_match_ignores_formatting():
    candidates = match_candidates(
        None, "555-010-2000", [_record("m1", phone="(555) 010 2000", source=CandidateSource.MEMBER)],
    )
    assert candidates[0].source is CandidateSource.MEMBER
    assert candidates[0].matched_on == frozenset({MatchField.PHONE})


def test_both_fields_reported():
    record = _record("r1", email="a@x.com", phone="5550102000")
    [candidate] = match_candidates("a@x.com", "555 010 2000", [record])
    assert candidate.matched_on == frozenset({MatchField.EMAIL, MatchField.PHONE})


def test_exclude_id_and_repeats_dropped():
    records = [
        _record("self", email="a@x.com"),
        _record("r2", email="a@x.com"),
        _record("r2", phone="5550102000"),
    ]
    candidates = match_candidates("a@x.com", "5550102000", records, exclude_id="self")
    assert [c.id for c in candidates] == ["r2"]


def test_member_approved_from_excluded_registration_dropped():
    member = CandidateSource.MEMBER
    records = [
        _record("m1", email="a@x.com", source=member, registration_id="self"),
        _record("m2", email="a@x.com", source=member, registration_id="r9"),
    ]
    candidates = match_candidates("a@x.com", None, records, exclude_id="self")
    assert [c.id for c in candidates] == ["m2"]


def test_same_id_in_different_sources_kept():
    records = [
        _record("x1", email="a@x.com"),
        _record("x1", email="a@x.com", source=CandidateSource.MEMBER),
    ]
    assert len(match_candidates("a@x.com", None, records)) == 2


def test_non_matching_records_ignored():
    assert match_candidates("a@x.com", None, [_record("r1", email="b@x.com")]) == []


def test_no_identifiers_no_candidates():
    assert match_candidates(None, "  ", [_record("r1", email="a@x.com")]) == []
