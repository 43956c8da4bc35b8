"""Contact Matching — normalization of email/phone and advisory duplicate matching.

Invariants:
    - Emails compare case-insensitively after trimming ("A@x.com" == "a@x.com")
    - Phones compare on digits only ("(555) 010-2000" == "555.010.2000")
    - An identifier that normalizes to empty never matches anything
    - match_candidates is PURE and advisory: it never decides anything about a submission
    - exclude_id drops the submission itself and any member approved from it

Design Decisions:
    - Normalized forms are also persisted as indexed columns, so the store narrows
      candidates with an equality query and this module only labels and dedupes them
"""

import re

from church_intake.core.domain_types import MatchField
from church_intake.core.records import ContactRecord, DuplicateCandidate

_NON_DIGITS = re.compile(r"\D")


def normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    normalized = email.strip().lower()
    return normalized or None


def normalize_phone(phone: str | None) -> str | None:
    if phone is None:
        return None
    digits = _NON_DIGITS.sub("", phone)
    return digits or None


def matched_fields(
    email_key: str | None, phone_key: str | None, record: ContactRecord,
) -> frozenset[MatchField]:
    """Which normalized identifiers a stored record shares with the query."""
    fields = set()
    if email_key and normalize_email(record.email) == email_key:
        fields.add(MatchField.EMAIL)
    if phone_key and normalize_phone(record.phone) == phone_key:
        fields.add(MatchField.PHONE)
    return frozenset(fields)


def _is_excluded(record: ContactRecord, exclude_id: str | None) -> bool:
    if exclude_id is None:
        return False
    return record.id == exclude_id or record.registration_id == exclude_id


def match_candidates(
    email: str | None,
    phone: str | None,
    records: list[ContactRecord],
    exclude_id: str | None = None,
) -> list[DuplicateCandidate]:
    """Label records sharing a normalized email or phone; drop repeats and exclude_id."""
    email_key = normalize_email(email)
    phone_key = normalize_phone(phone)
    if not email_key and not phone_key:
        return []

    seen: set[tuple[str, str]] = set()
    candidates = []
    for record in records:
        key = (record.source.value, record.id)
        if key in seen or _is_excluded(record, exclude_id):
            continue
        fields = matched_fields(email_key, phone_key, record)
        if not fields:
            continue
        seen.add(key)
        candidates.append(DuplicateCandidate(
            source=record.source,
            id=record.id,
            first_name=record.first_name,
            last_name=record.last_name,
            matched_on=fields,
            email=record.email,
            phone=record.phone,
        ))
    return candidates
