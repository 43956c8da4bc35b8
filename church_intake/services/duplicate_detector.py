"""Duplicate Detector — advisory lookup of people who share an email or phone.

Invariants:
    - Read-only; never blocks, rejects or alters a submission
    - Candidates come from pending registrations AND the member directory
    - A registration never lists itself as its own duplicate
"""

import logging

from church_intake.core.contact_matching import (
    match_candidates, normalize_email, normalize_phone,
)
from church_intake.core.domain_types import ApprovalStatus, RegistrationId
from church_intake.core.errors import ErrorContext, IntakeError, ResourceNotFoundError
from church_intake.core.outcome import Err, Ok, Outcome
from church_intake.core.records import DuplicateCandidate, RegistrationWithDuplicates
from church_intake.core.repository_protocols import MemberDirectory, RegistrationStore
from church_intake.services.read_retry import read_with_retry

logger = logging.getLogger(__name__)


class DuplicateDetector:

    def __init__(self, registrations: RegistrationStore, members: MemberDirectory):
        self._registrations = registrations
        self._members = members

    async def find_duplicates(
        self,
        email: str | None = None,
        phone: str | None = None,
        exclude_id: str | None = None,
    ) -> list[DuplicateCandidate]:
        email_key = normalize_email(email)
        phone_key = normalize_phone(phone)
        if not email_key and not phone_key:
            return []

        pending = await read_with_retry(
            lambda: self._registrations.find_contacts(email_key, phone_key),
            "registration contacts",
        )
        existing = await read_with_retry(
            lambda: self._members.find_contacts(email_key, phone_key),
            "member contacts",
        )
        return match_candidates(email, phone, pending + existing, exclude_id)

    async def duplicates_for(
        self, registration_id: RegistrationId,
    ) -> Outcome[list[DuplicateCandidate]]:
        registration = await read_with_retry(
            lambda: self._registrations.get(registration_id), "registration",
        )
        if registration is None:
            return Err(ResourceNotFoundError(
                "Registration", registration_id,
                ErrorContext(registration_id=registration_id),
            ))
        return Ok(await self.find_duplicates(
            registration.email, registration.phone, exclude_id=registration.id,
        ))

    async def pending_with_duplicates(self) -> list[RegistrationWithDuplicates]:
        """Every PENDING registration that has at least one candidate."""
        pending = await read_with_retry(
            lambda: self._registrations.list_by_status(ApprovalStatus.PENDING),
            "pending registrations",
        )
        flagged = []
        for registration in pending:
            candidates = await self.find_duplicates(
                registration.email, registration.phone, exclude_id=registration.id,
            )
            if candidates:
                flagged.append(RegistrationWithDuplicates(registration, candidates))
        return flagged


async def scan_for_duplicates(
    detector: DuplicateDetector, registration_id: RegistrationId,
) -> None:
    """Background check after a submission: log matches, never raise."""
    try:
        outcome = await detector.duplicates_for(registration_id)
    except IntakeError as e:
        logger.error(
            f"Duplicate scan failed: {e.message}",
            extra={"registration_id": registration_id, "error_code": e.code},
        )
        return
    if outcome.ok and outcome.value:
        logger.warning(
            f"Possible duplicate registration: {len(outcome.value)} match(es)",
            extra={"registration_id": registration_id},
        )
