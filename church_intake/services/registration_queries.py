"""Registration Queries — read-side listing for the staff review screens.

Invariants:
    - Read-only; every store call goes through read_with_retry
    - Results are newest first
    - With no status, token or date filter the PENDING queue is listed
    - Filters combine with AND; the narrowest store query runs first and the rest
      are applied in memory
"""

from datetime import datetime, timezone

from church_intake.core.clock import as_utc
from church_intake.core.domain_types import ApprovalStatus, RegistrationId, TokenId
from church_intake.core.errors import ErrorContext, ResourceNotFoundError
from church_intake.core.outcome import Err, Ok, Outcome
from church_intake.core.records import PendingRegistration
from church_intake.core.repository_protocols import RegistrationStore
from church_intake.services.read_retry import read_with_retry

_EARLIEST = datetime(1970, 1, 1, tzinfo=timezone.utc)
_LATEST = datetime(9999, 12, 31, tzinfo=timezone.utc)


def _within(
    registration: PendingRegistration, start: datetime | None, end: datetime | None,
) -> bool:
    if start and registration.submitted_at < start:
        return False
    if end and registration.submitted_at > end:
        return False
    return True


class RegistrationQueries:

    def __init__(self, registrations: RegistrationStore):
        self._registrations = registrations

    async def get(self, registration_id: RegistrationId) -> Outcome[PendingRegistration]:
        registration = await read_with_retry(
            lambda: self._registrations.get(registration_id), "registration",
        )
        if registration is None:
            return Err(ResourceNotFoundError(
                "Registration", registration_id,
                ErrorContext(registration_id=registration_id),
            ))
        return Ok(registration)

    async def search(
        self,
        status: ApprovalStatus | None = None,
        token_id: TokenId | None = None,
        submitted_from: datetime | None = None,
        submitted_to: datetime | None = None,
    ) -> list[PendingRegistration]:
        start, end = as_utc(submitted_from), as_utc(submitted_to)
        if token_id:
            found = await read_with_retry(
                lambda: self._registrations.list_by_token(token_id), "registrations by token",
            )
        elif start or end:
            found = await read_with_retry(
                lambda: self._registrations.list_submitted_between(
                    start or _EARLIEST, end or _LATEST,
                ),
                "registrations by date",
            )
        else:
            found = await read_with_retry(
                lambda: self._registrations.list_by_status(status or ApprovalStatus.PENDING),
                "registrations by status",
            )
        return sorted(
            (
                r for r in found
                if (status is None or r.approval_status == status) and _within(r, start, end)
            ),
            key=lambda r: r.submitted_at,
            reverse=True,
        )
