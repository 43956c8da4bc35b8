"""Bulk Approval — approves many registrations with bounded concurrency.

Invariants:
    - Each id is approved independently through ApprovalCoordinator.approve;
      one failure never aborts the others
    - At most max_in_flight approvals run at once
    - Every input id appears exactly once in the report, as success or failure
    - Empty batches and repeated ids are rejected before any approval starts
"""

import asyncio
import logging

from church_intake.core.domain_types import (
    ActorId, MemberRole, RegistrationId,
)
from church_intake.core.errors import (
    ErrorCategory, ErrorContext, IntakeError, InvalidBatchError,
)
from church_intake.core.outcome import Err, Ok, Outcome
from church_intake.core.records import BulkApprovalReport, BulkFailure
from church_intake.services.approval_coordinator import ApprovalCoordinator

logger = logging.getLogger(__name__)

DEFAULT_MAX_IN_FLIGHT: int = 5


class BulkApprovalOrchestrator:

    def __init__(
        self, coordinator: ApprovalCoordinator, max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
    ):
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self._coordinator = coordinator
        self._max_in_flight = max_in_flight

    async def approve_many(
        self,
        registration_ids: list[RegistrationId],
        approved_by: ActorId,
        role: MemberRole = MemberRole.MEMBER,
    ) -> Outcome[BulkApprovalReport]:
        if not registration_ids:
            return Err(InvalidBatchError("At least one registration id is required"))
        if len(set(registration_ids)) != len(registration_ids):
            return Err(InvalidBatchError("Registration ids must not repeat"))

        semaphore = asyncio.Semaphore(self._max_in_flight)

        async def approve_one(registration_id: RegistrationId):
            async with semaphore:
                try:
                    return await self._coordinator.approve(
                        registration_id, approved_by, role,
                    )
                except IntakeError as e:
                    return Err(e)
                except Exception as e:
                    logger.error(
                        f"Unexpected error approving registration: {e}",
                        exc_info=True,
                        extra={"registration_id": registration_id},
                    )
                    return Err(IntakeError(
                        "An unexpected error occurred", "INTERNAL_ERROR",
                        ErrorCategory.INTERNAL,
                        context=ErrorContext(registration_id=registration_id),
                    ))

        outcomes = await asyncio.gather(
            *(approve_one(registration_id) for registration_id in registration_ids),
        )

        report = BulkApprovalReport()
        for registration_id, outcome in zip(registration_ids, outcomes):
            match outcome:
                case Ok(value=approved):
                    report.successful.append(approved)
                case Err(error=error):
                    report.failed.append(BulkFailure(id=registration_id, error=error))

        logger.info(
            f"Bulk approval: {len(report.successful)} approved, "
            f"{len(report.failed)} failed",
            extra={"actor_id": approved_by},
        )
        return Ok(report)
