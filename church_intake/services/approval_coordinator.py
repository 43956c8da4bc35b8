"""Approval Coordinator — drives a pending registration to APPROVED or REJECTED.

Invariants:
    - A registration leaves PENDING at most once; the winning transition is decided by the
      store's conditional update, never by the earlier read
    - Approval creates exactly one member: if the transition does not commit, the member
      created for it is discarded before returning
    - Losing or late attempts get AlreadyProcessed and a DENIED audit entry (HIGH risk);
      if that entry cannot be written the call fails with AuditWriteError
    - approved_at >= submitted_at
    - Rejection requires a non-empty reason and never touches the member directory

Design Decisions:
    - Member creation happens before the conditional update so member_id can be stored
      with the transition; compensation (discard_member) keeps approval all-or-nothing
      without a cross-store transaction
"""

import logging
from dataclasses import replace

from church_intake.core.approval_transitions import (
    check_rejection_reason, new_member_from, next_status,
)
from church_intake.core.domain_types import (
    ActorId, ApprovalAction, ApprovalStatus, AuditAction, AuditResult, MemberId,
    MemberRole, RegistrationId,
)
from church_intake.core.errors import (
    AlreadyProcessedError, ErrorContext, IntakeError, MemberCreationError,
    ResourceNotFoundError,
)
from church_intake.core.outcome import Err, Ok, Outcome
from church_intake.core.records import ApprovedMember, PendingRegistration
from church_intake.core.repository_protocols import (
    Clock, MemberDirectory, RegistrationStore,
)
from church_intake.services.audit_recorder import AuditRecorder
from church_intake.services.read_retry import read_with_retry

logger = logging.getLogger(__name__)


class ApprovalCoordinator:

    def __init__(
        self,
        registrations: RegistrationStore,
        members: MemberDirectory,
        audit: AuditRecorder,
        clock: Clock,
    ):
        self._registrations = registrations
        self._members = members
        self._audit = audit
        self._clock = clock

    async def _load(self, registration_id: RegistrationId) -> PendingRegistration | None:
        return await read_with_retry(
            lambda: self._registrations.get(registration_id), "registration",
        )

    async def _deny(
        self,
        registration_id: RegistrationId,
        actor_id: ActorId,
        action: AuditAction,
        current: ApprovalStatus,
    ) -> Err:
        await self._audit.record(
            actor_id, action, registration_id, AuditResult.DENIED,
            {"current_status": current.value}, required=True,
        )
        logger.info(
            f"Registration already {current.value}",
            extra={"registration_id": registration_id, "actor_id": actor_id,
                   "error_code": "ALREADY_PROCESSED"},
        )
        return Err(AlreadyProcessedError.for_registration(registration_id, current))

    async def _deny_after_lost_race(
        self,
        registration_id: RegistrationId,
        actor_id: ActorId,
        action: AuditAction,
    ) -> Err:
        latest = await self._load(registration_id)
        current = latest.approval_status if latest else ApprovalStatus.PENDING
        return await self._deny(registration_id, actor_id, action, current)

    async def approve(
        self,
        registration_id: RegistrationId,
        approved_by: ActorId,
        role: MemberRole = MemberRole.MEMBER,
    ) -> Outcome[ApprovedMember]:
        registration = await self._load(registration_id)
        if registration is None:
            return Err(ResourceNotFoundError(
                "Registration", registration_id,
                ErrorContext(registration_id=registration_id),
            ))
        if next_status(registration.approval_status, ApprovalAction.APPROVE) is None:
            return await self._deny(
                registration_id, approved_by, AuditAction.REGISTRATION_APPROVED,
                registration.approval_status,
            )

        # Clock skew must not put approval before submission.
        now = max(self._clock(), registration.submitted_at)
        try:
            member_id = await self._members.create_member(
                new_member_from(registration, role, now),
            )
        except Exception as e:
            logger.error(
                f"Member creation failed: {e}",
                exc_info=True,
                extra={"registration_id": registration_id, "actor_id": approved_by,
                       "error_code": "MEMBER_CREATION_FAILED"},
            )
            cause = e.message if isinstance(e, IntakeError) else str(e)
            return Err(MemberCreationError(
                cause, ErrorContext(registration_id=registration_id, actor_id=approved_by),
            ))

        try:
            committed = await self._registrations.mark_approved(
                registration_id, approved_by, now, member_id,
            )
        except Exception:
            await self._discard(member_id, registration_id)
            raise
        if not committed:
            await self._discard(member_id, registration_id)
            return await self._deny_after_lost_race(
                registration_id, approved_by, AuditAction.REGISTRATION_APPROVED,
            )

        logger.info(
            f"Registration approved as {role.value}",
            extra={"registration_id": registration_id, "actor_id": approved_by},
        )
        await self._audit.record(
            approved_by, AuditAction.REGISTRATION_APPROVED, registration_id,
            AuditResult.SUCCESS,
            {"member_id": member_id, "role": role.value,
             "name": registration.full_name},
        )
        return Ok(ApprovedMember(
            registration_id=registration_id,
            member_id=member_id,
            approved_by=approved_by,
            approved_at=now,
        ))

    async def _discard(self, member_id: MemberId, registration_id: RegistrationId) -> None:
        logger.warning(
            "Approval did not commit, discarding member",
            extra={"registration_id": registration_id},
        )
        await self._members.discard_member(member_id)

    async def reject(
        self,
        registration_id: RegistrationId,
        rejected_by: ActorId,
        reason: str,
    ) -> Outcome[PendingRegistration]:
        problem = check_rejection_reason(reason)
        if problem:
            return Err(problem)
        reason = reason.strip()

        registration = await self._load(registration_id)
        if registration is None:
            return Err(ResourceNotFoundError(
                "Registration", registration_id,
                ErrorContext(registration_id=registration_id),
            ))
        if next_status(registration.approval_status, ApprovalAction.REJECT) is None:
            return await self._deny(
                registration_id, rejected_by, AuditAction.REGISTRATION_REJECTED,
                registration.approval_status,
            )

        now = max(self._clock(), registration.submitted_at)
        if not await self._registrations.mark_rejected(
            registration_id, rejected_by, now, reason,
        ):
            return await self._deny_after_lost_race(
                registration_id, rejected_by, AuditAction.REGISTRATION_REJECTED,
            )

        logger.info("Registration rejected", extra={
            "registration_id": registration_id, "actor_id": rejected_by,
        })
        await self._audit.record(
            rejected_by, AuditAction.REGISTRATION_REJECTED, registration_id,
            AuditResult.SUCCESS, {"reason": reason, "name": registration.full_name},
        )
        return Ok(replace(
            registration,
            approval_status=ApprovalStatus.REJECTED,
            approved_by=rejected_by,
            approved_at=now,
            rejection_reason=reason,
        ))
