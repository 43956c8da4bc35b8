"""Registration Review Routes — staff queue, duplicate hints, approve/reject, bulk approve.

Invariants:
    - Every route requires an admin or pastor (require_staff)
    - Approve/reject outcomes map 1:1 to the coordinator's Ok/Err; AlreadyProcessed is 409
    - Bulk approve answers 200 with a per-id report even when some ids fail
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from church_intake.api.deps import (
    get_approval_coordinator, get_bulk_orchestrator, get_duplicate_detector,
    get_registration_queries, require_staff,
)
from church_intake.api.error_handlers import raise_for_err
from church_intake.core.domain_types import ApprovalStatus, RegistrationId, TokenId
from church_intake.core.records import ActorContext, ApprovedMember
from church_intake.schemas.registration import (
    ApprovalResponse, ApproveRequest, BulkApproveRequest, BulkApproveResponse,
    BulkFailureResponse, DuplicateCandidateResponse, RegistrationDuplicatesResponse,
    RegistrationResponse, RejectRequest,
)
from church_intake.services.approval_coordinator import ApprovalCoordinator
from church_intake.services.bulk_approval import BulkApprovalOrchestrator
from church_intake.services.duplicate_detector import DuplicateDetector
from church_intake.services.registration_queries import RegistrationQueries

router = APIRouter(prefix="/api/v1/registrations", tags=["registrations"])


def _approval_response(approved: ApprovedMember) -> ApprovalResponse:
    return ApprovalResponse(
        registration_id=approved.registration_id,
        member_id=approved.member_id,
        approved_by=approved.approved_by,
        approved_at=approved.approved_at,
    )


@router.get("", response_model=list[RegistrationResponse])
async def list_registrations(
    status: ApprovalStatus | None = None,
    token_id: str | None = Query(None, max_length=36),
    submitted_from: datetime | None = None,
    submitted_to: datetime | None = None,
    actor: ActorContext = Depends(require_staff),
    queries: RegistrationQueries = Depends(get_registration_queries),
):
    registrations = await queries.search(
        status=status,
        token_id=TokenId(token_id) if token_id else None,
        submitted_from=submitted_from,
        submitted_to=submitted_to,
    )
    return [RegistrationResponse.from_record(r) for r in registrations]


@router.get("/duplicates", response_model=list[RegistrationDuplicatesResponse])
async def pending_with_duplicates(
    actor: ActorContext = Depends(require_staff),
    detector: DuplicateDetector = Depends(get_duplicate_detector),
):
    flagged = await detector.pending_with_duplicates()
    return [
        RegistrationDuplicatesResponse(
            registration=RegistrationResponse.from_record(item.registration),
            candidates=[
                DuplicateCandidateResponse.from_record(c) for c in item.candidates
            ],
        )
        for item in flagged
    ]


@router.post("/bulk-approve", response_model=BulkApproveResponse)
async def bulk_approve(
    body: BulkApproveRequest,
    actor: ActorContext = Depends(require_staff),
    orchestrator: BulkApprovalOrchestrator = Depends(get_bulk_orchestrator),
):
    report = raise_for_err(await orchestrator.approve_many(
        [RegistrationId(i) for i in body.ids], actor.actor_id, body.role,
    ))
    return BulkApproveResponse(
        successful=[_approval_response(a) for a in report.successful],
        failed=[
            BulkFailureResponse(id=f.id, code=f.error.code, message=f.error.message)
            for f in report.failed
        ],
    )


@router.get("/{registration_id}", response_model=RegistrationResponse)
async def get_registration(
    registration_id: str,
    actor: ActorContext = Depends(require_staff),
    queries: RegistrationQueries = Depends(get_registration_queries),
):
    registration = raise_for_err(await queries.get(RegistrationId(registration_id)))
    return RegistrationResponse.from_record(registration)


@router.get(
    "/{registration_id}/duplicates", response_model=list[DuplicateCandidateResponse],
)
async def registration_duplicates(
    registration_id: str,
    actor: ActorContext = Depends(require_staff),
    detector: DuplicateDetector = Depends(get_duplicate_detector),
):
    candidates = raise_for_err(
        await detector.duplicates_for(RegistrationId(registration_id)),
    )
    return [DuplicateCandidateResponse.from_record(c) for c in candidates]


@router.post("/{registration_id}/approve", response_model=ApprovalResponse)
async def approve_registration(
    registration_id: str,
    body: ApproveRequest | None = None,
    actor: ActorContext = Depends(require_staff),
    coordinator: ApprovalCoordinator = Depends(get_approval_coordinator),
):
    role = body.role if body else ApproveRequest().role
    approved = raise_for_err(await coordinator.approve(
        RegistrationId(registration_id), actor.actor_id, role,
    ))
    return _approval_response(approved)


@router.post("/{registration_id}/reject", response_model=RegistrationResponse)
async def reject_registration(
    registration_id: str,
    body: RejectRequest,
    actor: ActorContext = Depends(require_staff),
    coordinator: ApprovalCoordinator = Depends(get_approval_coordinator),
):
    rejected = raise_for_err(await coordinator.reject(
        RegistrationId(registration_id), actor.actor_id, body.reason,
    ))
    return RegistrationResponse.from_record(rejected)
