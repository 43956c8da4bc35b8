"""API Dependencies — wires services onto SQL stores and resolves the acting staff member.

Invariants:
    - Services are built per request from the process-wide DatabaseSessionManager;
      each store operation opens its own session
    - Staff routes depend on require_staff: a role outside STAFF_ROLES is audited
      (HIGH, DENIED) before UnauthorizedAccessError is raised
    - Identity headers are trusted as-is (authentication happens upstream)

Design Decisions:
    - FastAPI Depends chain over a container: tests swap get_db_manager / get_clock
      through app.dependency_overrides
"""

from fastapi import Depends, Header, Request

from church_intake.config import Settings, get_settings
from church_intake.core.clock import utc_now
from church_intake.core.domain_types import (
    ActorId, AuditAction, AuditResult, MemberRole, STAFF_ROLES,
)
from church_intake.core.errors import UnauthorizedAccessError
from church_intake.core.records import ActorContext
from church_intake.core.repository_protocols import Clock
from church_intake.infrastructure.database import DatabaseSessionManager, get_db_manager
from church_intake.infrastructure.sql_directory import SqlAuditLog, SqlMemberDirectory
from church_intake.infrastructure.sql_registration_store import SqlRegistrationStore
from church_intake.infrastructure.sql_token_store import SqlTokenStore
from church_intake.services.approval_coordinator import ApprovalCoordinator
from church_intake.services.audit_recorder import AuditRecorder
from church_intake.services.bulk_approval import BulkApprovalOrchestrator
from church_intake.services.duplicate_detector import DuplicateDetector
from church_intake.services.registration_intake import RegistrationIntake
from church_intake.services.registration_queries import RegistrationQueries
from church_intake.services.token_issuer import TokenIssuer
from church_intake.services.token_validator import TokenValidator

_STAFF_ROLE_VALUES = frozenset(role.value for role in STAFF_ROLES)


def get_clock() -> Clock:
    return utc_now


def get_audit_recorder(
    db: DatabaseSessionManager = Depends(get_db_manager),
    clock: Clock = Depends(get_clock),
) -> AuditRecorder:
    return AuditRecorder(SqlAuditLog(db), clock)


def get_token_issuer(
    db: DatabaseSessionManager = Depends(get_db_manager),
    audit: AuditRecorder = Depends(get_audit_recorder),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> TokenIssuer:
    return TokenIssuer(
        SqlTokenStore(db), audit, clock,
        base_url=settings.registration_base_url,
        token_length=settings.token_length,
        max_attempts=settings.token_max_generation_attempts,
    )


def get_token_validator(
    db: DatabaseSessionManager = Depends(get_db_manager),
    clock: Clock = Depends(get_clock),
) -> TokenValidator:
    return TokenValidator(SqlTokenStore(db), clock)


def get_registration_store(
    db: DatabaseSessionManager = Depends(get_db_manager),
) -> SqlRegistrationStore:
    return SqlRegistrationStore(db)


def get_registration_intake(
    validator: TokenValidator = Depends(get_token_validator),
    registrations: SqlRegistrationStore = Depends(get_registration_store),
    clock: Clock = Depends(get_clock),
) -> RegistrationIntake:
    return RegistrationIntake(validator, registrations, clock)


def get_registration_queries(
    registrations: SqlRegistrationStore = Depends(get_registration_store),
) -> RegistrationQueries:
    return RegistrationQueries(registrations)


def get_duplicate_detector(
    db: DatabaseSessionManager = Depends(get_db_manager),
    registrations: SqlRegistrationStore = Depends(get_registration_store),
) -> DuplicateDetector:
    return DuplicateDetector(registrations, SqlMemberDirectory(db))


def get_approval_coordinator(
    db: DatabaseSessionManager = Depends(get_db_manager),
    registrations: SqlRegistrationStore = Depends(get_registration_store),
    audit: AuditRecorder = Depends(get_audit_recorder),
    clock: Clock = Depends(get_clock),
) -> ApprovalCoordinator:
    return ApprovalCoordinator(registrations, SqlMemberDirectory(db), audit, clock)


def get_bulk_orchestrator(
    coordinator: ApprovalCoordinator = Depends(get_approval_coordinator),
    settings: Settings = Depends(get_settings),
) -> BulkApprovalOrchestrator:
    return BulkApprovalOrchestrator(coordinator, settings.bulk_approval_max_in_flight)


async def require_staff(
    request: Request,
    x_actor_id: str = Header(min_length=1, max_length=100),
    x_actor_role: str = Header("", max_length=50),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> ActorContext:
    """Admins and pastors only. Everyone else is audited and refused."""
    role = x_actor_role.strip().lower()
    if role not in _STAFF_ROLE_VALUES:
        await audit.record(
            ActorId(x_actor_id), AuditAction.UNAUTHORIZED_ACCESS, request.url.path,
            AuditResult.DENIED,
            {"role": role or None, "method": request.method},
            required=True,
        )
        raise UnauthorizedAccessError(x_actor_id, role)
    return ActorContext(actor_id=ActorId(x_actor_id), role=MemberRole(role))
