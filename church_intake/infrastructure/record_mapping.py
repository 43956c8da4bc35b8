"""Row <-> Record Mapping — converts ORM rows to frozen domain records at the store boundary.

Invariants:
    - Every datetime leaving the store is timezone-aware UTC (SQLite returns naive values)
    - Normalized contact columns are always derived here, never supplied by callers

Design Decisions:
    - Free functions over ORM methods: models stay persistence-only, records stay IO-free
"""

from dataclasses import asdict

from church_intake.core.clock import as_utc
from church_intake.core.contact_matching import normalize_email, normalize_phone
from church_intake.core.domain_types import (
    ActorId, ApprovalStatus, CandidateSource, Gender, MemberId, MemberStatus,
    RegistrationId, TokenId,
)
from church_intake.core.records import (
    Address, AuditEntry, ContactRecord, METADATA_SCHEMA_VERSION, NewMember,
    PendingRegistration, RegistrationToken, TokenMetadata,
)
from church_intake.models.audit_entry import AuditLogEntry
from church_intake.models.member import Member
from church_intake.models.pending_registration import (
    PendingRegistration as PendingRegistrationModel,
)
from church_intake.models.registration_token import (
    RegistrationToken as RegistrationTokenModel,
)


# ─── Tokens ──────────────────────────────────────────────────────

def token_to_record(row: RegistrationTokenModel) -> RegistrationToken:
    return RegistrationToken(
        id=TokenId(row.id),
        token=row.token,
        created_by=ActorId(row.created_by),
        created_at=as_utc(row.created_at),
        expires_at=as_utc(row.expires_at),
        max_uses=row.max_uses,
        current_uses=row.current_uses,
        is_active=row.is_active,
        metadata=TokenMetadata(
            purpose=row.purpose,
            notes=row.notes,
            event_date=as_utc(row.event_date),
            location=row.location,
        ),
    )


def token_to_row(token: RegistrationToken) -> RegistrationTokenModel:
    return RegistrationTokenModel(
        id=token.id,
        token=token.token,
        created_by=token.created_by,
        created_at=token.created_at,
        expires_at=token.expires_at,
        max_uses=token.max_uses,
        current_uses=token.current_uses,
        is_active=token.is_active,
        metadata_version=METADATA_SCHEMA_VERSION,
        purpose=token.metadata.purpose,
        notes=token.metadata.notes,
        event_date=token.metadata.event_date,
        location=token.metadata.location,
    )


# ─── Registrations ───────────────────────────────────────────────

def registration_to_record(row: PendingRegistrationModel) -> PendingRegistration:
    return PendingRegistration(
        id=RegistrationId(row.id),
        token_id=TokenId(row.token_id),
        first_name=row.first_name,
        last_name=row.last_name,
        member_status=MemberStatus(row.member_status),
        submitted_at=as_utc(row.submitted_at),
        approval_status=ApprovalStatus(row.approval_status),
        email=row.email,
        phone=row.phone,
        birthdate=row.birthdate,
        gender=Gender(row.gender) if row.gender else None,
        address=Address(**row.address) if row.address else None,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        approved_by=ActorId(row.approved_by) if row.approved_by else None,
        approved_at=as_utc(row.approved_at),
        rejection_reason=row.rejection_reason,
        member_id=MemberId(row.member_id) if row.member_id else None,
    )


def registration_to_row(registration: PendingRegistration) -> PendingRegistrationModel:
    return PendingRegistrationModel(
        id=registration.id,
        token_id=registration.token_id,
        first_name=registration.first_name,
        last_name=registration.last_name,
        email=registration.email,
        email_normalized=normalize_email(registration.email),
        phone=registration.phone,
        phone_digits=normalize_phone(registration.phone),
        birthdate=registration.birthdate,
        gender=registration.gender.value if registration.gender else None,
        address=asdict(registration.address) if registration.address else None,
        member_status=registration.member_status.value,
        submitted_at=registration.submitted_at,
        ip_address=registration.ip_address,
        user_agent=registration.user_agent,
        approval_status=registration.approval_status.value,
    )


def registration_contact(row: PendingRegistrationModel) -> ContactRecord:
    return ContactRecord(
        source=CandidateSource.REGISTRATION,
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        phone=row.phone,
    )


# ─── Members & audit ─────────────────────────────────────────────

def member_to_row(member: NewMember) -> Member:
    return Member(
        first_name=member.first_name,
        last_name=member.last_name,
        email=member.email,
        email_normalized=normalize_email(member.email),
        phone=member.phone,
        phone_digits=normalize_phone(member.phone),
        birthdate=member.birthdate,
        gender=member.gender.value if member.gender else None,
        role=member.role.value,
        status=member.status.value,
        joined_at=member.joined_at,
        source_registration_id=member.registration_id,
    )


def member_contact(row: Member) -> ContactRecord:
    return ContactRecord(
        source=CandidateSource.MEMBER,
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        phone=row.phone,
        registration_id=row.source_registration_id,
    )


def audit_to_row(entry: AuditEntry) -> AuditLogEntry:
    return AuditLogEntry(
        actor_id=entry.actor_id,
        action=entry.action.value,
        target_id=entry.target_id,
        result=entry.result.value,
        risk_level=entry.risk_level.value,
        details=entry.details,
        occurred_at=entry.occurred_at,
    )
