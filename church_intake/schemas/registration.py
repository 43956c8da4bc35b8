"""Registration Schemas — public submission form and staff review payloads.

Invariants:
    - Blank names pass the schema and are refused by the intake service as
      MISSING_REQUIRED_FIELD, so the API and service report the same code
    - email, when given, matches a loose address pattern
    - RejectRequest.reason is passed through untouched: blank reasons surface as
      INVALID_REASON from the coordinator, not as a schema error
    - BulkApproveRequest.ids: at most 100; empty or repeated batches are refused
      by the orchestrator as INVALID_BATCH
"""

from dataclasses import asdict
from datetime import date, datetime

from pydantic import BaseModel, Field

from church_intake.core.domain_types import (
    ApprovalStatus, CandidateSource, Gender, MatchField, MemberRole, MemberStatus,
)
from church_intake.core.records import (
    Address, DuplicateCandidate, PendingRegistration, RegistrationForm,
)


class AddressIn(BaseModel):
    line1: str | None = Field(None, max_length=200)
    line2: str | None = Field(None, max_length=200)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=20)
    country: str | None = Field(None, max_length=100)


class RegistrationSubmit(BaseModel):
    """Visitor self-registration form."""
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    member_status: MemberStatus = MemberStatus.VISITOR
    email: str | None = Field(
        None, max_length=254, pattern=r"^\s*[^@\s]+@[^@\s]+\.[^@\s]+\s*$",
    )
    phone: str | None = Field(None, max_length=40)
    birthdate: date | None = None
    gender: Gender | None = None
    address: AddressIn | None = None

    def to_form(self, ip_address: str | None, user_agent: str | None) -> RegistrationForm:
        return RegistrationForm(
            first_name=self.first_name,
            last_name=self.last_name,
            member_status=self.member_status,
            email=self.email,
            phone=self.phone,
            birthdate=self.birthdate,
            gender=self.gender,
            address=Address(**self.address.model_dump()) if self.address else None,
            ip_address=ip_address,
            user_agent=user_agent,
        )


class SubmissionResponse(BaseModel):
    registration_id: str
    message: str = "Thank you! Your registration has been received."


class AddressOut(BaseModel):
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class RegistrationResponse(BaseModel):
    id: str
    token_id: str
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    birthdate: date | None = None
    gender: Gender | None = None
    address: AddressOut | None = None
    member_status: MemberStatus
    submitted_at: datetime
    approval_status: ApprovalStatus
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    member_id: str | None = None

    @classmethod
    def from_record(cls, r: PendingRegistration) -> "RegistrationResponse":
        return cls(
            id=r.id,
            token_id=r.token_id,
            first_name=r.first_name,
            last_name=r.last_name,
            email=r.email,
            phone=r.phone,
            birthdate=r.birthdate,
            gender=r.gender,
            address=AddressOut(**asdict(r.address)) if r.address else None,
            member_status=r.member_status,
            submitted_at=r.submitted_at,
            approval_status=r.approval_status,
            approved_by=r.approved_by,
            approved_at=r.approved_at,
            rejection_reason=r.rejection_reason,
            member_id=r.member_id,
        )


class DuplicateCandidateResponse(BaseModel):
    source: CandidateSource
    id: str
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    matched_on: list[MatchField]

    @classmethod
    def from_record(cls, c: DuplicateCandidate) -> "DuplicateCandidateResponse":
        return cls(
            source=c.source,
            id=c.id,
            first_name=c.first_name,
            last_name=c.last_name,
            email=c.email,
            phone=c.phone,
            matched_on=sorted(c.matched_on, key=lambda f: f.value),
        )


class RegistrationDuplicatesResponse(BaseModel):
    registration: RegistrationResponse
    candidates: list[DuplicateCandidateResponse]


# --- Review actions -----------------------------------------------------------

class ApproveRequest(BaseModel):
    role: MemberRole = MemberRole.MEMBER


class ApprovalResponse(BaseModel):
    registration_id: str
    member_id: str
    approved_by: str
    approved_at: datetime


class RejectRequest(BaseModel):
    reason: str = Field("", max_length=1000)


class BulkApproveRequest(BaseModel):
    ids: list[str] = Field(max_length=100)
    role: MemberRole = MemberRole.MEMBER


class BulkFailureResponse(BaseModel):
    id: str
    code: str
    message: str


class BulkApproveResponse(BaseModel):
    successful: list[ApprovalResponse]
    failed: list[BulkFailureResponse]
