"""Token Schemas — Pydantic models for the registration token endpoints.

Invariants:
    - TokenCreate.purpose: 1-200 chars, stripped, non-empty
    - TokenCreate.max_uses: None (unlimited), -1 (unlimited) or >= 1
    - TokenResponse always carries the full registration URL for QR rendering
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from church_intake.core.domain_types import ValidationReason
from church_intake.core.records import RegistrationToken


class TokenCreate(BaseModel):
    """Token creation — the QR code's purpose and optional limits."""
    purpose: str = Field(min_length=1, max_length=200)
    expires_at: datetime | None = None
    max_uses: int | None = Field(None, ge=-1)
    notes: str | None = Field(None, max_length=2000)
    event_date: datetime | None = None
    location: str | None = Field(None, max_length=200)

    @field_validator("purpose")
    @classmethod
    def strip_purpose(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("purpose cannot be empty or whitespace")
        return v

    @field_validator("max_uses")
    @classmethod
    def reject_zero_uses(cls, v: int | None) -> int | None:
        if v == 0:
            raise ValueError("max_uses must be -1 (unlimited) or at least 1")
        return v


class TokenMetadataResponse(BaseModel):
    purpose: str
    notes: str | None = None
    event_date: datetime | None = None
    location: str | None = None


class TokenResponse(BaseModel):
    id: str
    token: str
    registration_url: str
    created_by: str
    created_at: datetime
    expires_at: datetime | None = None
    max_uses: int
    current_uses: int
    remaining_uses: int | None = None
    is_active: bool
    metadata: TokenMetadataResponse

    @classmethod
    def from_record(cls, token: RegistrationToken, url: str) -> "TokenResponse":
        return cls(
            id=token.id,
            token=token.token,
            registration_url=url,
            created_by=token.created_by,
            created_at=token.created_at,
            expires_at=token.expires_at,
            max_uses=token.max_uses,
            current_uses=token.current_uses,
            remaining_uses=token.remaining_uses,
            is_active=token.is_active,
            metadata=TokenMetadataResponse(
                purpose=token.metadata.purpose,
                notes=token.metadata.notes,
                event_date=token.metadata.event_date,
                location=token.metadata.location,
            ),
        )


class TokenValidationResponse(BaseModel):
    """Public verdict: never exposes usage counts or creator."""
    valid: bool
    reason: ValidationReason | None = None
    purpose: str | None = None
    event_date: datetime | None = None
    location: str | None = None


class CleanupResponse(BaseModel):
    deactivated: int
