"""Registration Form — normalizes visitor input into a pending registration.

Invariants:
    - first_name and last_name are required after trimming
    - email is trimmed and lower-cased; phone is trimmed (digits kept as typed)
    - user_agent is cut to USER_AGENT_MAX_LENGTH characters, the column width
    - An address with no meaningful field is dropped; country defaults to DEFAULT_COUNTRY
    - build_pending_registration always produces approval_status PENDING

Design Decisions:
    - Pure function returning the error instead of raising, same shape as
      token_rules.check_issue_parameters (ADR: typed results for input errors)
"""

from datetime import datetime

from church_intake.core.domain_types import (
    ApprovalStatus, DEFAULT_COUNTRY, RegistrationId, TokenId, USER_AGENT_MAX_LENGTH,
)
from church_intake.core.errors import MissingRequiredFieldError
from church_intake.core.records import Address, PendingRegistration, RegistrationForm
from church_intake.core.contact_matching import normalize_email


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _truncate(value: str | None, limit: int) -> str | None:
    return value[:limit] if value else value


def clean_address(address: Address | None) -> Address | None:
    if address is None:
        return None
    cleaned = Address(
        line1=_clean(address.line1),
        line2=_clean(address.line2),
        city=_clean(address.city),
        state=_clean(address.state),
        postal_code=_clean(address.postal_code),
        country=_clean(address.country) or DEFAULT_COUNTRY,
    )
    meaningful = (
        cleaned.line1, cleaned.line2, cleaned.city, cleaned.state, cleaned.postal_code,
    )
    has_data = any(meaningful) or cleaned.country != DEFAULT_COUNTRY
    return cleaned if has_data else None


def check_required_fields(form: RegistrationForm) -> MissingRequiredFieldError | None:
    for name in ("first_name", "last_name"):
        if not _clean(getattr(form, name)):
            return MissingRequiredFieldError(name)
    return None


def build_pending_registration(
    registration_id: RegistrationId,
    token_id: TokenId,
    form: RegistrationForm,
    submitted_at: datetime,
) -> PendingRegistration:
    """Normalized PENDING record. Caller has already passed check_required_fields."""
    return PendingRegistration(
        id=registration_id,
        token_id=token_id,
        first_name=_clean(form.first_name) or "",
        last_name=_clean(form.last_name) or "",
        member_status=form.member_status,
        submitted_at=submitted_at,
        approval_status=ApprovalStatus.PENDING,
        email=normalize_email(form.email),
        phone=_clean(form.phone),
        birthdate=form.birthdate,
        gender=form.gender,
        address=clean_address(form.address),
        ip_address=_clean(form.ip_address),
        user_agent=_truncate(_clean(form.user_agent), USER_AGENT_MAX_LENGTH),
    )
