"""Token Rules — generation, format, issue-parameter and validity checks for registration tokens.

Invariants:
    - evaluate_token is PURE: same token snapshot + same clock = same verdict, no mutation
    - Check order is fixed: existence -> is_active -> expiry -> usage cap (first failure wins)
    - Generated tokens use TOKEN_ALPHABET only (alphanumeric, no URL escaping needed)
    - max_uses is either positive or UNLIMITED_USES; expires_at, when given, is strictly future

Design Decisions:
    - Randomness injected (choose param) so generation is deterministic under test
    - Validity predicate mirrored by the store's conditional increment: the store re-checks
      the same conditions atomically at commit time (ADR: no read-then-write race)
"""

import re
import secrets
from collections.abc import Callable
from datetime import datetime
from urllib.parse import urlencode

from church_intake.core.domain_types import (
    TOKEN_ALPHABET, TOKEN_MAX_LENGTH, TOKEN_MIN_LENGTH, UNLIMITED_USES,
    ValidationReason,
)
from church_intake.core.errors import InvalidTokenParametersError
from church_intake.core.records import RegistrationToken


DEFAULT_TOKEN_LENGTH: int = 16
REGISTRATION_PATH: str = "/register/qr"

_TOKEN_FORMAT = re.compile(r"^[A-Za-z0-9]+$")


def generate_token_string(
    length: int = DEFAULT_TOKEN_LENGTH,
    choose: Callable[[str], str] = secrets.choice,
) -> str:
    """Fixed-length alphanumeric string from a CSPRNG (secrets.choice by default)."""
    if not TOKEN_MIN_LENGTH <= length <= TOKEN_MAX_LENGTH:
        raise ValueError(
            f"token length must be {TOKEN_MIN_LENGTH}-{TOKEN_MAX_LENGTH}, got {length}",
        )
    return "".join(choose(TOKEN_ALPHABET) for _ in range(length))


def is_valid_token_format(token: object) -> bool:
    """Alphanumeric only, TOKEN_MIN_LENGTH..TOKEN_MAX_LENGTH characters."""
    if not isinstance(token, str):
        return False
    return (
        TOKEN_MIN_LENGTH <= len(token) <= TOKEN_MAX_LENGTH
        and _TOKEN_FORMAT.match(token) is not None
    )


def check_issue_parameters(
    purpose: str,
    max_uses: int | None,
    expires_at: datetime | None,
    now: datetime,
) -> InvalidTokenParametersError | None:
    """Validate createToken arguments. Returns the first problem, or None."""
    if not purpose or not purpose.strip():
        return InvalidTokenParametersError(
            "purpose", "A purpose is required for every registration token",
        )
    if max_uses is not None and not (max_uses > 0 or max_uses == UNLIMITED_USES):
        return InvalidTokenParametersError(
            "max_uses",
            f"max_uses must be positive or {UNLIMITED_USES} (unlimited), got {max_uses}",
        )
    if expires_at is not None and expires_at <= now:
        return InvalidTokenParametersError(
            "expires_at", "expires_at must be in the future",
        )
    return None


def is_expired(token: RegistrationToken, now: datetime) -> bool:
    return token.expires_at is not None and now > token.expires_at


def is_exhausted(token: RegistrationToken) -> bool:
    return token.max_uses >= 0 and token.current_uses >= token.max_uses


def evaluate_token(
    token: RegistrationToken | None, now: datetime,
) -> ValidationReason | None:
    """Ordered validity checks. None means the token admits one more registration."""
    if token is None:
        return ValidationReason.NOT_FOUND
    if not token.is_active:
        return ValidationReason.INACTIVE
    if is_expired(token, now):
        return ValidationReason.EXPIRED
    if is_exhausted(token):
        return ValidationReason.EXHAUSTED
    return None


def build_registration_url(base_url: str, token: str) -> str:
    """<base>/register/qr?token=<token>. Token is alphanumeric, so no escaping happens."""
    return f"{base_url.rstrip('/')}{REGISTRATION_PATH}?{urlencode({'token': token})}"
