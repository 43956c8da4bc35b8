"""Audit Rules — risk classification and detail redaction for audit entries.

Invariants:
    - Denied attempts are always HIGH risk or above
    - Detail keys containing a sensitive fragment are replaced by REDACTED before storage
    - redact_details never mutates its input

Design Decisions:
    - Fragment match on lower-cased keys: catches "tokenString", "api_key", "ssn_last4"
"""

from church_intake.core.domain_types import AuditAction, AuditResult, RiskLevel


REDACTED: str = "[REDACTED]"
SENSITIVE_KEY_FRAGMENTS: tuple[str, ...] = ("password", "token", "secret", "key", "ssn")

_BASE_RISK = {
    AuditAction.TOKEN_CREATED: RiskLevel.LOW,
    AuditAction.TOKEN_DEACTIVATED: RiskLevel.MEDIUM,
    AuditAction.REGISTRATION_APPROVED: RiskLevel.MEDIUM,
    AuditAction.REGISTRATION_REJECTED: RiskLevel.LOW,
    AuditAction.UNAUTHORIZED_ACCESS: RiskLevel.HIGH,
}


def risk_level_for(action: AuditAction, result: AuditResult) -> RiskLevel:
    base = _BASE_RISK[action]
    if result is AuditResult.DENIED and base in (RiskLevel.LOW, RiskLevel.MEDIUM):
        return RiskLevel.HIGH
    return base


def redact_details(details: dict) -> dict:
    redacted = {}
    for key, value in details.items():
        lowered = str(key).lower()
        if any(fragment in lowered for fragment in SENSITIVE_KEY_FRAGMENTS):
            redacted[key] = REDACTED
        else:
            redacted[key] = value
    return redacted
