"""Audit Rules — risk levels and redaction."""

import pytest

from church_intake.core.audit_rules import REDACTED, redact_details, risk_level_for
from church_intake.core.domain_types import AuditAction, AuditResult, RiskLevel


def test_successful_actions_keep_base_risk():
    assert risk_level_for(AuditAction.TOKEN_CREATED, AuditResult.SUCCESS) is RiskLevel.LOW
    assert risk_level_for(
        AuditAction.REGISTRATION_APPROVED, AuditResult.SUCCESS,
    ) is RiskLevel.MEDIUM


@pytest.mark.parametrize("action", list(AuditAction))
def test_denied_is_at_least_high(action):
    assert risk_level_for(action, AuditResult.DENIED) in (RiskLevel.HIGH, RiskLevel.CRITICAL)


def test_sensitive_keys_redacted():
    details = {"tokenString": "ABC", "api_key": "k", "password": "p", "ssn_last4": "1234",
               "reason": "duplicate"}
    redacted = redact_details(details)
    assert redacted["tokenString"] == REDACTED
    assert redacted["api_key"] == REDACTED
    assert redacted["password"] == REDACTED
    assert redacted["ssn_last4"] == REDACTED
    assert redacted["reason"] == "duplicate"


def test_redaction_does_not_mutate_input():
    details = {"secret": "s"}
    redact_details(details)
    assert details == {"secret": "s"}
