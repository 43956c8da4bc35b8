"""Audit Recorder — builds, redacts and writes audit entries with an explicit failure policy.

Invariants:
    - Every entry is redacted (core/audit_rules.redact_details) before it reaches the sink
    - required=True (denials): a failed write raises AuditWriteError, so no denial reaches
      the caller without its audit entry
    - required=False (committed transitions): a failed write is logged at CRITICAL with the
      full entry and the already-committed operation still succeeds
    - HIGH/CRITICAL entries are mirrored to the application log at WARNING

Design Decisions:
    - Audit and state writes are not transactional: the state write is authoritative and
      commits first (ADR: audit sink may be a different store than the registrations)
"""

import logging
from datetime import datetime

from church_intake.core.audit_rules import redact_details, risk_level_for
from church_intake.core.domain_types import (
    ActorId, AuditAction, AuditResult, RiskLevel,
)
from church_intake.core.errors import AuditWriteError, ErrorContext
from church_intake.core.records import AuditEntry
from church_intake.core.repository_protocols import AuditSink, Clock

logger = logging.getLogger(__name__)

_MIRRORED_LEVELS = (RiskLevel.HIGH, RiskLevel.CRITICAL)


class AuditRecorder:
    """Writes audit entries to an AuditSink."""

    def __init__(self, sink: AuditSink, clock: Clock):
        self._sink = sink
        self._clock = clock

    def build(
        self,
        actor_id: ActorId,
        action: AuditAction,
        target_id: str,
        result: AuditResult,
        details: dict | None = None,
        now: datetime | None = None,
    ) -> AuditEntry:
        return AuditEntry(
            actor_id=actor_id,
            action=action,
            target_id=target_id,
            result=result,
            risk_level=risk_level_for(action, result),
            occurred_at=now or self._clock(),
            details=redact_details(details or {}),
        )

    async def record(
        self,
        actor_id: ActorId,
        action: AuditAction,
        target_id: str,
        result: AuditResult,
        details: dict | None = None,
        required: bool = False,
    ) -> AuditEntry:
        entry = self.build(actor_id, action, target_id, result, details)
        if entry.risk_level in _MIRRORED_LEVELS:
            logger.warning(
                f"[SECURITY AUDIT {entry.risk_level.value}] {action.value} "
                f"on {target_id}: {result.value}",
                extra={
                    "actor_id": actor_id,
                    "audit_action": action.value,
                    "risk_level": entry.risk_level.value,
                },
            )
        try:
            await self._sink.append(entry)
        except Exception as e:
            logger.critical(
                f"Audit logging failed for {action.value} on {target_id}: {e}; "
                f"entry={entry}",
                exc_info=True,
                extra={"actor_id": actor_id, "audit_action": action.value},
            )
            if required:
                raise AuditWriteError(
                    action.value, ErrorContext(actor_id=actor_id),
                ) from e
        return entry
