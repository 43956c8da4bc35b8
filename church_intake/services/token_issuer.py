"""Token Issuer — mints, deactivates and expires registration tokens.

Invariants:
    - create_token validates parameters before any store call (no side effect on bad input)
    - Token strings come from a CSPRNG; a store-level collision triggers a fresh string,
      at most max_attempts times, then GenerationExhaustedError
    - A token is deactivated at most once: the store's conditional update decides, and a
      second attempt is reported as AlreadyProcessed and audited as DENIED
    - Tokens are never deleted

Design Decisions:
    - Generator injected (defaults to core.token_rules.generate_token_string) so collision
      retries can be exercised deterministically
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from church_intake.core.clock import as_utc
from church_intake.core.domain_types import (
    ActorId, AuditAction, AuditResult, TokenId, UNLIMITED_USES,
)
from church_intake.core.errors import (
    AlreadyProcessedError, ErrorContext, GenerationExhaustedError,
    ResourceNotFoundError,
)
from church_intake.core.outcome import Err, Ok, Outcome
from church_intake.core.records import RegistrationToken, TokenMetadata
from church_intake.core.repository_protocols import Clock, TokenStore
from church_intake.core.token_rules import (
    DEFAULT_TOKEN_LENGTH, build_registration_url, check_issue_parameters,
    generate_token_string,
)
from church_intake.services.audit_recorder import AuditRecorder
from church_intake.services.read_retry import read_with_retry

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS: int = 10


class TokenIssuer:
    """Creates and retires registration tokens."""

    def __init__(
        self,
        store: TokenStore,
        audit: AuditRecorder,
        clock: Clock,
        base_url: str,
        token_length: int = DEFAULT_TOKEN_LENGTH,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        generate: Callable[[int], str] = generate_token_string,
    ):
        self._store = store
        self._audit = audit
        self._clock = clock
        self._base_url = base_url
        self._token_length = token_length
        self._max_attempts = max_attempts
        self._generate = generate

    async def create_token(
        self,
        created_by: ActorId,
        purpose: str,
        expires_at: datetime | None = None,
        max_uses: int | None = None,
        notes: str | None = None,
        event_date: datetime | None = None,
        location: str | None = None,
    ) -> Outcome[RegistrationToken]:
        """Mint a token. max_uses=None means unlimited."""
        now = self._clock()
        expires_at = as_utc(expires_at)
        problem = check_issue_parameters(purpose, max_uses, expires_at, now)
        if problem:
            return Err(problem)

        metadata = TokenMetadata(
            purpose=purpose.strip(),
            notes=notes or None,
            event_date=as_utc(event_date),
            location=location or None,
        )
        for attempt in range(1, self._max_attempts + 1):
            candidate = RegistrationToken(
                id=TokenId(str(uuid.uuid4())),
                token=self._generate(self._token_length),
                created_by=created_by,
                created_at=now,
                expires_at=expires_at,
                max_uses=UNLIMITED_USES if max_uses is None else max_uses,
                current_uses=0,
                is_active=True,
                metadata=metadata,
            )
            if await self._store.insert_if_unique(candidate):
                logger.info(
                    f"Registration token created for '{metadata.purpose}' "
                    f"(attempt {attempt})",
                    extra={"token_id": candidate.id, "actor_id": created_by},
                )
                await self._audit.record(
                    created_by, AuditAction.TOKEN_CREATED, candidate.id,
                    AuditResult.SUCCESS,
                    {"purpose": metadata.purpose, "max_uses": candidate.max_uses},
                )
                return Ok(candidate)

        logger.error(
            f"Token generation exhausted after {self._max_attempts} attempts",
            extra={"actor_id": created_by, "error_code": "GENERATION_EXHAUSTED"},
        )
        return Err(GenerationExhaustedError(
            self._max_attempts, ErrorContext(actor_id=created_by),
        ))

    def registration_url(self, token: str) -> str:
        return build_registration_url(self._base_url, token)

    async def deactivate(
        self, token_id: TokenId, actor_id: ActorId,
    ) -> Outcome[RegistrationToken]:
        token = await read_with_retry(
            lambda: self._store.get(token_id), "registration token",
        )
        if token is None:
            return Err(ResourceNotFoundError(
                "Registration token", token_id, ErrorContext(token_id=token_id),
            ))

        if not await self._store.deactivate(token_id):
            await self._audit.record(
                actor_id, AuditAction.TOKEN_DEACTIVATED, token_id,
                AuditResult.DENIED, {"current_state": "inactive"}, required=True,
            )
            return Err(AlreadyProcessedError(
                token_id, "inactive", ErrorContext(token_id=token_id, actor_id=actor_id),
            ))

        logger.info("Registration token deactivated", extra={
            "token_id": token_id, "actor_id": actor_id,
        })
        await self._audit.record(
            actor_id, AuditAction.TOKEN_DEACTIVATED, token_id, AuditResult.SUCCESS,
            {"purpose": token.metadata.purpose, "uses": token.current_uses},
        )
        return Ok(replace(token, is_active=False))

    async def cleanup_expired(self, actor_id: ActorId) -> int:
        """Deactivate every active token past its expiry. Returns how many changed."""
        now = self._clock()
        expired = await read_with_retry(
            lambda: self._store.list_expired_active(now), "expired tokens",
        )
        cleaned = 0
        for token in expired:
            if await self._store.deactivate(token.id):
                cleaned += 1
                await self._audit.record(
                    actor_id, AuditAction.TOKEN_DEACTIVATED, token.id,
                    AuditResult.SUCCESS,
                    {"purpose": token.metadata.purpose, "cause": "expired"},
                )
        logger.info(f"Cleaned up {cleaned} expired tokens", extra={"actor_id": actor_id})
        return cleaned

    async def list_active(self) -> list[RegistrationToken]:
        return await read_with_retry(self._store.list_active, "active tokens")

    async def list_by_creator(self, created_by: ActorId) -> list[RegistrationToken]:
        return await read_with_retry(
            lambda: self._store.list_by_creator(created_by), "tokens by creator",
        )
