"""Registration Intake — accepts a visitor's form against a token.

Invariants:
    - The token is re-validated at submission; a link that was valid at form load may not be
    - Token usage increment and registration insert are one atomic conditional step
      (RegistrationStore.create_consuming_use): both happen or neither does
    - A token with max_uses = N admits at most N successful submissions, under any interleaving
    - Duplicate detection never blocks a submission (the API layer runs it afterwards)

Design Decisions:
    - Persistence failure is PersistFailed and is NOT retried here: the insert may
      have landed, and a blind retry could consume a second use
"""

import logging
import uuid
from collections.abc import Callable

from church_intake.core.domain_types import RegistrationId
from church_intake.core.errors import (
    ConcurrentExhaustionError, DatabaseError, ErrorContext, PersistFailedError,
    TokenValidationError,
)
from church_intake.core.outcome import Err, Ok, Outcome
from church_intake.core.records import RegistrationForm
from church_intake.core.registration_form import (
    build_pending_registration, check_required_fields,
)
from church_intake.core.repository_protocols import Clock, RegistrationStore
from church_intake.services.token_validator import TokenValidator

logger = logging.getLogger(__name__)


def _new_registration_id() -> RegistrationId:
    return RegistrationId(str(uuid.uuid4()))


class RegistrationIntake:

    def __init__(
        self,
        validator: TokenValidator,
        registrations: RegistrationStore,
        clock: Clock,
        id_factory: Callable[[], RegistrationId] = _new_registration_id,
    ):
        self._validator = validator
        self._registrations = registrations
        self._clock = clock
        self._id_factory = id_factory

    async def submit(
        self, token: str, form: RegistrationForm,
    ) -> Outcome[RegistrationId]:
        validation = await self._validator.validate(token)
        if not validation.valid:
            return Err(TokenValidationError(validation.reason))

        missing = check_required_fields(form)
        if missing:
            return Err(missing)

        token_id = validation.token.id
        now = self._clock()
        registration = build_pending_registration(
            self._id_factory(), token_id, form, now,
        )
        try:
            consumed = await self._registrations.create_consuming_use(registration, now)
        except DatabaseError as e:
            logger.error(
                f"Failed to persist registration: {e.message}",
                extra={
                    "registration_id": registration.id,
                    "token_id": token_id,
                    "error_code": "PERSIST_FAILED",
                },
            )
            return Err(PersistFailedError(
                e.message,
                ErrorContext(registration_id=registration.id, token_id=token_id),
            ))

        if not consumed:
            logger.info(
                "Token ran out of uses between validation and submission",
                extra={"token_id": token_id, "error_code": "CONCURRENT_EXHAUSTION"},
            )
            return Err(ConcurrentExhaustionError(token_id))

        logger.info("Registration submitted", extra={
            "registration_id": registration.id, "token_id": token_id,
        })
        return Ok(registration.id)
