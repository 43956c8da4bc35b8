"""Token Validator — read-only gate used at form load and again at submission.

Invariants:
    - validate never writes: repeated calls on the same token observe the same store state
    - Malformed strings are INVALID_FORMAT without touching the store
    - Well-formed unknown strings are NOT_FOUND, never an exception
    - Remaining checks follow core.token_rules.evaluate_token order
"""

from church_intake.core.domain_types import ValidationReason
from church_intake.core.records import TokenValidation
from church_intake.core.repository_protocols import Clock, TokenStore
from church_intake.core.token_rules import evaluate_token, is_valid_token_format
from church_intake.services.read_retry import read_with_retry


class TokenValidator:

    def __init__(self, store: TokenStore, clock: Clock):
        self._store = store
        self._clock = clock

    async def validate(self, token: str) -> TokenValidation:
        if not is_valid_token_format(token):
            return TokenValidation(valid=False, reason=ValidationReason.INVALID_FORMAT)

        found = await read_with_retry(
            lambda: self._store.find_by_token(token), "registration token",
        )
        reason = evaluate_token(found, self._clock())
        return TokenValidation(valid=reason is None, reason=reason, token=found)
