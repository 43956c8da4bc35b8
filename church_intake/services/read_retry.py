"""Read Retry — one automatic retry for pure reads that hit a storage error.

Invariants:
    - Only DatabaseError is retried, and only once; the second failure propagates
    - Never wrap a mutation with this: mutations are resubmitted by the caller, not here
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from church_intake.core.errors import DatabaseError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_READ_ATTEMPTS: int = 2


async def read_with_retry(read: Callable[[], Awaitable[T]], what: str) -> T:
    """Run read(); on DatabaseError retry once, then let the error through."""
    for attempt in range(MAX_READ_ATTEMPTS):
        try:
            return await read()
        except DatabaseError as e:
            if attempt + 1 >= MAX_READ_ATTEMPTS:
                raise
            logger.warning(
                f"Transient storage error reading {what}, retrying: {e.message}",
                extra={"error_code": e.code},
            )
    raise AssertionError("unreachable")
