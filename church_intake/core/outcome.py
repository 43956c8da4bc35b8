"""Typed Outcomes — Ok/Err results returned by services instead of raising.

Invariants:
    - Exactly one of Ok.value / Err.error is meaningful for any outcome
    - Err always carries an IntakeError (code + category for rendering)

Design Decisions:
    - Two frozen dataclasses over a tagged dict: callers narrow with isinstance()
      and the type checker follows (ADR: typed results at the core boundary)
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from church_intake.core.errors import IntakeError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: IntakeError

    @property
    def ok(self) -> bool:
        return False

    @property
    def code(self) -> str:
        return self.error.code


Outcome = Union[Ok[T], Err]
