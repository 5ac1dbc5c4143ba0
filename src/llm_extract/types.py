"""Result containers shared by the extraction and coercion layers.

Extraction results are immutable once produced. Diagnostics are the one
mutable record: a caller passes an ``ExtractionDiagnostics`` in and the
pipeline appends to it as strategies are tried.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
import typing

from .exceptions import ExtractionError, FailureKind, error_for_kind

# --- Result pair for internal handlers ---
# Handlers return Success or Failure instead of raising, so the only
# try/except blocks are around the operations that are expected to fail.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success(typing.Generic[TSuccess]):
    """A successful step, carrying the produced value."""

    value: TSuccess
    method: str = ""
    matched: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class Failure(typing.Generic[TFailure]):
    """A failed step, carrying the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]


class Absent(Enum):
    """Sentinel type for "no result"."""

    ABSENT = "absent"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: typing.Final = Absent.ABSENT


@dataclasses.dataclass
class ExtractionDiagnostics:
    """Optional per-call trace of which strategies ran."""

    attempted: list[str] = dataclasses.field(default_factory=list)
    successful: str | None = None
    errors: dict[str, str] = dataclasses.field(default_factory=dict)
    flags: set[str] = dataclasses.field(default_factory=set)

    def attempt(self, name: str) -> None:
        self.attempted.append(name)

    def succeed(self, name: str) -> None:
        self.successful = name

    def fail(self, name: str, message: str) -> None:
        self.errors[name] = message


@dataclasses.dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Terminal outcome of one extraction call.

    Attributes:
        value: The coerced value, or ``ABSENT`` on failure.
        raw_text: The text the caller passed in, kept for auditing.
        candidate: The JSON (or scalar) text the value was built from.
        method: Name of the strategy that produced the value.
        failure: Failure kind when no value was produced.
        errors: Human-readable failure messages.
    """

    value: typing.Any
    raw_text: str | None
    candidate: str | None = None
    method: str | None = None
    failure: FailureKind | None = None
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> typing.Any:
        """Return the value or raise the typed error for the failure."""
        if self.failure is None:
            return self.value
        message = "; ".join(self.errors) or self.failure.value
        raise error_for_kind(self.failure, message, raw_text=self.raw_text)

    @classmethod
    def from_error(
        cls, error: ExtractionError, raw_text: str | None
    ) -> ExtractionResult:
        return cls(
            value=ABSENT,
            raw_text=raw_text,
            failure=error.kind,
            errors=(error.message,),
        )
