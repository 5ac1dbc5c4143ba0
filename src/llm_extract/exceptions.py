"""Exception hierarchy for llm_extract.

Parse and shape failures are normally reported as an absent result; these
classes exist so callers that prefer raising (``extract_or_raise``,
``ExtractionResult.unwrap``) get a typed error kind instead of a generic one.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Why an extraction produced no value."""

    NO_CANDIDATE = "no_candidate_found"
    MALFORMED_AFTER_REPAIR = "malformed_after_repair"
    SHAPE_MISMATCH = "shape_mismatch"
    DESERIALIZATION_FAULT = "deserialization_fault"


class LLMExtractError(Exception):
    """Base exception for llm_extract errors"""


class ExtractionError(LLMExtractError):
    """Raised when no typed value could be produced from the text"""

    kind: FailureKind

    def __init__(self, message: str, *, raw_text: str | None = None) -> None:
        self.message = message
        self.raw_text = raw_text
        super().__init__(message)


class NoCandidateFoundError(ExtractionError):
    """Raised when the text holds nothing that looks like the requested value"""

    kind = FailureKind.NO_CANDIDATE


class MalformedAfterRepairError(ExtractionError):
    """Raised when delimiters exist but no repair produced valid JSON"""

    kind = FailureKind.MALFORMED_AFTER_REPAIR


class ShapeMismatchError(ExtractionError):
    """Raised when valid JSON does not fit the requested shape"""

    kind = FailureKind.SHAPE_MISMATCH


class DeserializationFaultError(ExtractionError):
    """Raised when the JSON deserializer fails for reasons other than shape"""

    kind = FailureKind.DESERIALIZATION_FAULT


class ConfigurationError(LLMExtractError):
    """Raised when settings fail validation"""


_ERRORS_BY_KIND: dict[FailureKind, type[ExtractionError]] = {
    cls.kind: cls
    for cls in (
        NoCandidateFoundError,
        MalformedAfterRepairError,
        ShapeMismatchError,
        DeserializationFaultError,
    )
}


def error_for_kind(
    kind: FailureKind, message: str, *, raw_text: str | None = None
) -> ExtractionError:
    """Build the exception matching a failure kind."""
    return _ERRORS_BY_KIND[kind](message, raw_text=raw_text)
