"""Public entry points.

``extract_typed`` and ``describe_shape`` are the two calls an orchestrator
needs: one after receiving a completion, one before sending a prompt. The
remaining helpers cover the looser "give me whatever JSON is there" cases.
"""

import json
from typing import Any

from .coercion import Coercer
from .config import ExtractSettings
from .describe import describe_shape
from .parsing import extract_json, parse_json
from .types import ABSENT, ExtractionDiagnostics, ExtractionResult


def extract_result(
    raw_text: str | None,
    shape: Any,
    *,
    settings: ExtractSettings | None = None,
    diagnostics: ExtractionDiagnostics | None = None,
) -> ExtractionResult:
    """Coerce model output into ``shape``, keeping the raw text for audit."""
    return Coercer(settings).coerce_result(raw_text, shape, diagnostics)


def extract_typed(
    raw_text: str | None, shape: Any, *, settings: ExtractSettings | None = None
) -> Any:
    """Coerce model output into ``shape``.

    Args:
        raw_text: The completion text.
        shape: A shape or Python annotation (``int``, ``list[str]``, a
            pydantic model, ...).
        settings: Optional settings; defaults come from ``resolve_settings``.

    Returns:
        The typed value, or ``ABSENT`` if nothing usable was found.
    """
    return extract_result(raw_text, shape, settings=settings).value


def extract_or_raise(
    raw_text: str | None, shape: Any, *, settings: ExtractSettings | None = None
) -> Any:
    """Like ``extract_typed`` but raises the typed ``ExtractionError`` subclass."""
    return extract_result(raw_text, shape, settings=settings).unwrap()


def try_extract(
    raw_text: str | None, shape: Any, *, settings: ExtractSettings | None = None
) -> tuple[bool, Any]:
    """Return ``(True, value)`` on success and ``(False, ABSENT)`` otherwise."""
    result = extract_result(raw_text, shape, settings=settings)
    return result.ok, result.value


def extract_json_value(raw_text: str | None) -> Any:
    """Parse the best JSON candidate in the text into plain Python data."""
    candidate = extract_json(raw_text)
    if candidate is None:
        return ABSENT
    return parse_json(candidate)


def _render(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def extract_dictionary(raw_text: str | None) -> dict[str, str] | None:
    """Flatten the best JSON candidate into a string-to-string mapping.

    Objects keep their keys; arrays are keyed by element index. Non-string
    values are rendered as compact JSON.
    """
    data = extract_json_value(raw_text)
    if isinstance(data, dict):
        return {key: _render(value) for key, value in data.items()}
    if isinstance(data, list):
        return {str(i): _render(value) for i, value in enumerate(data)}
    return None


__all__ = [
    "describe_shape",
    "extract_dictionary",
    "extract_json",
    "extract_json_value",
    "extract_or_raise",
    "extract_result",
    "extract_typed",
    "try_extract",
]
