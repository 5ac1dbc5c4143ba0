"""Locate the best JSON candidate in arbitrary text.

Order of preference: a complete object span, a complete array span, then a
repaired object or array. Complete matches beat repaired ones, and objects
beat arrays, since model responses are overwhelmingly single objects.
"""

from collections.abc import Callable
import logging

from ..types import ExtractionDiagnostics
from .repair import repair_json
from .scanner import find_array_span, find_object_span

log = logging.getLogger(__name__)

_STRATEGIES: tuple[tuple[str, Callable[[str], str | None]], ...] = (
    ("object_span", find_object_span),
    ("array_span", find_array_span),
    ("repair", repair_json),
)


def extract_json(
    text: str | None, diagnostics: ExtractionDiagnostics | None = None
) -> str | None:
    """Return the first valid JSON candidate found in ``text``.

    Args:
        text: Raw model output.
        diagnostics: Optional trace that records each strategy tried.

    Returns:
        A JSON string accepted by the validator, or None.
    """
    if not text:
        return None

    for name, strategy in _STRATEGIES:
        if diagnostics:
            diagnostics.attempt(name)
        candidate = strategy(text)
        if candidate is not None:
            log.debug("JSON candidate found via %s (%d chars)", name, len(candidate))
            if diagnostics:
                diagnostics.succeed(name)
            return candidate

    log.debug("No JSON candidate found in %d chars of text", len(text))
    return None
