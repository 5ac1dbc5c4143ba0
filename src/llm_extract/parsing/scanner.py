"""Delimiter scanning for JSON embedded in free text.

The scanner walks the text once, counting nesting of one delimiter pair
while ignoring delimiters that sit inside string literals. It returns the
first complete balanced span, which is not necessarily the largest one when
the text holds several independent JSON blocks.
"""

import logging
import re

from .validation import is_valid_json

log = logging.getLogger(__name__)

# One level of nested delimiters; used only when the character scan fails.
_OBJECT_PATTERN = re.compile(r"\{(?:[^{}]|\{[^{}]*\})*\}", re.DOTALL)
_ARRAY_PATTERN = re.compile(r"\[(?:[^\[\]]|\[[^\[\]]*\])*\]", re.DOTALL)


def balanced_span(text: str, opener: str, closer: str) -> tuple[int, int] | None:
    """Locate the first balanced ``opener ... closer`` span.

    Args:
        text: Text to scan.
        opener: Opening delimiter, ``{`` or ``[``.
        closer: Matching closing delimiter.

    Returns:
        ``(first, last)`` inclusive indices, or None if the delimiters never
        rebalance.
    """
    first: int | None = None
    level = 0
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if ch == opener and not in_string:
            if first is None:
                first = i
            level += 1
        elif ch == closer and not in_string:
            # Closers before the first opener belong to surrounding prose.
            if first is not None:
                level -= 1
                if level == 0:
                    return first, i
        elif ch == '"' and not escaped:
            in_string = not in_string

        escaped = ch == "\\" and not escaped

    return None


def _find_span(text: str, opener: str, closer: str, pattern: re.Pattern[str]) -> str | None:
    if not text:
        return None

    span = balanced_span(text, opener, closer)
    if span is not None:
        candidate = text[span[0] : span[1] + 1]
        if is_valid_json(candidate):
            return candidate
        log.debug("Balanced %s span at %d is not valid JSON", opener, span[0])

    for match in pattern.finditer(text):
        candidate = match.group(0)
        if is_valid_json(candidate):
            log.debug("Regex fallback matched %s span at %d", opener, match.start())
            return candidate

    return None


def find_object_span(text: str) -> str | None:
    """Return the first valid JSON object embedded in ``text``."""
    return _find_span(text, "{", "}", _OBJECT_PATTERN)


def find_array_span(text: str) -> str | None:
    """Return the first valid JSON array embedded in ``text``."""
    return _find_span(text, "[", "]", _ARRAY_PATTERN)
