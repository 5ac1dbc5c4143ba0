"""Structural repair of truncated or slightly malformed JSON.

Repairs are single-pass and tried in a fixed order; the first variant that
validates is returned. A candidate needing several different fixes at once
is reported as unrepairable.
"""

import logging
import re

from .validation import is_valid_json

log = logging.getLogger(__name__)

_TRAILING_COMMA_OBJECT = re.compile(r",\s*}")
_TRAILING_COMMA_ARRAY = re.compile(r",\s*\]")
# A bareword key directly after an opening brace or a comma.
_BARE_KEY = re.compile(r"([{,]\s*)([A-Za-z_$][\w$-]*)(\s*:)")


def strip_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing brace or bracket."""
    text = _TRAILING_COMMA_OBJECT.sub("}", text)
    return _TRAILING_COMMA_ARRAY.sub("]", text)


def quote_bare_keys(text: str) -> str:
    """Wrap unquoted object keys in double quotes."""
    return _BARE_KEY.sub(r'\1"\2"\3', text)


def try_alternative_repairs(text: str) -> str | None:
    """Apply each textual repair on its own and return the first valid result."""
    if not text:
        return None

    for name, fix in (
        ("trailing_commas", strip_trailing_commas),
        ("bare_keys", quote_bare_keys),
    ):
        fixed = fix(text)
        if fixed != text and is_valid_json(fixed):
            log.debug("Repaired JSON with %s", name)
            return fixed

    return None


def _repair_delimited(text: str, opener: str, closer: str) -> str | None:
    start = text.find(opener)
    if start == -1:
        return None

    potential = text[start:]
    depth = 0
    in_string = False
    escaped = False
    first_balanced: str | None = None

    for i, ch in enumerate(potential):
        if ch == '"' and not escaped:
            in_string = not in_string
        elif not in_string:
            if ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    candidate = potential[: i + 1]
                    if is_valid_json(candidate):
                        return candidate
                    if first_balanced is None:
                        first_balanced = candidate

        escaped = ch == "\\" and not escaped

    # Truncated output: close whatever is still open.
    if depth > 0:
        closed = potential + closer * depth
        if is_valid_json(closed):
            log.debug("Closed %d unbalanced %s delimiter(s)", depth, opener)
            return closed

    return try_alternative_repairs(first_balanced or potential)


def repair_object(text: str) -> str | None:
    """Recover a JSON object starting at the first ``{`` in ``text``."""
    return _repair_delimited(text, "{", "}")


def repair_array(text: str) -> str | None:
    """Recover a JSON array starting at the first ``[`` in ``text``."""
    return _repair_delimited(text, "[", "]")


def repair_json(text: str) -> str | None:
    """Attempt object repair, then array repair.

    Returns:
        Repaired JSON text, or None if no single repair produced valid JSON.
        Text that is already valid and balanced is returned unchanged.
    """
    if not text:
        return None
    return repair_object(text) or repair_array(text)
