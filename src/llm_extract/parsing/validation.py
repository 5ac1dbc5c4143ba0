"""JSON validity checks.

Everything downstream only trusts text that passes ``is_valid_json``.
"""

import json
from typing import Any


def _reject_constant(name: str) -> Any:
    # json accepts NaN/Infinity by default; strict JSON does not.
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_json(candidate: str) -> Any:
    """Parse strict JSON, raising ``ValueError`` on any syntax problem."""
    return json.loads(candidate, parse_constant=_reject_constant)


def is_valid_json(candidate: str | None) -> bool:
    """Return True if ``candidate`` parses as strict JSON."""
    if not candidate:
        return False
    try:
        parse_json(candidate)
    except (ValueError, RecursionError):
        return False
    return True
