"""
JSON location, repair and validation for noisy model output
"""

from .extraction import extract_json
from .repair import (
    quote_bare_keys,
    repair_array,
    repair_json,
    repair_object,
    strip_trailing_commas,
    try_alternative_repairs,
)
from .scanner import balanced_span, find_array_span, find_object_span
from .validation import is_valid_json, parse_json

__all__ = [
    "balanced_span",
    "extract_json",
    "find_array_span",
    "find_object_span",
    "is_valid_json",
    "parse_json",
    "quote_bare_keys",
    "repair_array",
    "repair_json",
    "repair_object",
    "strip_trailing_commas",
    "try_alternative_repairs",
]
