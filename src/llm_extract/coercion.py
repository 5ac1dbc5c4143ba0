"""Type-directed coercion of model output.

The coercer turns raw text into a value of a requested shape. Each shape has
its own handler, chosen by one ``match`` on the shape:

- numbers: a ``Value:`` label, then any ``: <digits>``, then the first bare
  number anywhere in the text
- booleans: a ``Boolean:`` label, then the literals ``true``/``false``
  (``true`` wins when both occur)
- strings: a ``String: "..."`` label, then the first quoted substring
  (verbatim, escapes untouched), then the text after the last colon on a line
- sequences: the first balanced ``[...]`` in the raw text, then the generic
  extractor's candidate trimmed to its first ``[``
- records: the generic extractor's candidate trimmed to its first ``{``
- anything else: the generic extractor's candidate, deserialized directly

Scalar heuristics build the value straight from the matched text; the other
paths go through the JSON parser and pydantic validation. Handlers return
``Success``/``Failure`` and the public entry points turn a failure into the
``ABSENT`` sentinel, so parse and shape errors never reach the caller.
"""

from collections.abc import Callable
import logging
import re
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .config import ExtractSettings, resolve_settings
from .exceptions import (
    DeserializationFaultError,
    ExtractionError,
    MalformedAfterRepairError,
    NoCandidateFoundError,
    ShapeMismatchError,
)
from .parsing import extract_json, find_array_span, parse_json
from .shapes import (
    BooleanShape,
    FloatShape,
    IntegerShape,
    JsonShape,
    RecordShape,
    SequenceShape,
    Shape,
    StringShape,
    shape_for,
)
from .types import ExtractionDiagnostics, ExtractionResult, Failure, Result, Success

log = logging.getLogger(__name__)

# Labels used by fixture-style prompts ("Value: 42", "Boolean: true", ...).
NUMBER_LABEL = "Value"
BOOLEAN_LABEL = "Boolean"
STRING_LABEL = "String"

_INTEGER = r"-?\d+"
_FLOAT = r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?"

_TRUE = re.compile(r"\btrue\b", re.IGNORECASE)
_FALSE = re.compile(r"\bfalse\b", re.IGNORECASE)
_QUOTED = re.compile(r'"(.*?)"')

Outcome = Result[Any, ExtractionError]


def _number_patterns(token: str, *, labeled: bool) -> list[tuple[str, re.Pattern[str]]]:
    patterns = [
        ("colon_pattern", re.compile(rf":\s*({token})")),
        ("bare_token", re.compile(rf"(?<![\w.-])({token})\b")),
    ]
    if labeled:
        patterns.insert(
            0, ("label_pattern", re.compile(rf"{NUMBER_LABEL}:\s*({token})"))
        )
    return patterns


def _trim_to(candidate: str, opener: str) -> str:
    """Cut ``candidate`` at its first ``opener`` unless it already starts there."""
    if not candidate.lstrip().startswith(opener):
        index = candidate.find(opener)
        if index >= 0:
            return candidate[index:]
    return candidate


def _missing_candidate(text: str) -> ExtractionError:
    if "{" in text or "[" in text:
        return MalformedAfterRepairError(
            "Found JSON delimiters but no repair produced valid JSON"
        )
    return NoCandidateFoundError("No JSON object or array found in text")


def match_field_names(data: Any, shape: Shape) -> Any:
    """Rename object keys that match declared field names ignoring case.

    Exact matches win over case-insensitive ones; unknown keys pass through.
    """
    if isinstance(shape, SequenceShape) and isinstance(data, list):
        return [match_field_names(item, shape.item) for item in data]
    if not (isinstance(shape, RecordShape) and isinstance(data, dict)):
        return data
    shape = shape.resolve()

    specs = {spec.name: spec for spec in shape.fields}
    by_lower = {name.lower(): spec for name, spec in specs.items()}
    matched: dict[Any, Any] = {}
    for key, value in data.items():
        if key in specs:
            matched[key] = match_field_names(value, specs[key].shape)
    for key, value in data.items():
        if key in specs:
            continue
        spec = by_lower.get(key.lower()) if isinstance(key, str) else None
        if spec is None:
            matched.setdefault(key, value)
        elif spec.name not in matched:
            matched[spec.name] = match_field_names(value, spec.shape)
    return matched


class Coercer:
    """Coerces raw model output into values of a target shape.

    Attributes:
        settings: Extraction settings; defaults come from ``resolve_settings``.
    """

    def __init__(self, settings: ExtractSettings | None = None) -> None:
        if settings is None:
            settings = resolve_settings().settings
        self.settings = settings

    def coerce(self, text: str | None, shape: Any) -> Any:
        """Return the coerced value, or ``ABSENT``."""
        return self.coerce_result(text, shape).value

    def coerce_result(
        self,
        text: str | None,
        shape: Any,
        diagnostics: ExtractionDiagnostics | None = None,
    ) -> ExtractionResult:
        """Coerce ``text`` into ``shape`` and report how it went.

        Args:
            text: Raw model output.
            shape: A shape, or a Python annotation accepted by ``shape_for``.
            diagnostics: Optional trace of the strategies tried.

        Returns:
            An ``ExtractionResult``; on failure its value is ``ABSENT`` and
            ``failure`` names the kind.
        """
        target = shape_for(shape)
        if not text:
            return ExtractionResult.from_error(
                NoCandidateFoundError("Empty input"), text
            )

        working = self._limit(text, diagnostics)
        outcome = self._dispatch(working, target, diagnostics)

        match outcome:
            case Success(value=value, method=method, matched=matched):
                log.debug("Coerced %s via %s", type(target).__name__, method)
                return ExtractionResult(
                    value=value, raw_text=text, candidate=matched, method=method
                )
            case Failure(error=error):
                log.debug(
                    "Coercion to %s failed (%s): %s",
                    type(target).__name__,
                    error.kind.value,
                    error.message,
                )
                if diagnostics:
                    diagnostics.fail(type(target).__name__, error.message)
                return ExtractionResult.from_error(error, text)

    def _dispatch(
        self, text: str, shape: Shape, diagnostics: ExtractionDiagnostics | None
    ) -> Outcome:
        match shape:
            case IntegerShape():
                return self._coerce_number(text, _INTEGER, int)
            case FloatShape():
                return self._coerce_number(text, _FLOAT, float)
            case BooleanShape():
                return self._coerce_boolean(text)
            case StringShape():
                return self._coerce_string(text, shape)
            case SequenceShape():
                return self._coerce_sequence(text, shape, diagnostics)
            case RecordShape():
                return self._coerce_record(text, shape, diagnostics)
            case JsonShape():
                return self._coerce_default(text, shape, diagnostics)
        raise TypeError(f"Unsupported target shape: {shape!r}")

    def _limit(self, text: str, diagnostics: ExtractionDiagnostics | None) -> str:
        limit = self.settings.max_text_size
        if len(text) <= limit:
            return text
        log.warning("Input of %d chars truncated to %d", len(text), limit)
        if diagnostics:
            diagnostics.flags.add("truncated_input")
        return text[:limit]

    # --- Scalar handlers ---

    def _coerce_number(
        self, text: str, token: str, convert: Callable[[str], Any]
    ) -> Outcome:
        labeled = self.settings.enable_label_patterns
        for method, pattern in _number_patterns(token, labeled=labeled):
            match = pattern.search(text)
            if match:
                return Success(convert(match.group(1)), method, match.group(1))
        return Failure(NoCandidateFoundError("No number found in text"))

    def _coerce_boolean(self, text: str) -> Outcome:
        if self.settings.enable_label_patterns:
            labeled = re.search(
                rf"{BOOLEAN_LABEL}:\s*(true|false)\b", text, re.IGNORECASE
            )
            if labeled:
                literal = labeled.group(1)
                return Success(literal.lower() == "true", "label_pattern", literal)

        if match := _TRUE.search(text):
            return Success(True, "literal_scan", match.group(0))
        if match := _FALSE.search(text):
            return Success(False, "literal_scan", match.group(0))
        return Failure(NoCandidateFoundError("No boolean literal found in text"))

    def _coerce_string(self, text: str, shape: StringShape) -> Outcome:
        found = self._find_string(text, keep_colons=shape.format is not None)
        if found is None:
            return Failure(NoCandidateFoundError("No string value found in text"))

        value, method = found
        if shape.format is None:
            return Success(value, method, value)
        try:
            parsed = TypeAdapter(shape.annotation()).validate_python(value)
        except ValidationError as e:
            return Failure(
                ShapeMismatchError(f"{value!r} is not a valid {shape.format}: {e}")
            )
        return Success(parsed, method, value)

    def _find_string(self, text: str, *, keep_colons: bool) -> tuple[str, str] | None:
        if self.settings.enable_label_patterns:
            labeled = re.search(rf'{STRING_LABEL}:\s*"(.*?)"', text)
            if labeled:
                return labeled.group(1), "label_pattern"

        quoted = _QUOTED.search(text)
        if quoted:
            return quoted.group(1), "quoted_text"

        for line in text.splitlines():
            if ":" not in line:
                continue
            # Datetimes and the like contain colons of their own.
            if keep_colons:
                tail = line.split(":", 1)[1].strip()
            else:
                tail = line.rsplit(":", 1)[1].strip()
            if tail:
                return tail, "colon_text"
        return None

    # --- JSON handlers ---

    def _coerce_sequence(
        self,
        text: str,
        shape: SequenceShape,
        diagnostics: ExtractionDiagnostics | None,
    ) -> Outcome:
        candidate = find_array_span(text)
        method = "array_span"
        if candidate is None:
            extracted = extract_json(text, diagnostics)
            if extracted is None:
                return Failure(_missing_candidate(text))
            candidate = _trim_to(extracted, "[")
            method = "extracted_json"

        if not candidate.lstrip().startswith("["):
            return Failure(
                ShapeMismatchError(f"Expected a JSON array, found {candidate[:40]!r}")
            )
        return self._deserialize(candidate, shape, method)

    def _coerce_record(
        self,
        text: str,
        shape: RecordShape,
        diagnostics: ExtractionDiagnostics | None,
    ) -> Outcome:
        extracted = extract_json(text, diagnostics)
        if extracted is None:
            return Failure(_missing_candidate(text))

        candidate = _trim_to(extracted, "{")
        if not candidate.lstrip().startswith("{"):
            return Failure(
                ShapeMismatchError(f"Expected a JSON object, found {candidate[:40]!r}")
            )
        return self._deserialize(candidate, shape, "extracted_json")

    def _coerce_default(
        self,
        text: str,
        shape: JsonShape,
        diagnostics: ExtractionDiagnostics | None,
    ) -> Outcome:
        extracted = extract_json(text, diagnostics)
        if extracted is None:
            return Failure(_missing_candidate(text))
        return self._deserialize(extracted, shape, "extracted_json")

    def _deserialize(self, candidate: str, shape: Shape, method: str) -> Outcome:
        # Built outside the guarded region: an unusable annotation is a
        # programming error, not a parse failure.
        adapter = TypeAdapter(shape.annotation())

        try:
            data = parse_json(candidate)
        except (ValueError, RecursionError) as e:
            return Failure(DeserializationFaultError(f"Invalid JSON candidate: {e}"))

        if self.settings.case_insensitive_fields:
            data = match_field_names(data, shape)

        try:
            value = adapter.validate_python(data)
        except ValidationError as e:
            return Failure(
                ShapeMismatchError(
                    f"JSON does not match {type(shape).__name__}: "
                    f"{e.error_count()} validation error(s)"
                )
            )
        return Success(value, method, candidate)


def coerce(
    text: str | None, shape: Any, *, settings: ExtractSettings | None = None
) -> Any:
    """Coerce ``text`` into ``shape``; returns ``ABSENT`` on failure."""
    return Coercer(settings).coerce(text, shape)
