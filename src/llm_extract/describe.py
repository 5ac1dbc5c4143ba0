"""Prompt guidance describing a target shape.

Renders a markdown document listing each field's type, description and
constraints, an example payload, and the formatting rules the model should
follow. The output is advisory text for prompts, not a validated schema.
"""

import logging
from typing import Any

from pydantic import TypeAdapter

from .config import ExtractSettings, resolve_settings
from .shapes import (
    BooleanShape,
    FieldSpec,
    FloatShape,
    IntegerShape,
    RecordShape,
    SequenceShape,
    Shape,
    StringShape,
    shape_for,
)

log = logging.getLogger(__name__)

EXAMPLE_DATETIME = "2023-06-15T10:30:00"
EXAMPLE_UUID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"
SKELETON_UUID = "00000000-0000-0000-0000-000000000000"
EXAMPLE_ARRAY_LENGTH = 2

GENERATION_REQUIREMENTS = (
    "JSON must use standard format, keys must be enclosed in double quotes",
    "All required fields must have valid values",
    "Date format should use ISO 8601: YYYY-MM-DDThh:mm:ss",
    "Special characters in strings must be properly escaped",
    "Numbers should not be enclosed in quotes",
    "Boolean values use true/false, without quotes",
    "Arrays are represented with square brackets []",
    "Nested objects are represented with curly braces {}",
)


def placeholder_value(shape: Shape) -> Any:
    """Build a JSON-compatible example value for ``shape``."""
    match shape:
        case IntegerShape():
            return 42
        case FloatShape():
            return 42.5
        case BooleanShape():
            return True
        case StringShape(format="datetime"):
            return EXAMPLE_DATETIME
        case StringShape(format="uuid"):
            return EXAMPLE_UUID
        case StringShape():
            return "example text"
        case SequenceShape(item=RecordShape(is_reference=True)):
            return []
        case RecordShape(is_reference=True):
            return None
        case SequenceShape(item=item):
            return [placeholder_value(item) for _ in range(EXAMPLE_ARRAY_LENGTH)]
        case RecordShape(fields=fields):
            return {spec.name: placeholder_value(spec.shape) for spec in fields}
    return None


def structure_json(shape: Shape, indent: int = 0) -> str:
    """Write a JSON skeleton as text, without building an instance."""
    match shape:
        case IntegerShape():
            return "42"
        case FloatShape():
            return "42.5"
        case BooleanShape():
            return "true"
        case StringShape(format="datetime"):
            return f'"{EXAMPLE_DATETIME}"'
        case StringShape(format="uuid"):
            return f'"{SKELETON_UUID}"'
        case StringShape():
            return '"example text"'
        # Self-references stop here; the enclosing record already shows them.
        case SequenceShape(item=RecordShape(is_reference=True)):
            return "[]"
        case RecordShape(is_reference=True):
            return "null"
        case SequenceShape(item=item):
            element = structure_json(item, indent)
            return f"[{element}, {element}]"
        case RecordShape(fields=fields):
            pad = "  " * (indent + 1)
            members = [
                f'{pad}"{spec.name}": {structure_json(spec.shape, indent + 1)}'
                for spec in fields
            ]
            closing = "  " * indent
            return "{\n" + ",\n".join(members) + "\n" + closing + "}"
    return "null"


def example_json(shape: Shape) -> str:
    """Serialize a validated example instance of ``shape``.

    Falls back to ``structure_json`` when the placeholder values do not
    satisfy the shape (for instance a pattern or length constraint).
    """
    try:
        adapter = TypeAdapter(shape.annotation())
        instance = adapter.validate_python(placeholder_value(shape))
        return adapter.dump_json(instance, indent=2, by_alias=True).decode()
    except (ValueError, TypeError) as e:
        log.debug("Example instance unavailable, using skeleton: %s", e)
        return structure_json(shape)


def _lower_bound(value: float, exclusive: bool) -> str:
    return f"greater than {value}" if exclusive else f"at least {value}"


def _upper_bound(value: float, exclusive: bool) -> str:
    return f"less than {value}" if exclusive else f"at most {value}"


def _constraint_lines(spec: FieldSpec) -> list[str]:
    lines = []
    if spec.min_length is not None and spec.max_length is not None:
        lines.append(
            f"  - Length range: {spec.min_length}-{spec.max_length} characters"
        )
    elif spec.max_length is not None:
        lines.append(f"  - Maximum length: {spec.max_length} characters")
    elif spec.min_length is not None:
        lines.append(f"  - Minimum length: {spec.min_length} characters")

    exclusive = spec.exclusive_minimum or spec.exclusive_maximum
    if spec.minimum is not None and spec.maximum is not None:
        if exclusive:
            low = _lower_bound(spec.minimum, spec.exclusive_minimum)
            high = _upper_bound(spec.maximum, spec.exclusive_maximum)
            lines.append(f"  - Value range: {low}, {high}")
        else:
            lines.append(f"  - Value range: {spec.minimum}-{spec.maximum}")
    elif spec.minimum is not None:
        if spec.exclusive_minimum:
            lines.append(f"  - Value must be greater than {spec.minimum}")
        else:
            lines.append(f"  - Minimum value: {spec.minimum}")
    elif spec.maximum is not None:
        if spec.exclusive_maximum:
            lines.append(f"  - Value must be less than {spec.maximum}")
        else:
            lines.append(f"  - Maximum value: {spec.maximum}")

    if spec.pattern is not None:
        lines.append(f"  - Must match pattern: {spec.pattern}")
    return lines


def _field_lines(spec: FieldSpec) -> list[str]:
    required = " (required)" if spec.required else ""
    return [
        f"- **{spec.name}**: {spec.shape.friendly_name}{required}",
        f"  - {spec.description or f'{spec.name} field'}",
        *_constraint_lines(spec),
        "",
    ]


def describe_shape(
    shape: Any,
    *,
    include_example: bool | None = None,
    settings: ExtractSettings | None = None,
) -> str:
    """Describe a shape's JSON structure for a model prompt.

    Args:
        shape: A shape, or a Python annotation accepted by ``shape_for``.
        include_example: Whether to render an example payload. Defaults to
            the ``include_example`` setting.
        settings: Settings to read defaults from.

    Returns:
        Markdown text.
    """
    target = shape_for(shape)
    if isinstance(target, RecordShape):
        target = target.resolve()
    if include_example is None:
        if settings is None:
            settings = resolve_settings().settings
        include_example = settings.include_example

    if isinstance(target, RecordShape):
        title = target.name
        summary = target.description or f"JSON representation of {title} object"
    else:
        title = target.friendly_name
        summary = f"A single JSON {target.friendly_name} value"

    lines = [f"# {title} JSON Structure Description", "", summary.strip(), ""]

    if isinstance(target, RecordShape):
        lines += ["## Field Description", ""]
        for spec in target.fields:
            lines += _field_lines(spec)

    if include_example:
        lines += ["## JSON Example", "", "```json", example_json(target), "```"]

    lines += [
        "",
        "## Generation Requirements",
        "",
        "When generating JSON, please note the following:",
    ]
    lines += [f"{i}. {rule}" for i, rule in enumerate(GENERATION_REQUIREMENTS, 1)]
    return "\n".join(lines) + "\n"

