"""Target shapes: what the caller wants the model output turned into.

A shape is one of a closed set of frozen dataclasses. The coercer picks its
handler with a single ``match`` on the shape, and the describer renders the
same descriptors as prompt guidance. Record shapes carry an explicit field
list, either declared by hand or derived once from a pydantic model.
"""

from __future__ import annotations

import collections.abc
import dataclasses
from datetime import datetime
import keyword
import re
import types
import typing
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, create_model

# --- Minimal guard helpers ---


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


def _check_bounds(low: float | None, high: float | None, field_name: str) -> None:
    if low is not None and high is not None:
        _require(
            condition=low <= high,
            message=f"lower bound {low} exceeds upper bound {high}",
            field_name=field_name,
        )


# --- Scalar shapes ---


@dataclasses.dataclass(frozen=True, slots=True)
class IntegerShape:
    """A signed integer."""

    friendly_name: typing.ClassVar[str] = "integer"

    def annotation(self) -> typing.Any:
        return int


@dataclasses.dataclass(frozen=True, slots=True)
class FloatShape:
    """A floating-point number."""

    friendly_name: typing.ClassVar[str] = "number"

    def annotation(self) -> typing.Any:
        return float


@dataclasses.dataclass(frozen=True, slots=True)
class BooleanShape:
    """A true/false value."""

    friendly_name: typing.ClassVar[str] = "boolean (true/false)"

    def annotation(self) -> typing.Any:
        return bool


StringFormat = typing.Literal["datetime", "uuid"]

_STRING_ANNOTATIONS: dict[str | None, typing.Any] = {
    None: str,
    "datetime": datetime,
    "uuid": UUID,
}
_STRING_FRIENDLY_NAMES: dict[str | None, str] = {
    None: "string",
    "datetime": "datetime",
    "uuid": "GUID string",
}


@dataclasses.dataclass(frozen=True, slots=True)
class StringShape:
    """A string, optionally parsed further as a datetime or UUID."""

    format: StringFormat | None = None

    def __post_init__(self) -> None:
        _require(
            condition=self.format in _STRING_ANNOTATIONS,
            message=f"unsupported string format {self.format!r}",
            field_name="format",
        )

    @property
    def friendly_name(self) -> str:
        return _STRING_FRIENDLY_NAMES[self.format]

    def annotation(self) -> typing.Any:
        return _STRING_ANNOTATIONS[self.format]


# --- Composite shapes ---

_CONTAINERS = (list, set, frozenset, tuple)


@dataclasses.dataclass(frozen=True, slots=True)
class SequenceShape:
    """A JSON array whose elements all have the same shape.

    ``container`` is the Python collection the array is validated into:
    ``list``, ``set``, ``frozenset`` or ``tuple`` (as ``tuple[T, ...]``).
    """

    item: Shape
    container: type = list

    friendly_name: typing.ClassVar[str] = "array"

    def __post_init__(self) -> None:
        _require(
            condition=self.container in _CONTAINERS,
            message=f"unsupported container {self.container!r}",
            field_name="container",
        )

    def annotation(self) -> typing.Any:
        item = self.item.annotation()
        if self.container is tuple:
            return tuple[item, ...]
        return self.container[item]


@dataclasses.dataclass(frozen=True, slots=True)
class JsonShape:
    """Any JSON value, validated against an arbitrary annotation.

    This is the default path: extract the generic candidate and deserialize
    it directly.
    """

    type_hint: typing.Any = typing.Any

    friendly_name: typing.ClassVar[str] = "object"

    def annotation(self) -> typing.Any:
        return self.type_hint


@dataclasses.dataclass(frozen=True, slots=True)
class FieldSpec:
    """Declared field of a record shape.

    Attributes:
        name: JSON key of the field.
        shape: Shape of the field's value.
        description: Free-text description shown to the model.
        required: Whether the key must be present.
        min_length: Minimum string length.
        max_length: Maximum string length.
        minimum: Lower bound for numbers.
        maximum: Upper bound for numbers.
        pattern: Regular expression a string value must match.
        exclusive_minimum: Whether ``minimum`` itself is excluded.
        exclusive_maximum: Whether ``maximum`` itself is excluded.
    """

    name: str
    shape: Shape
    description: str | None = None
    required: bool = True
    min_length: int | None = None
    max_length: int | None = None
    minimum: float | None = None
    maximum: float | None = None
    pattern: str | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.name, str) and bool(self.name.strip()),
            message="must be a non-empty string",
            field_name="name",
        )
        _check_bounds(self.min_length, self.max_length, f"{self.name}.length")
        _check_bounds(self.minimum, self.maximum, f"{self.name}.range")
        if self.exclusive_minimum or self.exclusive_maximum:
            _require(
                condition=self.minimum is None
                or self.maximum is None
                or self.minimum < self.maximum,
                message="exclusive bounds leave no valid value",
                field_name=f"{self.name}.range",
            )
        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except re.error as e:
                raise ValueError(f"{self.name}.pattern: {e}") from e

    @property
    def has_constraints(self) -> bool:
        return any(
            v is not None
            for v in (
                self.min_length,
                self.max_length,
                self.minimum,
                self.maximum,
                self.pattern,
            )
        )


@dataclasses.dataclass(frozen=True, slots=True)
class RecordShape:
    """A JSON object with named, typed fields.

    When ``model`` is set, values are validated into that pydantic model;
    otherwise a model is generated from ``fields`` for each validation.

    A shape with ``is_reference`` set stands for a model that is already
    being described further up (a self-referential model). It has no fields
    of its own; ``resolve`` expands it one level.
    """

    name: str
    fields: tuple[FieldSpec, ...]
    description: str | None = None
    model: type[BaseModel] | None = None
    is_reference: bool = False

    friendly_name: typing.ClassVar[str] = "object"

    def __post_init__(self) -> None:
        _require(
            condition=bool(self.name), message="must not be empty", field_name="name"
        )
        _require(
            condition=not self.is_reference or self.model is not None,
            message="a reference needs a model",
            field_name="model",
        )
        names = [f.name for f in self.fields]
        _require(
            condition=len(names) == len(set(names)),
            message=f"duplicate field names in {names}",
            field_name="fields",
        )

    def annotation(self) -> typing.Any:
        if self.model is not None:
            return self.model
        return build_record_model(self)

    def resolve(self) -> RecordShape:
        """Expand a reference into the model's full field list."""
        if self.is_reference:
            return RecordShape.from_model(self.model)
        return self

    @classmethod
    def from_model(
        cls, model: type[BaseModel], _seen: frozenset[type] = frozenset()
    ) -> RecordShape:
        """Derive a record shape from a pydantic model's declared fields.

        Models that refer back to themselves (directly or through another
        model) get a reference shape at the point of recursion.
        """
        seen = _seen | {model}
        specs = []
        for attr, info in model.model_fields.items():
            constraints = _collect_constraints(info.metadata)
            specs.append(
                FieldSpec(
                    name=info.alias or attr,
                    shape=shape_for(_strip_optional(info.annotation), seen),
                    description=info.description,
                    required=info.is_required(),
                    **constraints,
                )
            )
        return cls(
            name=model.__name__,
            fields=tuple(specs),
            description=model.__dict__.get("__doc__"),
            model=model,
        )


Shape = (
    IntegerShape
    | FloatShape
    | BooleanShape
    | StringShape
    | SequenceShape
    | RecordShape
    | JsonShape
)

SHAPE_TYPES: tuple[type, ...] = (
    IntegerShape,
    FloatShape,
    BooleanShape,
    StringShape,
    SequenceShape,
    RecordShape,
    JsonShape,
)

# --- Conversions ---

_SCALAR_SHAPES: dict[typing.Any, Shape] = {
    bool: BooleanShape(),
    int: IntegerShape(),
    float: FloatShape(),
    str: StringShape(),
    datetime: StringShape("datetime"),
    UUID: StringShape("uuid"),
}

# Annotation origin -> container the array is validated into.
_SEQUENCE_ORIGINS: dict[typing.Any, type] = {
    list: list,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.Iterable: list,
    collections.abc.Set: set,
}


def _strip_optional(tp: typing.Any) -> typing.Any:
    if typing.get_origin(tp) in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


_CONSTRAINT_ATTRS = {
    "min_length": "min_length",
    "max_length": "max_length",
    "ge": "minimum",
    "le": "maximum",
    "pattern": "pattern",
}


def _collect_constraints(metadata: list[typing.Any]) -> dict[str, typing.Any]:
    found: dict[str, typing.Any] = {}
    for item in metadata:
        for attr, target in _CONSTRAINT_ATTRS.items():
            value = getattr(item, attr, None)
            if value is not None:
                found[target] = value
        if getattr(item, "gt", None) is not None:
            found["minimum"] = item.gt
            found["exclusive_minimum"] = True
        if getattr(item, "lt", None) is not None:
            found["maximum"] = item.lt
            found["exclusive_maximum"] = True
    return found


def shape_for(tp: typing.Any, _seen: frozenset[type] = frozenset()) -> Shape:
    """Map a Python annotation (or an existing shape) to a shape.

    Examples:
        >>> shape_for(int)
        IntegerShape()
        >>> shape_for(list[bool])
        SequenceShape(item=BooleanShape(), container=<class 'list'>)
    """
    if isinstance(tp, SHAPE_TYPES):
        return tp
    if tp in _SCALAR_SHAPES:
        return _SCALAR_SHAPES[tp]

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)
    if origin in _SEQUENCE_ORIGINS and len(args) == 1:
        return SequenceShape(shape_for(args[0], _seen), _SEQUENCE_ORIGINS[origin])
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:  # noqa: PLR2004
        return SequenceShape(shape_for(args[0], _seen), tuple)

    stripped = _strip_optional(tp)
    if stripped is not tp:
        return shape_for(stripped, _seen)

    if isinstance(tp, type) and issubclass(tp, BaseModel):
        if tp in _seen:
            return RecordShape(name=tp.__name__, fields=(), model=tp, is_reference=True)
        return RecordShape.from_model(tp, _seen)

    return JsonShape(tp)


def _attribute_name(key: str, index: int) -> str:
    attr = re.sub(r"\W", "_", key)
    if (
        not attr
        or attr[0].isdigit()
        or attr.startswith("_")
        or keyword.iskeyword(attr)
        or hasattr(BaseModel, attr)
    ):
        attr = f"field_{index}_{attr.lstrip('_')}"
    return attr


def _field_definition(spec: FieldSpec, index: int) -> tuple[str, tuple[typing.Any, typing.Any]]:
    annotation = spec.shape.annotation()
    default: typing.Any = ...
    if not spec.required:
        annotation = typing.Optional[annotation]  # noqa: UP007
        default = None
    info = Field(
        default,
        alias=spec.name,
        description=spec.description,
        min_length=spec.min_length,
        max_length=spec.max_length,
        ge=None if spec.exclusive_minimum else spec.minimum,
        gt=spec.minimum if spec.exclusive_minimum else None,
        le=None if spec.exclusive_maximum else spec.maximum,
        lt=spec.maximum if spec.exclusive_maximum else None,
        pattern=spec.pattern,
    )
    return _attribute_name(spec.name, index), (annotation, info)


def build_record_model(shape: RecordShape) -> type[BaseModel]:
    """Generate a pydantic model enforcing a record's declared fields."""
    definitions = dict(
        _field_definition(spec, i) for i, spec in enumerate(shape.fields)
    )
    model_name = re.sub(r"\W", "_", shape.name) or "Record"
    return create_model(
        model_name,
        __config__=ConfigDict(populate_by_name=True, protected_namespaces=()),
        __doc__=shape.description,
        **definitions,
    )
