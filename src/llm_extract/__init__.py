"""Extract, repair and type-coerce JSON from noisy language-model output."""

import importlib.metadata
import logging

from llm_extract.api import (
    describe_shape,
    extract_dictionary,
    extract_json,
    extract_json_value,
    extract_or_raise,
    extract_result,
    extract_typed,
    try_extract,
)
from llm_extract.coercion import Coercer, coerce
from llm_extract.config import ExtractSettings, ResolvedSettings, resolve_settings
from llm_extract.exceptions import (
    ConfigurationError,
    DeserializationFaultError,
    ExtractionError,
    FailureKind,
    LLMExtractError,
    MalformedAfterRepairError,
    NoCandidateFoundError,
    ShapeMismatchError,
)
from llm_extract.parsing import is_valid_json, repair_json
from llm_extract.shapes import (
    BooleanShape,
    FieldSpec,
    FloatShape,
    IntegerShape,
    JsonShape,
    RecordShape,
    SequenceShape,
    Shape,
    StringShape,
    shape_for,
)
from llm_extract.types import ABSENT, Absent, ExtractionDiagnostics, ExtractionResult

# Version handling
try:
    __version__ = importlib.metadata.version("llm-extract")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
# This prevents 'No handler found' errors if the consuming app has no logging configured.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Boundary calls
    "extract_typed",
    "describe_shape",
    "extract_result",
    "extract_or_raise",
    "try_extract",
    # Untyped helpers
    "extract_json",
    "extract_json_value",
    "extract_dictionary",
    "is_valid_json",
    "repair_json",
    # Coercion
    "Coercer",
    "coerce",
    # Shapes
    "Shape",
    "IntegerShape",
    "FloatShape",
    "BooleanShape",
    "StringShape",
    "SequenceShape",
    "RecordShape",
    "JsonShape",
    "FieldSpec",
    "shape_for",
    # Results
    "ABSENT",
    "Absent",
    "ExtractionResult",
    "ExtractionDiagnostics",
    # Settings
    "ExtractSettings",
    "ResolvedSettings",
    "resolve_settings",
    # Exceptions
    "LLMExtractError",
    "ExtractionError",
    "FailureKind",
    "NoCandidateFoundError",
    "MalformedAfterRepairError",
    "ShapeMismatchError",
    "DeserializationFaultError",
    "ConfigurationError",
]
