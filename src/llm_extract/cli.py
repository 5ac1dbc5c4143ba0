"""Command line interface.

Usage:
    python -m llm_extract extract --shape 'list[int]' < completion.txt
    python -m llm_extract extract --shape myapp.models:UserProfile --file out.txt
    python -m llm_extract extract --shape int --raise < completion.txt
    python -m llm_extract describe myapp.models:UserProfile
    python -m llm_extract config --json
"""

import argparse
from datetime import datetime
import importlib
import json
import re
import sys
from typing import Any
from uuid import UUID

from pydantic import TypeAdapter

from .api import describe_shape, extract_result
from .config import resolve_settings
from .exceptions import ConfigurationError, ExtractionError
from .shapes import SequenceShape, Shape, shape_for

# ruff: noqa: T201

_NAMED_SHAPES: dict[str, Any] = {
    "int": int,
    "integer": int,
    "float": float,
    "number": float,
    "bool": bool,
    "boolean": bool,
    "str": str,
    "string": str,
    "datetime": datetime,
    "uuid": UUID,
    "json": Any,
}

_LIST_SPEC = re.compile(r"list\[(.+)\]")


def parse_shape_spec(spec: str) -> Shape:
    """Parse a textual shape such as ``int``, ``list[str]`` or ``pkg.mod:Model``.

    Raises:
        ValueError: If the spec names nothing usable.
    """
    spec = spec.strip()
    nested = _LIST_SPEC.fullmatch(spec)
    if nested:
        return SequenceShape(parse_shape_spec(nested.group(1)))
    if spec.lower() in _NAMED_SHAPES:
        return shape_for(_NAMED_SHAPES[spec.lower()])

    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Unknown shape {spec!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import {module_name!r}: {e}") from e
    target = getattr(module, attr, None)
    if target is None:
        raise ValueError(f"{module_name!r} has no attribute {attr!r}")
    return shape_for(target)


def _read_text(path: str | None) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def _cmd_extract(args: argparse.Namespace) -> int:
    settings = resolve_settings().settings
    result = extract_result(_read_text(args.file), args.shape, settings=settings)
    if not result.ok:
        if args.raise_on_failure:
            result.unwrap()
        print(f"No result ({result.failure.value}): {'; '.join(result.errors)}", file=sys.stderr)
        return 1
    print(TypeAdapter(Any).dump_json(result.value, indent=2, by_alias=True).decode())
    return 0


def _cmd_describe(args: argparse.Namespace) -> int:
    include_example = False if args.no_example else None
    settings = resolve_settings().settings
    print(describe_shape(args.shape, include_example=include_example, settings=settings), end="")
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    resolved = resolve_settings()
    values = resolved.settings.to_dict()
    if args.json:
        print(json.dumps({"settings": values, "sources": dict(resolved.sources)}, indent=2))
        return 0
    print("=== Effective Settings ===")
    for name, value in values.items():
        print(f"{name} = {value!r}  ({resolved.sources[name]})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract typed values from language-model output",
        prog="python -m llm_extract",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    extract = commands.add_parser("extract", help="Coerce text into a shape")
    extract.add_argument("--shape", required=True, type=parse_shape_spec, help="Target shape")
    extract.add_argument("--file", help="Read text from this file instead of stdin")
    extract.add_argument(
        "--raise",
        dest="raise_on_failure",
        action="store_true",
        help="Raise the typed extraction error instead of printing a summary",
    )
    extract.set_defaults(handler=_cmd_extract)

    describe = commands.add_parser("describe", help="Describe a shape for prompting")
    describe.add_argument("shape", type=parse_shape_spec, help="Shape to describe")
    describe.add_argument("--no-example", action="store_true", help="Omit the example payload")
    describe.set_defaults(handler=_cmd_describe)

    config = commands.add_parser("config", help="Show effective settings")
    config.add_argument("--json", action="store_true", help="Output as JSON")
    config.set_defaults(handler=_cmd_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)
    try:
        return args.handler(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except ExtractionError as e:
        print(f"{type(e).__name__} ({e.kind.value}): {e}", file=sys.stderr)
        return 1
