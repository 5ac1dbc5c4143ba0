"""Settings resolution.

Precedence, lowest to highest: defaults, ``[tool.llm_extract]`` in
pyproject.toml, a ``.env`` file, ``LLM_EXTRACT_*`` environment variables,
programmatic overrides. Resolution never mutates ``os.environ``.
"""

from collections.abc import Mapping
from dataclasses import dataclass
import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Any

from dotenv import dotenv_values
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from .file_loader import ConfigFileError, load_project_config
from .schema import ExtractSettings, env_var_for, field_names

log = logging.getLogger(__name__)

DEFAULT_ENV_FILE = ".env"


@dataclass(frozen=True)
class ResolvedSettings:
    """Validated settings plus the origin of every field value."""

    settings: ExtractSettings
    sources: Mapping[str, str]


def _pick_env(values: Mapping[str, str | None]) -> dict[str, str]:
    upper = {k.upper(): v for k, v in values.items() if v is not None}
    return {
        name: upper[env_var_for(name)]
        for name in field_names()
        if env_var_for(name) in upper
    }


def load_env_file(env_file: str | Path) -> dict[str, str]:
    """Read ``LLM_EXTRACT_*`` values from a .env file.

    Raises:
        ConfigFileError: If the file does not exist.
    """
    path = Path(env_file)
    if not path.is_file():
        raise ConfigFileError(path, "Environment file not found")
    return _pick_env(dotenv_values(path))


def load_environment() -> dict[str, str]:
    """Read ``LLM_EXTRACT_*`` values from the process environment."""
    return _pick_env(os.environ)


def resolve_settings(
    programmatic: Mapping[str, Any] | None = None,
    *,
    project_root: str | Path | None = None,
    env_file: str | Path | None = None,
) -> ResolvedSettings:
    """Resolve settings from every source.

    Args:
        programmatic: Explicit overrides; these win over everything else.
        project_root: Directory to start the pyproject.toml search from.
        env_file: .env file to read. Defaults to ``.env`` in
            ``project_root`` (or the current directory) when that file exists.

    Returns:
        ResolvedSettings with the frozen settings and a source map.

    Raises:
        ConfigurationError: If a merged value fails validation.
        ConfigFileError: If a configuration file cannot be read.
    """
    if env_file is None:
        candidate = Path(project_root or Path.cwd()) / DEFAULT_ENV_FILE
        env_file = candidate if candidate.is_file() else None

    layers: list[tuple[str, Mapping[str, Any]]] = [
        ("project", load_project_config(Path(project_root) if project_root else None)),
        ("env_file", load_env_file(env_file) if env_file else {}),
        ("env", load_environment()),
        ("programmatic", dict(programmatic or {})),
    ]

    merged: dict[str, Any] = {}
    sources = dict.fromkeys(field_names(), "default")
    for origin, values in layers:
        for key, value in values.items():
            if key not in sources:
                log.warning("Ignoring unknown setting %r from %s", key, origin)
                continue
            merged[key] = value
            sources[key] = origin

    try:
        settings = ExtractSettings(**merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e

    log.debug("Resolved settings: %s", sources)
    return ResolvedSettings(settings=settings, sources=MappingProxyType(sources))
