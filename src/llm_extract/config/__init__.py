"""Configuration for llm_extract.

Key components:
- ExtractSettings: validated, frozen settings (pydantic-settings)
- resolve_settings: merges defaults, pyproject.toml, .env, environment and
  programmatic overrides, recording where each value came from
"""

from .api import ResolvedSettings, load_env_file, load_environment, resolve_settings
from .file_loader import ConfigFileError, find_pyproject_toml, load_project_config
from .schema import ENV_PREFIX, ExtractSettings

__all__ = [
    "ENV_PREFIX",
    "ConfigFileError",
    "ExtractSettings",
    "ResolvedSettings",
    "find_pyproject_toml",
    "load_env_file",
    "load_environment",
    "load_project_config",
    "resolve_settings",
]
