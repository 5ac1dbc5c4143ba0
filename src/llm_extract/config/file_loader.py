"""File-based settings loading.

Reads the ``[tool.llm_extract]`` table from the nearest ``pyproject.toml``.
"""

from pathlib import Path
import tomllib
from typing import Any

from ..exceptions import ConfigurationError

TOOL_SECTION = "llm_extract"


class ConfigFileError(ConfigurationError):
    """Raised when configuration file loading fails."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        """Initialize with file path, message, and optional cause.

        Args:
            file_path: The file that failed to load
            message: Human-readable error message
            cause: The underlying exception that caused the failure
        """
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Config file error in {file_path}: {message}")


def find_pyproject_toml(start: Path | None = None) -> Path | None:
    """Search ``start`` (default: cwd) and its parents for pyproject.toml."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


def load_project_config(project_root: Path | None = None) -> dict[str, Any]:
    """Load ``[tool.llm_extract]`` from pyproject.toml.

    Args:
        project_root: Directory to search from. If None, searches the
                     current directory and parents.

    Returns:
        Dictionary of configuration values. Empty dict if no file or no
        ``llm_extract`` section exists.

    Raises:
        ConfigFileError: If the file exists but cannot be parsed, or the
            section is not a table.
    """
    pyproject_path = find_pyproject_toml(project_root)
    if not pyproject_path:
        return {}

    try:
        with pyproject_path.open(mode="rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigFileError(
            pyproject_path, f"Failed to parse TOML: {e}", cause=e
        ) from e

    section = data.get("tool", {}).get(TOOL_SECTION, {})
    if not isinstance(section, dict):
        raise ConfigFileError(
            pyproject_path, f"[tool.{TOOL_SECTION}] must be a table"
        )
    return dict(section)
