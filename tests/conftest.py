"""
Global test configuration.
"""

import os

from pydantic import BaseModel
import pytest


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_llm_extract_env(request, monkeypatch):
    """Ensure a clean LLM_EXTRACT_* environment for each test.

    Escape hatch: mark a test with @pytest.mark.allow_env_pollution to keep
    the current environment unchanged.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.upper().startswith("LLM_EXTRACT_"):
            monkeypatch.delenv(key, raising=False)


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "contract: Behavioral guarantees of the extraction pipeline",
        "integration: Tests that cross module boundaries (CLI, settings files)",
        "allow_env_pollution: Keep LLM_EXTRACT_* environment variables",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


class UserProfile(BaseModel):
    Name: str
    Age: int
    Email: str
    preferred_language: str


@pytest.fixture
def user_profile_model() -> type[BaseModel]:
    """Pydantic model matching the classic profile-extraction prompt."""
    return UserProfile


@pytest.fixture
def profile_text() -> str:
    return (
        "Sure! Here is the profile: "
        '{"Name":"Alice","Age":28,"Email":"alice@example.com",'
        '"preferred_language":"JavaScript"} '
        "Let me know if you need changes."
    )
