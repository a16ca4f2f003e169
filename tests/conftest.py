"""Pytest configuration for ollama_tool_bridge tests."""

from __future__ import annotations

import os

import pytest
from dotenv import load_dotenv

# Ensure pytest-asyncio is always available so async tests execute without
# requiring plugins to be explicitly enabled via command line options.
pytest_plugins = ("pytest_asyncio",)

load_dotenv()

_DEFAULT_OLLAMA_MODEL = "llama3.1"


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register custom command line options for pytest."""
    parser.addoption(
        "--ollama-test-model",
        action="store",
        default=os.environ.get("OLLAMA_TEST_MODEL", _DEFAULT_OLLAMA_MODEL),
        dest="ollama_test_model",
        help=(
            "Model identifier to use for Ollama integration tests. "
            "Can also be provided through the OLLAMA_TEST_MODEL environment variable."
        ),
    )


@pytest.fixture(scope="session")
def ollama_test_model(pytestconfig: pytest.Config) -> str:
    """Return the model identifier used for Ollama integration tests."""
    return pytestconfig.getoption("ollama_test_model")


@pytest.fixture(autouse=True)
def _isolated_ollama_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep OLLAMA_* variables from the developer's shell out of unit tests."""
    for name in ("OLLAMA_HOST", "OLLAMA_PORT", "OLLAMA_MODEL", "OLLAMA_ENABLED"):
        monkeypatch.delenv(name, raising=False)
