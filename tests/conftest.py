"""Pytest configuration and shared fixtures for ollama-toolkit tests.

This module provides common fixtures used across all test modules,
including isolated settings and ready-made tools.
"""

import pytest

from fakes import hello
from ollama_toolkit import ToolkitSettings
from ollama_toolkit.tools import ToolBuilder


@pytest.fixture
def test_settings():
    """Create settings isolated from the environment.

    Returns:
        ToolkitSettings: Settings instance configured for testing.
    """
    return ToolkitSettings(
        ollama_host="http://localhost:11434",
        model="test-model",
        request_timeout=5.0,
        trace_requests=False,
        max_tool_rounds=4,
    )


@pytest.fixture
def hello_tool():
    """A bound tool that greets whoever it is given."""
    return ToolBuilder(hello).describe("Says hello").build()
