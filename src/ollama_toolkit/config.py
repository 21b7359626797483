"""Configuration module for ollama-toolkit using pydantic-settings."""

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ToolErrorPolicy(str, Enum):
    """What the conversation loop does when a tool call fails.

    Either way the failure is appended to the conversation as a tool
    message with an {"error": ...} body.
    """

    ABORT = "abort"  # raise the error to the caller
    CONTINUE = "continue"  # resubmit so the model can react to the error


class ToolkitSettings(BaseSettings):
    """Main configuration settings for ollama-toolkit.

    All settings can be overridden via environment variables with the
    OLLAMA_TOOLKIT_ prefix. For example, OLLAMA_TOOLKIT_MODEL will override
    the model setting.
    """

    # Ollama; None defers to OLLAMA_HOST or http://localhost:11434
    ollama_host: str | None = None
    request_timeout: float | None = None
    trace_requests: bool = False

    # Chat
    model: str = "llama3.1:latest"

    # Tool calling
    max_tool_rounds: int | None = Field(default=16, ge=0)
    tool_error_policy: ToolErrorPolicy = ToolErrorPolicy.ABORT

    model_config = SettingsConfigDict(env_prefix="OLLAMA_TOOLKIT_")


@lru_cache
def get_settings() -> ToolkitSettings:
    """Get the settings instance.

    This function is cached so that the same settings instance is reused.
    Settings are loaded from environment variables with the OLLAMA_TOOLKIT_
    prefix.

    Returns:
        ToolkitSettings: The configuration settings.
    """
    return ToolkitSettings()
