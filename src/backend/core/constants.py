"""
Constants and configuration for FruitsAI.
Centralizes all magic numbers and configuration values.
Includes Pydantic validation for environment variables.
"""

from __future__ import annotations

import os
import threading

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import DotEnvSettingsSource, PydanticBaseSettingsSource

# ============================================================================
# Project Paths
# ============================================================================

#: Repository root directory (parent of src/)
PROJECT_ROOT = Path(__file__).resolve().parents[3]

#: Default directory for the JSON settings store
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"

#: File name of the JSON settings store inside the data directory
STORE_FILE_NAME = "config.json"

# ============================================================================
# Logging Configuration
# ============================================================================

#: Maximum size in bytes for log files before rotation (10MB).
LOG_MAX_SIZE = 10 * 1024 * 1024

#: Number of conversation log backups to retain during rotation.
LOG_BACKUP_COUNT_CONVERSATIONS = 5

#: Number of error log backups to retain during rotation.
LOG_BACKUP_COUNT_ERRORS = 3

#: Maximum characters to show in log previews for tool arguments/results.
LOG_PREVIEW_LENGTH = 50

#: Length of generated logger instance IDs (hex characters).
SESSION_ID_LENGTH = 8

# ============================================================================
# Stream Marker Protocol
# ============================================================================

#: Line prefix announcing that a tool started executing.
#: Encoded on the wire as "\n__TOOL_START__:<tool name>\n".
TOOL_START_PREFIX = "__TOOL_START__:"

#: Line prefix announcing that a tool returned its result.
#: Encoded on the wire as "\n__TOOL_END__:<tool name>\n".
TOOL_END_PREFIX = "__TOOL_END__:"

#: Content type of the chat response body.
CHAT_STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"

# ============================================================================
# Agent/Runner Event Types
# ============================================================================

#: Top-level streaming event type for run items (messages, tools, reasoning).
RUN_ITEM_STREAM_EVENT = "run_item_stream_event"

#: Top-level streaming event type for raw LLM response deltas (token-by-token streaming).
RAW_RESPONSE_EVENT = "raw_response_event"

#: Raw response data type carrying an assistant text delta.
OUTPUT_TEXT_DELTA = "response.output_text.delta"

#: Item type for function/tool call detection.
TOOL_CALL_ITEM = "tool_call_item"

#: Item type for function/tool execution results.
TOOL_CALL_OUTPUT_ITEM = "tool_call_output_item"

# ============================================================================
# MCP Configuration
# ============================================================================

#: Seconds allowed for spawning a tool server and completing the MCP handshake.
MCP_CONNECT_TIMEOUT = 10.0

#: Per-request timeout inside an established MCP session (default SDK timeout is 5s which is too short).
MCP_CLIENT_SESSION_TIMEOUT = 60.0

#: Separator between server name and tool name in aggregated tool keys.
TOOL_NAMESPACE_SEPARATOR = "__"

# ============================================================================
# Model / Provider Defaults
# ============================================================================

#: Model used when the request names none and no configured model is enabled.
FALLBACK_MODEL = "gpt-3.5-turbo"

#: Base URL written to a fresh settings store.
DEFAULT_BASE_URL = "https://api.openai.com/v1"

#: Model list written to a fresh settings store: (id, display name).
DEFAULT_MODELS: tuple[tuple[str, str], ...] = (
    ("gpt-4o", "GPT-4o"),
    ("gpt-3.5-turbo", "GPT-3.5 Turbo"),
)

#: Path suffixes the SDK appends itself; stripped from configured base URLs.
BASE_URL_STRIP_SUFFIXES: tuple[str, ...] = ("/chat/completions", "/responses")

#: Maximum model/tool round trips within one chat turn.
MAX_TOOL_STEPS = 10

#: Name of the agent driving chat completions.
ASSISTANT_AGENT_NAME = "FruitsAI Assistant"

# ============================================================================
# Error Messages
# ============================================================================

#: Returned with HTTP 400 when provider credentials are incomplete.
ERROR_MISSING_CREDENTIALS = "API Key or Base URL not configured. Please go to Settings."

#: Fallback message for unexpected server errors.
ERROR_UNKNOWN_SERVER = "Unknown server error"

#: Recorded on a connection when the handshake fails without a message.
ERROR_CONNECTION_FAILED = "Connection failed"

# ============================================================================
# Environment Configuration with Pydantic Validation
# ============================================================================

#: Valid environment names for configuration loading
Environment = Literal["development", "production", "test"]

#: Backend source directory for .env file resolution
_BACKEND_DIR = Path(__file__).parent.parent


def _get_env_files() -> list[Path]:
    """Determine which .env files to load based on APP_ENV.

    Load order (later files override earlier - pydantic-settings last-wins):
    1. .env (base defaults) - lowest priority
    2. .env.{environment} (environment-specific overrides)
    3. .env.local (local developer overrides, gitignored) - highest priority

    Returns:
        List of Path objects for env files that exist.
    """
    env_name = os.getenv("APP_ENV", "development").lower()
    if env_name not in ("development", "production", "test"):
        env_name = "development"

    candidates = [
        _BACKEND_DIR / ".env",
        _BACKEND_DIR / f".env.{env_name}",
        _BACKEND_DIR / ".env.local",
    ]
    return [p for p in candidates if p.exists()]


class Settings(BaseSettings):
    """Environment settings with validation and environment-specific file support.

    Configuration priority (highest to lowest):
    1. Values passed to Settings() constructor
    2. Environment variables
    3. .env.local > .env.{APP_ENV} > .env (dotenv files, last wins)

    Provider credentials are NOT part of these settings: they live in the
    JSON settings store so the user can edit them at runtime.
    """

    # Environment identification
    app_env: Environment = Field(default="development", description="Application environment")

    # Debug and logging
    debug: bool = Field(default=False, description="Enable debug logging")
    http_request_logging: bool = Field(default=False, description="Enable HTTP request/response logging")
    enable_content_logging: bool = Field(default=False, description="Include tool arguments/results in logs")

    # API server
    api_host: str = Field(default="127.0.0.1", description="FastAPI host")
    api_port: int = Field(default=8000, ge=0, description="FastAPI port (0 picks a free port)")
    app_version: str = Field(default="1.0.0", description="Application version")
    cors_allow_origins: str = Field(default="*", description="Comma-separated CORS origins")

    # Settings store
    data_dir: Path = Field(default=DEFAULT_DATA_DIR, description="Directory holding the JSON settings store")

    # MCP servers
    mcp_connect_timeout: float = Field(
        default=MCP_CONNECT_TIMEOUT,
        gt=0,
        description="Spawn + handshake timeout for one tool server (seconds)",
    )
    mcp_client_session_timeout: float = Field(
        default=MCP_CLIENT_SESSION_TIMEOUT,
        gt=0,
        description="Per-request timeout inside an MCP session (seconds)",
    )

    # Model calls
    http_read_timeout: float = Field(default=600.0, description="HTTP read timeout for streaming (seconds)")
    max_tool_steps: int = Field(default=MAX_TOOL_STEPS, ge=1, description="Model/tool round trips per chat turn")

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment variables override dotenv files; constructor values override both."""
        dotenv_source = DotEnvSettingsSource(
            settings_cls,
            env_file=_get_env_files(),
            env_file_encoding="utf-8",
        )
        return (init_settings, env_settings, dotenv_source)

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | None) -> str:
        """Validate and normalize APP_ENV value."""
        if v is None:
            return "development"
        normalized = str(v).lower()
        if normalized not in ("development", "production", "test"):
            raise ValueError(f"app_env must be 'development', 'production', or 'test', got '{v}'")
        return normalized

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS origins as a list."""
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]

    @property
    def store_path(self) -> Path:
        """Location of the JSON settings store."""
        return self.data_dir / STORE_FILE_NAME

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"


# ============================================================================
# Settings Management
# ============================================================================


class _SettingsManager:
    """Thread-safe cached settings holder."""

    __slots__ = ("_instance", "_lock")

    def __init__(self) -> None:
        self._instance: Settings | None = None
        self._lock = threading.Lock()

    def get(self) -> Settings:
        if self._instance is not None:
            return self._instance

        with self._lock:
            if self._instance is None:
                self._instance = Settings()
            return self._instance

    def clear(self) -> None:
        """Drop the cached instance so the next get() reloads from the environment."""
        with self._lock:
            self._instance = None


_settings_manager = _SettingsManager()


def get_settings() -> Settings:
    """Get the cached, validated Settings instance.

    Raises:
        ValueError: If configuration is invalid.
    """
    return _settings_manager.get()


def reload_settings() -> Settings:
    """Force reload settings from environment files."""
    _settings_manager.clear()
    return _settings_manager.get()
