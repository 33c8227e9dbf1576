"""
OpenAI client factory utilities.
Centralizes AsyncOpenAI client creation with consistent configuration.
"""

from __future__ import annotations

from typing import Any

import httpx

from openai import AsyncOpenAI

from core.constants import BASE_URL_STRIP_SUFFIXES
from utils.logger import logger

# Streaming responses can pause for a long time while the model is thinking
# or while tools run, so the read timeout is generous.
DEFAULT_CONNECT_TIMEOUT = 30.0  # Time to establish connection
DEFAULT_READ_TIMEOUT = 600.0  # 10 minutes
DEFAULT_WRITE_TIMEOUT = 30.0  # Time to send request
DEFAULT_POOL_TIMEOUT = 30.0  # Time to acquire connection from pool

SENSITIVE_HEADERS = frozenset({"authorization", "api-key", "x-api-key"})


def normalize_base_url(base_url: str) -> str:
    """Strip trailing slashes and an SDK-appended endpoint path from a base URL.

    ``https://host/v1/chat/completions/`` becomes ``https://host/v1``.
    """
    normalized = base_url.strip().rstrip("/")
    for suffix in BASE_URL_STRIP_SUFFIXES:
        if normalized.endswith(suffix):
            normalized = normalized[: -len(suffix)].rstrip("/")
            break
    return normalized


def _sanitize_headers(headers: httpx.Headers) -> dict[str, str]:
    """Redact credential headers, keeping the last 4 chars for correlation."""
    sanitized: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            sanitized[key] = f"***{value[-4:]}" if len(value) > 4 else "***"
        else:
            sanitized[key] = value
    return sanitized


async def _log_request(request: httpx.Request) -> None:
    logger.debug(
        f"HTTP Request: {request.method} {request.url}",
        http_request=True,
        headers=_sanitize_headers(request.headers),
    )


async def _log_response(response: httpx.Response) -> None:
    # Bodies are streamed; only status is captured
    logger.debug(
        f"HTTP Response: {response.status_code} {response.request.method} {response.request.url}",
        http_response=True,
        status_code=response.status_code,
    )


def create_http_client(
    enable_logging: bool = False,
    read_timeout: float | None = None,
) -> httpx.AsyncClient:
    """Create HTTP client with proper timeouts for streaming.

    Args:
        enable_logging: Enable HTTP request/response logging
        read_timeout: Read timeout in seconds (default: 600s)

    Returns:
        Configured httpx.AsyncClient
    """
    effective_read_timeout = read_timeout if read_timeout is not None else DEFAULT_READ_TIMEOUT
    timeout = httpx.Timeout(
        connect=DEFAULT_CONNECT_TIMEOUT,
        read=effective_read_timeout,
        write=DEFAULT_WRITE_TIMEOUT,
        pool=DEFAULT_POOL_TIMEOUT,
    )

    if enable_logging:
        event_hooks: dict[str, list[Any]] = {
            "request": [_log_request],
            "response": [_log_response],
        }
        return httpx.AsyncClient(timeout=timeout, event_hooks=event_hooks)

    return httpx.AsyncClient(timeout=timeout)


def create_openai_client(
    api_key: str,
    base_url: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncOpenAI:
    """Create AsyncOpenAI client with consistent configuration.

    Args:
        api_key: Provider API key
        base_url: Optional base URL for OpenAI-compatible endpoints (normalized)
        http_client: Optional httpx client with custom timeouts/logging

    Returns:
        Configured AsyncOpenAI client
    """
    kwargs: dict[str, Any] = {"api_key": api_key, "http_client": http_client}
    if base_url:
        kwargs["base_url"] = normalize_base_url(base_url)
    return AsyncOpenAI(**kwargs)
