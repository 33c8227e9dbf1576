"""
Error response models for the FruitsAI API.

Every non-2xx JSON body has the shape ``{"error": "<message>"}``, which is
what the chat client reads when a request fails.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ErrorCode(str, Enum):
    """Application-specific error codes for categorization."""

    # Validation errors (2xxx)
    VALIDATION_ERROR = "VAL_2001"

    # Resource errors (3xxx)
    RESOURCE_NOT_FOUND = "RES_3001"

    # External service errors (7xxx)
    OPENAI_ERROR = "EXT_7010"

    # Internal errors (9xxx)
    INTERNAL_ERROR = "INT_9001"
    INTERNAL_CONFIGURATION_ERROR = "INT_9002"


class ErrorResponse(BaseModel):
    """Body of every error response."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"error": "API Key or Base URL not configured. Please go to Settings."}}
    )

    error: str = Field(..., description="Human-readable error message")


# HTTP status code mappings for error codes
ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    # 400 Bad Request: the user must fix input or settings
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INTERNAL_CONFIGURATION_ERROR: 400,
    # 404 Not Found
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    # 500 Internal Server Error, provider failures included
    ErrorCode.OPENAI_ERROR: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


def get_status_code(code: ErrorCode) -> int:
    """HTTP status for an error code (500 if unmapped)."""
    return ERROR_CODE_TO_STATUS.get(code, 500)
