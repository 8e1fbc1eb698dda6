"""Krishi Drishti — API Response Primitives.

High-performance ORJSONResponse and the error body shared by every
endpoint.

Error Format:
    {
        "success": false,
        "error": "ResourceNotFound",
        "message": "Machine with id 'D9' not found",
        "details": {...}
    }
"""

from __future__ import annotations

from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


# =============================================================================
# High-Performance ORJSON Response
# =============================================================================

def _orjson_serializer(obj: Any) -> bytes:
    """Serialize object to JSON bytes using orjson."""
    return orjson.dumps(
        obj,
        option=(
            orjson.OPT_UTC_Z |                 # Use Z suffix for UTC
            orjson.OPT_NAIVE_UTC |             # Treat naive datetimes as UTC
            orjson.OPT_NON_STR_KEYS            # Allow non-string dict keys
        ),
    )


class ORJSONResponse(JSONResponse):
    """JSON response rendered with orjson.

    Usage:
        app = FastAPI(default_response_class=ORJSONResponse)
    """

    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        if hasattr(content, "model_dump"):
            content = content.model_dump(mode="json")
        return _orjson_serializer(content)


# =============================================================================
# Error Response Model
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error body for 4xx/5xx status codes."""

    success: bool = Field(default=False, description="Always false for errors")
    error: str = Field(..., description="Error class name")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional context")

    @classmethod
    def from_exception(cls, exc: Any) -> "ErrorResponse":
        """Build from a domain exception exposing ``to_dict()``."""
        return cls(**exc.to_dict())


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Resource not found"},
    500: {"model": ErrorResponse, "description": "Persistence failure"},
}
