"""Krishi Drishti — Core Exceptions.

Domain-specific exceptions for the service layer.
These exceptions are caught by the API layer and converted to HTTP responses
using the ``status_code`` carried by each class.

Usage:
    from core.exceptions import ResourceNotFound

    class TelemetryService:
        async def _resolve_machine(self, gps_device_id: str):
            machine = await self._find_by_device(gps_device_id)
            if not machine:
                raise ResourceNotFound("Machine", gps_device_id)
            return machine
"""

from __future__ import annotations

from typing import Any


class KrishiBaseException(Exception):
    """Base exception for all Krishi Drishti domain errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ResourceNotFound(KrishiBaseException):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404 Not Found. An unknown GPS device id lands here and
    usually means the device/machine mapping needs operator attention.

    Attributes:
        resource_type: Type of resource (e.g., "Machine", "Panchayat").
        resource_id: Identifier of the missing resource.
    """

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(message, {"resource_type": resource_type, "resource_id": str(resource_id)})


class InvalidInput(KrishiBaseException):
    """Raised when a mandatory field is missing or malformed.

    Maps to HTTP 400 Bad Request.
    """

    status_code = 400

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid input on '{field}': {message}", {"field": field})


class Unauthorized(KrishiBaseException):
    """Raised when a shared-secret bearer check fails.

    Maps to HTTP 401 Unauthorized.
    """

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class PersistenceFailure(KrishiBaseException):
    """Raised when the storage layer fails.

    Maps to HTTP 500. The message is generic; the underlying
    driver error is logged, never returned to the caller.

    Attributes:
        operation: Short name of the operation that failed.
    """

    status_code = 500

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__("Internal server error", {"operation": operation})
