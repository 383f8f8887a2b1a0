"""
Custom exception classes for the application.

Pass-level failures (auth, configuration, unreadable catalog) are raised.
Item-level balance failures are never raised; they are recorded on the
item's BalanceReading instead.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MAPPING_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None,
        code: Optional[str] = None,
        status_code: int = 503
    ):
        super().__init__(
            code=code or f"{service.upper()}_ERROR",
            message=message,
            status_code=status_code,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# MAPPING ERRORS
# ===================

class MappingNotFoundError(NotFoundError):
    """No SIGE mapping stored for a SKU."""

    def __init__(self, sku: str):
        super().__init__(
            resource="Mapping",
            identifier=sku,
            code="MAPPING_NOT_FOUND"
        )


class InvalidMappingError(ValidationError):
    """Manual mapping request is missing required fields."""

    def __init__(self, field: str, value: Optional[str] = None):
        super().__init__(
            code="INVALID_MAPPING",
            message=f"{field} is required",
            details={"field": field, "provided": value}
        )


# ===================
# SIGE ERRORS
# ===================

class SigeNotConfiguredError(ExternalServiceError):
    """SIGE base URL is not set."""

    def __init__(self):
        super().__init__(
            service="sige",
            code="SIGE_NOT_CONFIGURED",
            message="SIGE API is not configured",
        )


class SigeAuthError(ExternalServiceError):
    """No usable bearer token, or SIGE rejected it."""

    def __init__(self, message: str = "SIGE authentication failed", details: Optional[dict] = None):
        super().__init__(
            service="sige",
            code="SIGE_AUTH_FAILED",
            message=message,
            details=details,
            status_code=401
        )


class SigeRequestError(ExternalServiceError):
    """A single SIGE call failed (HTTP error, timeout, unreadable body)."""

    def __init__(
        self,
        path: str,
        message: str,
        status: Optional[int] = None,
        data: Any = None
    ):
        super().__init__(
            service="sige",
            code="SIGE_REQUEST_FAILED",
            message=message,
            details={"path": path, "sige_status": status, "sige_data": data},
            status_code=502
        )
        self.path = path
        self.status = status
        self.data = data


class CatalogParseError(ExternalServiceError):
    """SIGE product listing page could not be interpreted."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="sige",
            code="SIGE_CATALOG_PARSE_ERROR",
            message=message,
            details=details,
            status_code=502
        )
