"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ExternalServiceError,
    DatabaseError,

    # Mappings
    MappingNotFoundError,
    InvalidMappingError,

    # SIGE
    SigeNotConfiguredError,
    SigeAuthError,
    SigeRequestError,
    CatalogParseError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",
    "DatabaseError",

    # Mappings
    "MappingNotFoundError",
    "InvalidMappingError",

    # SIGE
    "SigeNotConfiguredError",
    "SigeAuthError",
    "SigeRequestError",
    "CatalogParseError",
]
