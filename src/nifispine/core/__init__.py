"""nifi-spine core -- errors, logging and settings shared by every layer.

Architecture::

    errors.py      Structured error hierarchy (NifiSpineError, InvalidFormatError)
    logging.py     structlog configuration and logger factory
    settings.py    pydantic-settings configuration (NIFI_* environment)
"""

from nifispine.core.errors import (
    ApiError,
    AuthenticationError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidFormatError,
    MissingKeyError,
    NifiSpineError,
    ResponseError,
    TransportError,
    UnexpectedContentTypeError,
)
from nifispine.core.logging import configure_logging, get_logger

__all__ = [
    "ApiError",
    "AuthenticationError",
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidFormatError",
    "MissingKeyError",
    "NifiSpineError",
    "ResponseError",
    "TransportError",
    "UnexpectedContentTypeError",
    "configure_logging",
    "get_logger",
]
