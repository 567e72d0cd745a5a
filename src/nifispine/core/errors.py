"""
Structured error types for nifi-spine.

Every failure raised by the package is a ``NifiSpineError`` carrying a
category, a retry hint and structured context, so the CLI and callers can
report it without parsing messages.

Manifesto:
    - **One traversal error:** ``InvalidFormatError`` is the only error the
      flow traversal, tree and render layers raise
    - **Best effort on leaves:** wrong-typed ``id``/``name`` values degrade to
      placeholders instead of raising
    - **Error chaining:** the underlying exception is kept as ``cause``

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────┐
        │                     NifiSpineError                         │
        │        (category, retryable, context, cause)               │
        ├───────────────────────────────────────────────────────────┤
        │  ResponseError (PARSE)    TransportError (NETWORK)         │
        │     │                     ApiError (SOURCE)                │
        │  InvalidFormatError          │                             │
        │  MissingKeyError          UnexpectedContentTypeError       │
        │                                                            │
        │  AuthenticationError (AUTH)   ConfigError (CONFIG)         │
        └───────────────────────────────────────────────────────────┘

Examples:
    >>> error = InvalidFormatError("snapshot is not an object")
    >>> error.with_context(key="processorStatusSnapshots").context.key
    'processorStatusSnapshots'
    >>> error.retryable
    False

Tags:
    error-handling, exception-hierarchy, error-context, nifi-spine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories for classification and reporting."""

    NETWORK = "NETWORK"
    SOURCE = "SOURCE"
    PARSE = "PARSE"
    AUTH = "AUTH"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that are set end up in ``to_dict()``; anything without a
    dedicated field goes into ``metadata``.
    """

    component_id: str | None = None
    key: str | None = None
    url: str | None = None
    http_status: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["component_id", "key", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class NifiSpineError(Exception):
    """
    Base exception for all nifi-spine errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can
    be overridden per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> NifiSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise InvalidFormatError("not an array").with_context(
                key="connectionStatusSnapshots"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# RESPONSE SHAPE ERRORS
# =============================================================================


class ResponseError(NifiSpineError):
    """A decoded response does not have the expected shape."""

    default_category = ErrorCategory.PARSE
    default_retryable = False


class InvalidFormatError(ResponseError):
    """
    Structural surprise inside a status document.

    Raised when a snapshot envelope has the wrong type, when a
    ``*StatusSnapshots`` key does not hold an array, or when the document
    nests deeper than the traversal guard allows. Aborts the whole
    traversal; no partial result is returned.
    """


class MissingKeyError(ResponseError):
    """A single-object response lacks a required key."""

    def __init__(self, key: str, message: str | None = None, **kwargs: Any):
        super().__init__(message or f"Required key not found: {key}", **kwargs)
        self.context.key = key


# =============================================================================
# TRANSPORT ERRORS
# =============================================================================


class TransportError(NifiSpineError):
    """The request never produced a response (DNS, TLS, timeout, reset)."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class ApiError(NifiSpineError):
    """The server answered with a status outside 2xx."""

    default_category = ErrorCategory.SOURCE
    default_retryable = False

    def __init__(self, message: str, *, http_status: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.context.http_status = http_status


class UnexpectedContentTypeError(ApiError):
    """The server answered with something other than JSON."""


class AuthenticationError(NifiSpineError):
    """Login was rejected."""

    default_category = ErrorCategory.AUTH
    default_retryable = False


class ConfigError(NifiSpineError):
    """Missing or invalid configuration."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "NifiSpineError",
    "ResponseError",
    "InvalidFormatError",
    "MissingKeyError",
    "TransportError",
    "ApiError",
    "UnexpectedContentTypeError",
    "AuthenticationError",
    "ConfigError",
]
