"""
Error classification for certificate introspection.

Provides the error codes, categories and the exception type raised by the
converters, the certificate assembler, the fingerprint calculator and the
scanner.
"""

import asyncio
import errno as err_mod
import functools
import ssl
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Tuple, TypeVar

F = TypeVar("F", bound=Callable[..., Any])


class ErrorCategory(str, Enum):
    """High-level error categories."""

    SESSION = "session"
    CERTIFICATE = "certificate"
    RESOURCE = "resource"
    NETWORK = "network"
    TLS = "tls"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class ErrorCode(str, Enum):
    """Specific error codes for detailed failure diagnostics."""

    # Session preconditions
    NOT_CONNECTED = "NOT_CONNECTED"
    NO_PEER_CERTIFICATE = "NO_PEER_CERTIFICATE"

    # Certificate structure
    INVALID_VERSION = "INVALID_VERSION"
    MISSING_SUBJECT = "MISSING_SUBJECT"
    MISSING_ISSUER = "MISSING_ISSUER"
    CORRUPT_VALUE = "CORRUPT_VALUE"
    INVALID_ADDRESS_LENGTH = "INVALID_ADDRESS_LENGTH"
    PARSE_ERROR = "PARSE_ERROR"

    # Fingerprint
    UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"

    # Resources
    OUT_OF_MEMORY = "OUT_OF_MEMORY"

    # Scanner
    CONN_TIMEOUT = "CONN_TIMEOUT"
    CONN_REFUSED = "CONN_REFUSED"
    TLS_HANDSHAKE_FAILED = "TLS_HANDSHAKE_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_CATEGORY_BY_CODE: Dict[ErrorCode, ErrorCategory] = {
    ErrorCode.NOT_CONNECTED: ErrorCategory.SESSION,
    ErrorCode.NO_PEER_CERTIFICATE: ErrorCategory.SESSION,
    ErrorCode.INVALID_VERSION: ErrorCategory.CERTIFICATE,
    ErrorCode.MISSING_SUBJECT: ErrorCategory.CERTIFICATE,
    ErrorCode.MISSING_ISSUER: ErrorCategory.CERTIFICATE,
    ErrorCode.CORRUPT_VALUE: ErrorCategory.CERTIFICATE,
    ErrorCode.INVALID_ADDRESS_LENGTH: ErrorCategory.CERTIFICATE,
    ErrorCode.PARSE_ERROR: ErrorCategory.CERTIFICATE,
    ErrorCode.UNSUPPORTED_ALGORITHM: ErrorCategory.CERTIFICATE,
    ErrorCode.OUT_OF_MEMORY: ErrorCategory.RESOURCE,
    ErrorCode.CONN_TIMEOUT: ErrorCategory.TIMEOUT,
    ErrorCode.CONN_REFUSED: ErrorCategory.NETWORK,
    ErrorCode.TLS_HANDSHAKE_FAILED: ErrorCategory.TLS,
    ErrorCode.NETWORK_ERROR: ErrorCategory.NETWORK,
    ErrorCode.UNKNOWN_ERROR: ErrorCategory.UNKNOWN,
}


@dataclass
class CertificateError(Exception):
    """
    Exception raised when certificate information cannot be produced.

    Preserves the error code and detailed information (such as the raw
    text that failed to parse) for downstream error handling.
    """

    message: str
    error_code: ErrorCode
    error_details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    @property
    def error_category(self) -> ErrorCategory:
        return _CATEGORY_BY_CODE.get(self.error_code, ErrorCategory.UNKNOWN)


def reports_memory_errors(func: F) -> F:
    """Translate MemoryError raised by ``func`` into OUT_OF_MEMORY."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except MemoryError as e:
            raise CertificateError(
                message=f"out of memory in {func.__name__}",
                error_code=ErrorCode.OUT_OF_MEMORY,
            ) from e

    return wrapper  # type: ignore[return-value]


def classify_connect_error(e: BaseException) -> Tuple[ErrorCode, Dict[str, Any]]:
    """
    Classify an exception raised while establishing a TLS connection.

    Args:
        e: The exception to classify

    Returns:
        Tuple of (ErrorCode, error_details dict)
    """
    details: Dict[str, Any] = {
        "exception_type": type(e).__name__,
        "raw_message": str(e),
    }

    # SSL errors first: SSLError is a subclass of OSError
    if isinstance(e, ssl.SSLError):
        reason = getattr(e, "reason", None)
        if reason:
            details["ssl_reason"] = reason
        if isinstance(e, ssl.SSLCertVerificationError):
            details["ssl_verify_message"] = getattr(e, "verify_message", None)
        return ErrorCode.TLS_HANDSHAKE_FAILED, details

    if isinstance(e, (asyncio.TimeoutError, TimeoutError)):
        return ErrorCode.CONN_TIMEOUT, details

    if isinstance(e, ConnectionRefusedError):
        return ErrorCode.CONN_REFUSED, details

    if isinstance(e, OSError):
        if e.errno is not None:
            details["errno"] = e.errno
            details["errno_name"] = err_mod.errorcode.get(e.errno, f"ERRNO_{e.errno}")
        if e.errno == err_mod.ETIMEDOUT:
            return ErrorCode.CONN_TIMEOUT, details
        if e.errno == err_mod.ECONNREFUSED:
            return ErrorCode.CONN_REFUSED, details
        return ErrorCode.NETWORK_ERROR, details

    if isinstance(e, EOFError):
        return ErrorCode.TLS_HANDSHAKE_FAILED, details

    return ErrorCode.UNKNOWN_ERROR, details
