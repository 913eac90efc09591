"""Error taxonomy for the document pipeline.

Every failure that reaches a caller is a `ProcessingError`: a kind code plus the
two policy flags. Lower layers raise `ClassifiedError` subclasses that already
know their kind; `classify_error` is the single place that turns anything else
into the taxonomy, using message heuristics only for foreign exceptions.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar


class ErrorKind(str, Enum):
    UNSUPPORTED_FORMAT = "UnsupportedFormat"
    EMPTY_OR_CORRUPTED = "EmptyOrCorrupted"
    FILE_TOO_LARGE = "FileTooLarge"
    DECODE_FAILED = "DecodeFailed"
    NO_EXTRACTABLE_TEXT = "NoExtractableText"
    INSUFFICIENT_TEXT = "InsufficientText"
    LOW_QUALITY = "LowQuality"
    TIMEOUT = "Timeout"
    NETWORK_ERROR = "NetworkError"
    RATE_LIMITED = "RateLimited"
    SERVICE_BUSY = "ServiceBusy"
    QUOTA_EXCEEDED = "QuotaExceeded"
    INVALID_CREDENTIALS = "InvalidCredentials"
    INVALID_TRANSITION = "InvalidTransition"
    STORAGE_UNAVAILABLE = "StorageUnavailable"
    ADMISSION_DENIED = "AdmissionDenied"
    DOCUMENT_NOT_FOUND = "DocumentNotFound"
    NOT_READY = "NotReady"
    INVALID_REQUEST = "InvalidRequest"
    CONTEXT_LENGTH_EXCEEDED = "ContextLengthExceeded"
    GENERATION_FAILED = "GenerationFailed"
    PROCESSING_FAILED = "ProcessingFailed"


class DecodeReason(str, Enum):
    PASSWORD_PROTECTED = "password_protected"
    ENCRYPTED = "encrypted"
    MALFORMED = "malformed"


# kind -> (recoverable, retryable)
_POLICIES: dict[ErrorKind, tuple[bool, bool]] = {
    ErrorKind.UNSUPPORTED_FORMAT: (False, False),
    ErrorKind.EMPTY_OR_CORRUPTED: (False, False),
    ErrorKind.FILE_TOO_LARGE: (False, False),
    ErrorKind.DECODE_FAILED: (False, False),
    ErrorKind.NO_EXTRACTABLE_TEXT: (True, False),
    ErrorKind.INSUFFICIENT_TEXT: (True, False),
    ErrorKind.LOW_QUALITY: (True, False),
    ErrorKind.TIMEOUT: (True, True),
    ErrorKind.NETWORK_ERROR: (True, True),
    ErrorKind.RATE_LIMITED: (True, True),
    ErrorKind.SERVICE_BUSY: (True, True),
    ErrorKind.QUOTA_EXCEEDED: (False, False),
    ErrorKind.INVALID_CREDENTIALS: (False, False),
    ErrorKind.INVALID_TRANSITION: (True, False),
    ErrorKind.STORAGE_UNAVAILABLE: (True, True),
    ErrorKind.ADMISSION_DENIED: (True, True),
    ErrorKind.DOCUMENT_NOT_FOUND: (False, False),
    ErrorKind.NOT_READY: (True, False),
    ErrorKind.INVALID_REQUEST: (True, False),
    ErrorKind.CONTEXT_LENGTH_EXCEEDED: (True, False),
    ErrorKind.GENERATION_FAILED: (True, False),
    ErrorKind.PROCESSING_FAILED: (True, False),
}


@dataclass(frozen=True)
class ProcessingError:
    """A classified pipeline failure, safe to store and to serialize."""

    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    recoverable: bool = True
    retryable: bool = False

    def __post_init__(self) -> None:
        if self.retryable and not self.recoverable:
            raise ValueError(f"{self.kind.value}: a retryable error must be recoverable")

    @classmethod
    def of(cls, kind: ErrorKind, message: str, **details: Any) -> "ProcessingError":
        """Build an error with the policy flags registered for `kind`."""
        recoverable, retryable = _POLICIES[kind]
        return cls(
            kind=kind,
            message=message,
            details=details,
            recoverable=recoverable,
            retryable=retryable,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.kind.value,
            "message": self.message,
            "details": dict(self.details),
            "recoverable": self.recoverable,
            "retryable": self.retryable,
        }


class ClassifiedError(Exception):
    """Base for exceptions raised inside the pipeline that carry their own kind."""

    kind: ClassVar[ErrorKind] = ErrorKind.PROCESSING_FAILED

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.details = details

    def to_processing_error(self) -> ProcessingError:
        return ProcessingError.of(self.kind, str(self), **self.details)


class ProcessingFailure(Exception):
    """The only exception type callers of the pipeline ever see."""

    def __init__(self, error: ProcessingError) -> None:
        super().__init__(error.message)
        self.error = error


_RATE_LIMIT_MARKERS = ("rate limit", "rate_limit", "too many requests", "429")
_QUOTA_MARKERS = ("quota", "billing")
_CREDENTIAL_MARKERS = ("api key", "api_key", "unauthorized", "authentication")
_BUSY_MARKERS = ("busy", "temporarily unavailable", "overloaded", "503")
_TIMEOUT_MARKERS = ("timeout", "timed out")
_NETWORK_MARKERS = ("network", "connection")


def _matches(message: str, markers: tuple[str, ...]) -> bool:
    return any(marker in message for marker in markers)


def classify_message(message: str) -> ErrorKind:
    """Map a free-form error message from an uncontrolled system to a kind."""
    lowered = message.lower()
    if _matches(lowered, _QUOTA_MARKERS):
        return ErrorKind.QUOTA_EXCEEDED
    if _matches(lowered, _CREDENTIAL_MARKERS):
        return ErrorKind.INVALID_CREDENTIALS
    if _matches(lowered, _RATE_LIMIT_MARKERS):
        return ErrorKind.RATE_LIMITED
    if _matches(lowered, _BUSY_MARKERS):
        return ErrorKind.SERVICE_BUSY
    if _matches(lowered, _TIMEOUT_MARKERS):
        return ErrorKind.TIMEOUT
    if _matches(lowered, _NETWORK_MARKERS):
        return ErrorKind.NETWORK_ERROR
    return ErrorKind.PROCESSING_FAILED


def decode_reason_from_message(message: str) -> DecodeReason | None:
    """Derive a decode sub-reason from a PDF parser's error text, if possible."""
    lowered = message.lower()
    if "password" in lowered:
        return DecodeReason.PASSWORD_PROTECTED
    if "encrypt" in lowered:
        return DecodeReason.ENCRYPTED
    if "invalid pdf" in lowered or "syntax" in lowered or "no /root" in lowered:
        return DecodeReason.MALFORMED
    return None


def classify_error(error: BaseException | ProcessingError) -> ProcessingError:
    """Return the taxonomy entry for any error raised while processing."""
    if isinstance(error, ProcessingError):
        return error
    if isinstance(error, ProcessingFailure):
        return error.error
    if isinstance(error, ClassifiedError):
        return error.to_processing_error()
    message = str(error) or type(error).__name__
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return ProcessingError.of(ErrorKind.TIMEOUT, message or "Operation timed out")
    if isinstance(error, ConnectionError):
        return ProcessingError.of(ErrorKind.NETWORK_ERROR, message)
    return ProcessingError.of(classify_message(message), message)
