from pdfquiz.processor.errors import ClassifiedError, ErrorKind


class ProcessorError(ClassifiedError):
    """Base exception for all processor-related errors."""


class DocumentNotFoundError(ProcessorError):
    """Raised when a document cannot be found in the record store."""

    kind = ErrorKind.DOCUMENT_NOT_FOUND


class InvalidTransitionError(ProcessorError):
    """Raised when a state transition would break the pipeline's invariants."""

    kind = ErrorKind.INVALID_TRANSITION


class InsufficientTextError(ProcessorError):
    """Raised when cleaned text is shorter than the configured minimum."""

    kind = ErrorKind.INSUFFICIENT_TEXT


class LowQualityError(ProcessorError):
    """Raised when cleaned text scores below the quality gate."""

    kind = ErrorKind.LOW_QUALITY


class NotReadyError(ProcessorError):
    """Raised when a document is not yet usable for question generation."""

    kind = ErrorKind.NOT_READY


class ProcessingCancelledError(ProcessorError):
    """Raised into a run whose pipeline task was cancelled before it finished."""
