from pdfquiz.processor.errors import ClassifiedError, ErrorKind


class GenerationError(ClassifiedError):
    """Raised when question generation fails."""

    kind = ErrorKind.GENERATION_FAILED


class GenerationValidationError(GenerationError):
    """Raised when the generated questions fail domain validation."""


class InvalidRequestError(GenerationError):
    """Raised when question options are out of range."""

    kind = ErrorKind.INVALID_REQUEST


class GenerationNetworkError(GenerationError):
    """Raised when the AI provider cannot be reached."""

    kind = ErrorKind.NETWORK_ERROR


class GenerationTimeoutError(GenerationError):
    """Raised when the AI provider does not answer in time."""

    kind = ErrorKind.TIMEOUT


class RateLimitedError(GenerationError):
    """Raised when the AI provider throttles requests."""

    kind = ErrorKind.RATE_LIMITED


class ServiceBusyError(GenerationError):
    """Raised when the AI provider is overloaded or failing internally."""

    kind = ErrorKind.SERVICE_BUSY


class QuotaExceededError(GenerationError):
    """Raised when the AI account has run out of quota."""

    kind = ErrorKind.QUOTA_EXCEEDED


class InvalidCredentialsError(GenerationError):
    """Raised when the AI provider rejects the configured API key."""

    kind = ErrorKind.INVALID_CREDENTIALS


class ContextLengthExceededError(GenerationError):
    """Raised when the document text does not fit the model context."""

    kind = ErrorKind.CONTEXT_LENGTH_EXCEEDED


ERRORS_BY_KIND: dict[ErrorKind, type[GenerationError]] = {
    error_cls.kind: error_cls
    for error_cls in (
        GenerationNetworkError,
        GenerationTimeoutError,
        RateLimitedError,
        ServiceBusyError,
        QuotaExceededError,
        InvalidCredentialsError,
        ContextLengthExceededError,
    )
}
