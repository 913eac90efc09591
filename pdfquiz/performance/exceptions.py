from pdfquiz.processor.errors import ClassifiedError, ErrorKind


class AdmissionDeniedError(ClassifiedError):
    """Raised when the performance guard refuses to start another operation."""

    kind = ErrorKind.ADMISSION_DENIED
