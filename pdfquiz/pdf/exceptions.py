from typing import Any

from pdfquiz.processor.errors import ClassifiedError, DecodeReason, ErrorKind


class PdfExtractionError(ClassifiedError):
    """Base exception for all PDF extraction errors."""

    kind = ErrorKind.DECODE_FAILED


class UnsupportedFormatError(PdfExtractionError):
    """Raised when the uploaded file is not a PDF."""

    kind = ErrorKind.UNSUPPORTED_FORMAT


class EmptyFileError(PdfExtractionError):
    """Raised when the uploaded file has no content."""

    kind = ErrorKind.EMPTY_OR_CORRUPTED


class FileTooLargeError(PdfExtractionError):
    """Raised when the uploaded file exceeds the configured size limit."""

    kind = ErrorKind.FILE_TOO_LARGE


class PdfDecodeError(PdfExtractionError):
    """Raised when the PDF engine cannot decode the document."""

    kind = ErrorKind.DECODE_FAILED

    def __init__(
        self,
        message: str,
        reason: DecodeReason | None = None,
        **details: Any,
    ) -> None:
        if reason is not None:
            details["reason"] = reason.value
        super().__init__(message, **details)
        self.reason = reason


class NoExtractableTextError(PdfExtractionError):
    """Raised when a PDF decodes but yields no text (e.g. scanned images)."""

    kind = ErrorKind.NO_EXTRACTABLE_TEXT


class ExtractionTimeoutError(PdfExtractionError):
    """Raised when decoding does not finish within the configured time."""

    kind = ErrorKind.TIMEOUT
