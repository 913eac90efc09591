import asyncio

from pdfquiz.logging.logger import Log
from pdfquiz.pdf.base import BasePdfExtractor
from pdfquiz.pdf.exceptions import (
    EmptyFileError,
    ExtractionTimeoutError,
    FileTooLargeError,
    NoExtractableTextError,
    PdfDecodeError,
    UnsupportedFormatError,
)
from pdfquiz.pdf.models import ExtractionResult
from pdfquiz.processor.errors import DecodeReason

PDF_MIME_TYPE = "application/pdf"

_DECODE_MESSAGES: dict[DecodeReason | None, str] = {
    DecodeReason.PASSWORD_PROTECTED: (
        "This PDF is password-protected. Please provide an unprotected version."
    ),
    DecodeReason.ENCRYPTED: (
        "This PDF is encrypted and cannot be processed. "
        "Please provide an unencrypted version."
    ),
    DecodeReason.MALFORMED: (
        "PDF file appears to be corrupted. Please try a different file."
    ),
    None: (
        "Unable to extract text from PDF. "
        "Please ensure the file is not corrupted and try again."
    ),
}


class TextExtractor:
    """Validates an uploaded payload and extracts its text off the event loop."""

    def __init__(
        self,
        engine: BasePdfExtractor,
        *,
        max_file_size_bytes: int = 10 * 1024 * 1024,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._engine = engine
        self._max_file_size_bytes = max_file_size_bytes
        self._timeout_seconds = timeout_seconds

    def validate(self, mime_type: str, size_bytes: int) -> None:
        """Check upload preconditions in order.

        Raises:
            UnsupportedFormatError: if the payload is not a PDF.
            EmptyFileError: if the payload is empty.
            FileTooLargeError: if the payload exceeds the size limit.
        """
        if mime_type != PDF_MIME_TYPE:
            raise UnsupportedFormatError("File must be a PDF document", mime_type=mime_type)
        if size_bytes == 0:
            raise EmptyFileError("File appears to be empty or corrupted")
        if size_bytes > self._max_file_size_bytes:
            limit_mb = self._max_file_size_bytes / (1024 * 1024)
            raise FileTooLargeError(
                f"File size exceeds {limit_mb:g}MB limit",
                size_bytes=size_bytes,
                max_size_bytes=self._max_file_size_bytes,
            )

    async def extract(
        self,
        payload: bytes,
        mime_type: str,
        size_bytes: int | None = None,
    ) -> ExtractionResult:
        """Validate the payload, decode it and return its text.

        Pages are joined with a newline. Short text is not rejected here.

        Raises:
            PdfExtractionError: a subclass naming the failed precondition or decode step.
        """
        size = len(payload) if size_bytes is None else size_bytes
        self.validate(mime_type, size)

        try:
            content = await asyncio.wait_for(
                asyncio.to_thread(self._engine.extract, payload),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ExtractionTimeoutError(
                "PDF processing is taking longer than expected. Please try a smaller file.",
                timeout_seconds=self._timeout_seconds,
            ) from exc
        except PdfDecodeError as exc:
            Log.warning(f"PDF decode failed: {exc}")
            raise PdfDecodeError(
                _DECODE_MESSAGES[exc.reason],
                reason=exc.reason,
                engine_message=str(exc),
            ) from exc

        text = "\n".join(content.pages)
        if not text.strip():
            raise NoExtractableTextError(
                "No text could be extracted from this PDF. "
                "It may contain only scanned images.",
                page_count=len(content.pages),
            )

        Log.info(f"Extracted {len(text)} chars from {len(content.pages)} pages")
        return ExtractionResult(
            text=text,
            page_count=len(content.pages),
            has_images=content.has_images,
        )
