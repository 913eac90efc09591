import io
from collections.abc import Iterator

import pdfplumber
from pdfminer.pdfdocument import PDFEncryptionError, PDFPasswordIncorrect
from pdfminer.pdfparser import PDFSyntaxError

from pdfquiz.pdf.base import BasePdfExtractor
from pdfquiz.pdf.exceptions import PdfDecodeError, PdfExtractionError
from pdfquiz.pdf.models import PdfContent
from pdfquiz.processor.errors import DecodeReason, decode_reason_from_message


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield exc and the pdfminer errors pdfplumber wraps inside it."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        wrapped = current.args[0] if current.args else None
        if isinstance(wrapped, BaseException):
            current = wrapped
        else:
            current = current.__cause__ or current.__context__


def _decode_reason(exc: BaseException) -> DecodeReason | None:
    for error in _exception_chain(exc):
        if isinstance(error, PDFPasswordIncorrect):
            return DecodeReason.PASSWORD_PROTECTED
        if isinstance(error, PDFEncryptionError):
            return DecodeReason.ENCRYPTED
        if isinstance(error, PDFSyntaxError):
            return DecodeReason.MALFORMED
    return decode_reason_from_message(str(exc))


class PdfPlumberAdapter(BasePdfExtractor):
    """Extracts text from PDF using pdfplumber."""

    def extract(self, pdf_bytes: bytes) -> PdfContent:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages: list[str] = []
                has_images = False
                for page in pdf.pages:
                    words = page.extract_words()
                    pages.append(" ".join(word["text"] for word in words))
                    has_images = has_images or bool(page.images)
            return PdfContent(pages=pages, has_images=has_images)
        except PdfExtractionError:
            raise
        except Exception as exc:
            raise PdfDecodeError(
                f"pdfplumber extraction failed: {exc}",
                reason=_decode_reason(exc),
            ) from exc
