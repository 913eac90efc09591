import pymupdf

from pdfquiz.pdf.base import BasePdfExtractor
from pdfquiz.pdf.exceptions import PdfDecodeError, PdfExtractionError
from pdfquiz.pdf.models import PdfContent
from pdfquiz.processor.errors import DecodeReason, decode_reason_from_message

# Index of the word text in the tuples returned by page.get_text("words").
_WORD_TEXT = 4


class PyMuPdfAdapter(BasePdfExtractor):
    """Extracts text from PDF using PyMuPDF."""

    def extract(self, pdf_bytes: bytes) -> PdfContent:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                if doc.needs_pass:
                    raise PdfDecodeError(
                        "pymupdf extraction failed: document requires a password",
                        reason=DecodeReason.PASSWORD_PROTECTED,
                    )
                pages: list[str] = []
                has_images = False
                for page in doc:
                    words = page.get_text("words")
                    pages.append(" ".join(word[_WORD_TEXT] for word in words))
                    has_images = has_images or bool(page.get_images())
            return PdfContent(pages=pages, has_images=has_images)
        except PdfExtractionError:
            raise
        except pymupdf.FileDataError as exc:
            raise PdfDecodeError(
                f"pymupdf extraction failed: {exc}",
                reason=decode_reason_from_message(str(exc)) or DecodeReason.MALFORMED,
            ) from exc
        except Exception as exc:
            raise PdfDecodeError(
                f"pymupdf extraction failed: {exc}",
                reason=decode_reason_from_message(str(exc)),
            ) from exc
