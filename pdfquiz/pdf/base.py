from abc import ABC, abstractmethod

from pdfquiz.pdf.models import PdfContent


class BasePdfExtractor(ABC):
    """Contract for all PDF text extraction adapters."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> PdfContent:
        """Decode PDF bytes page by page.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            PdfContent with one string per page, text runs joined by single spaces.

        Raises:
            PdfDecodeError: if the engine cannot decode the document.
        """
