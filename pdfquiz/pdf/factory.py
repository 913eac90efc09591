from pdfquiz.config.settings import Settings
from pdfquiz.logging.logger import Log
from pdfquiz.pdf.base import BasePdfExtractor
from pdfquiz.pdf.pdfplumber_adapter import PdfPlumberAdapter
from pdfquiz.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfExtractorFactory:
    """Picks the PDF text engine named by the PDF_ENGINE setting."""

    ENGINES: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        name = settings.pdf_engine.strip().lower()
        engine_cls = cls.ENGINES.get(name)
        if engine_cls is None:
            raise ValueError(
                f"PDF_ENGINE={settings.pdf_engine!r} is not supported. "
                f"Set it to one of: {', '.join(cls.ENGINES)}"
            )
        Log.debug(f"Using {name} for PDF text extraction")
        return engine_cls()
