from dataclasses import dataclass, field


@dataclass(frozen=True)
class PdfContent:
    """Raw engine output: one text string per page."""

    pages: list[str] = field(default_factory=list)
    has_images: bool = False


@dataclass(frozen=True)
class ExtractionResult:
    """Text extracted from a validated PDF payload."""

    text: str
    page_count: int
    has_images: bool = False
