from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar

from pdfquiz.pdf.models import ExtractionResult
from pdfquiz.processor.models import Document
from pdfquiz.quality.models import TextQualityMetrics


@dataclass(slots=True)
class PipelineContext:
    document_id: str
    generation: int
    document: Document | None = None
    payload: bytes | None = None
    extraction: ExtractionResult | None = None
    cleaned_text: str = ""
    quality: TextQualityMetrics | None = None


class PipelineStep(ABC):
    """One stage of the document pipeline.

    The processor records PROGRESS and MESSAGE on the document before run().
    """

    PROGRESS: ClassVar[int]
    MESSAGE: ClassVar[str]

    @abstractmethod
    async def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
