import asyncio

from pdfquiz.logging.logger import Log
from pdfquiz.pdf.extractor import TextExtractor
from pdfquiz.processor.exceptions import InsufficientTextError, LowQualityError
from pdfquiz.processor.pipeline import PipelineContext, PipelineStep
from pdfquiz.quality.scorer import QualityScorer
from pdfquiz.storage.base import BaseDocumentStore, BaseObjectStore
from pdfquiz.text.cleaner import TextCleaner


class LoadDocumentStep(PipelineStep):
    PROGRESS = 10
    MESSAGE = "Loading document from storage..."

    def __init__(
        self,
        object_store: BaseObjectStore,
        doc_store: BaseDocumentStore,
    ) -> None:
        self._object_store = object_store
        self._doc_store = doc_store

    async def run(self, context: PipelineContext) -> PipelineContext:
        document = await asyncio.to_thread(self._doc_store.get, context.document_id)
        context.document = document
        if context.payload is None:
            context.payload = await asyncio.to_thread(
                self._object_store.get, document.file_url
            )
        Log.info(
            f"Loaded {len(context.payload)} bytes for document {context.document_id}"
        )
        return context


class ExtractTextStep(PipelineStep):
    PROGRESS = 15
    MESSAGE = "Extracting text from PDF..."

    def __init__(self, extractor: TextExtractor) -> None:
        self._extractor = extractor

    async def run(self, context: PipelineContext) -> PipelineContext:
        if context.document is None or context.payload is None:
            raise ValueError("PipelineContext.document must be loaded before extraction")
        context.extraction = await self._extractor.extract(
            context.payload,
            context.document.mime_type,
            context.document.file_size,
        )
        Log.info(
            f"Extracted {len(context.extraction.text)} chars from document "
            f"{context.document_id}"
        )
        return context


class CleanTextStep(PipelineStep):
    PROGRESS = 30
    MESSAGE = "Processing and cleaning text..."

    def __init__(self, cleaner: TextCleaner) -> None:
        self._cleaner = cleaner

    async def run(self, context: PipelineContext) -> PipelineContext:
        if context.extraction is None:
            raise ValueError("PipelineContext.extraction must be set before cleaning")
        context.cleaned_text = await self._cleaner.clean_async(context.extraction.text)
        Log.info(
            f"Cleaned document {context.document_id}: "
            f"{len(context.extraction.text)} -> {len(context.cleaned_text)} chars"
        )
        return context


class ScoreQualityStep(PipelineStep):
    PROGRESS = 60
    MESSAGE = "Analyzing text quality..."

    def __init__(self, scorer: QualityScorer) -> None:
        self._scorer = scorer

    async def run(self, context: PipelineContext) -> PipelineContext:
        if context.extraction is None:
            raise ValueError("PipelineContext.extraction must be set before scoring")
        context.quality = self._scorer.score(
            context.cleaned_text,
            page_count=context.extraction.page_count,
            has_images=context.extraction.has_images,
        )
        Log.info(
            f"Scored document {context.document_id}: "
            f"readability {context.quality.readability_score:.1f}"
        )
        return context


class ValidateTextStep(PipelineStep):
    PROGRESS = 80
    MESSAGE = "Validating extracted text..."

    def __init__(
        self,
        scorer: QualityScorer,
        *,
        min_text_length: int = 100,
        short_text_warning_length: int = 500,
    ) -> None:
        self._scorer = scorer
        self._min_text_length = min_text_length
        self._short_text_warning_length = short_text_warning_length

    async def run(self, context: PipelineContext) -> PipelineContext:
        if context.quality is None:
            raise ValueError("PipelineContext.quality must be set before validation")
        length = len(context.cleaned_text)
        if length < self._min_text_length:
            raise InsufficientTextError(
                "Extracted text is too short for question generation. "
                "Please use a longer document.",
                text_length=length,
                min_text_length=self._min_text_length,
            )
        if length < self._short_text_warning_length:
            Log.warning(
                f"Document {context.document_id} text is short ({length} chars); "
                "question generation may be limited"
            )
        score = context.quality.readability_score
        if not self._scorer.is_acceptable(score):
            raise LowQualityError(
                "Extracted text quality is too low for question generation",
                quality_score=round(score, 2),
                threshold=self._scorer.threshold,
            )
        return context
