"""Caller-facing API over the document pipeline."""

import asyncio
import time
import uuid

from pdfquiz.config.settings import Settings
from pdfquiz.generation.base import BaseQuestionGenerator
from pdfquiz.generation.factory import QuestionGeneratorFactory
from pdfquiz.generation.models import Question, QuestionOptions
from pdfquiz.logging.logger import Log
from pdfquiz.pdf.extractor import TextExtractor
from pdfquiz.pdf.factory import PdfExtractorFactory
from pdfquiz.performance.exceptions import AdmissionDeniedError
from pdfquiz.performance.guard import PerformanceGuard
from pdfquiz.performance.models import PerformanceConfig, PerformanceSample
from pdfquiz.processor.errors import (
    ErrorKind,
    ProcessingError,
    ProcessingFailure,
    classify_error,
)
from pdfquiz.processor.exceptions import (
    InsufficientTextError,
    LowQualityError,
    NotReadyError,
    ProcessingCancelledError,
)
from pdfquiz.processor.models import Document, ProcessingStatus, UploadStatus
from pdfquiz.processor.pipeline import PipelineContext
from pdfquiz.processor.processor import Processor
from pdfquiz.processor.retry import RetryPolicy
from pdfquiz.processor.state_machine import ProcessingStateMachine
from pdfquiz.processor.steps import (
    CleanTextStep,
    ExtractTextStep,
    LoadDocumentStep,
    ScoreQualityStep,
    ValidateTextStep,
)
from pdfquiz.quality.scorer import QualityScorer
from pdfquiz.storage.base import BaseDocumentStore, BaseObjectStore
from pdfquiz.storage.connection import Database
from pdfquiz.storage.factory import DocumentStoreFactory
from pdfquiz.storage.local_object_store import LocalObjectStore
from pdfquiz.text.cleaner import TextCleaner, estimate_memory_mb

_POLL_INTERVAL_SECONDS = 0.05


class DocumentProcessingService:
    """Uploads documents, runs their pipeline in the background, and generates questions.

    Every error a caller sees is a ProcessingFailure carrying a classified error.
    """

    def __init__(
        self,
        *,
        object_store: BaseObjectStore,
        doc_store: BaseDocumentStore,
        state_machine: ProcessingStateMachine,
        processor: Processor,
        guard: PerformanceGuard,
        scorer: QualityScorer,
        generator: BaseQuestionGenerator,
        retry_policy: RetryPolicy,
        min_text_length: int = 100,
        cleaning_chunk_size: int = 10_000,
    ) -> None:
        self._object_store = object_store
        self._doc_store = doc_store
        self._state_machine = state_machine
        self._processor = processor
        self._guard = guard
        self._scorer = scorer
        self._generator = generator
        self._retry_policy = retry_policy
        self._min_text_length = min_text_length
        self._cleaning_chunk_size = cleaning_chunk_size
        self._tasks: dict[str, asyncio.Task[None]] = {}

    async def upload_and_process(
        self,
        filename: str,
        payload: bytes,
        mime_type: str = "application/pdf",
    ) -> str:
        """Store the payload, create its record and start processing in the background.

        Raises:
            ProcessingFailure: if admission is denied or storage fails.
        """
        document_id = str(uuid.uuid4())
        operation_id = f"document-{document_id}"
        self._admit(operation_id, self._estimate_mb(len(payload)))
        try:
            file_url = await asyncio.to_thread(self._object_store.put, payload, filename)
            document = Document(
                id=document_id,
                filename=filename,
                file_size=len(payload),
                mime_type=mime_type,
                file_url=file_url,
            )
            await asyncio.to_thread(self._doc_store.insert, document)
            generation = await self._state_machine.start_upload(document)
        except Exception as exc:
            self._guard.stop_processing(operation_id)
            raise ProcessingFailure(classify_error(exc)) from exc

        Log.info(f"Uploaded {filename} as document {document_id}", size=len(payload))
        self._spawn(
            PipelineContext(document_id=document_id, generation=generation, payload=payload),
            operation_id,
        )
        return document_id

    async def get_status(self, document_id: str) -> ProcessingStatus:
        """Raises ProcessingFailure when the document is unknown."""
        try:
            return await self._state_machine.status(document_id)
        except Exception as exc:
            raise ProcessingFailure(classify_error(exc)) from exc

    async def retry(self, document_id: str) -> int:
        """Restart processing of a failed document from its stored payload.

        Raises:
            ProcessingFailure: if the last failure cannot be retried or admission is denied.
        """
        if not await self._state_machine.can_retry(document_id):
            raise ProcessingFailure(
                classify_error(
                    NotReadyError(
                        f"Document {document_id} has no recoverable failure to retry",
                        document_id=document_id,
                    )
                )
            )
        try:
            document = await asyncio.to_thread(self._doc_store.get, document_id)
        except Exception as exc:
            raise ProcessingFailure(classify_error(exc)) from exc

        operation_id = f"document-{document_id}"
        self._admit(operation_id, self._estimate_mb(document.file_size))
        try:
            self._state_machine.reset(document_id)
            generation = await self._state_machine.start_upload(document)
        except Exception as exc:
            self._guard.stop_processing(operation_id)
            raise ProcessingFailure(classify_error(exc)) from exc

        Log.info(f"Retrying document {document_id}", generation=generation)
        self._spawn(
            PipelineContext(document_id=document_id, generation=generation),
            operation_id,
        )
        return generation

    async def generate_questions(
        self,
        document_id: str,
        options: QuestionOptions | None = None,
    ) -> list[Question]:
        """Generate questions from a completed document under the retry policy.

        Raises:
            ProcessingFailure: if the document is not ready or generation fails.
        """
        options = options or QuestionOptions()
        try:
            options.validate()
            text = await self._ready_text(document_id)
        except Exception as exc:
            raise ProcessingFailure(classify_error(exc)) from exc

        operation_id = f"questions-{document_id}-{uuid.uuid4()}"
        self._admit(operation_id, self._estimate_mb(len(text)))
        started = time.perf_counter()
        try:
            questions = await self._retry_policy.run(
                lambda: asyncio.to_thread(self._generator.generate, text, options)
            )
        except Exception as exc:
            raise ProcessingFailure(classify_error(exc)) from exc
        finally:
            self._guard.stop_processing(operation_id)

        Log.info(
            f"Generated {len(questions)} questions for document {document_id}",
            seconds=round(time.perf_counter() - started, 2),
        )
        return questions

    async def wait_for(
        self,
        document_id: str,
        timeout_seconds: float | None = None,
    ) -> ProcessingStatus:
        """Wait until the document reaches a terminal status and return it.

        Raises:
            ProcessingFailure: with kind Timeout if the document is still running
                after timeout_seconds, or if the document is unknown.
        """
        task = self._tasks.get(document_id)
        if task is not None:
            done, _ = await asyncio.wait({task}, timeout=timeout_seconds)
            if not done:
                raise _wait_timeout(document_id, timeout_seconds)
            return await self.get_status(document_id)

        deadline = None if timeout_seconds is None else time.monotonic() + timeout_seconds
        while True:
            status = await self.get_status(document_id)
            if status.status.is_terminal:
                return status
            if deadline is not None and time.monotonic() >= deadline:
                raise _wait_timeout(document_id, timeout_seconds)
            await asyncio.sleep(_POLL_INTERVAL_SECONDS)

    async def delete_document(self, document_id: str) -> None:
        """Stop any pipeline for the document, then remove its payload and record.

        Raises:
            ProcessingFailure: if the document is unknown or storage fails.
        """
        task = self._tasks.get(document_id)
        if task is not None:
            await self._cancel({document_id: task})
        try:
            document = await asyncio.to_thread(self._doc_store.get, document_id)
            await asyncio.to_thread(self._object_store.delete, document.file_url)
            await asyncio.to_thread(self._doc_store.delete, document_id)
        except Exception as exc:
            raise ProcessingFailure(classify_error(exc)) from exc
        self._state_machine.reset(document_id)
        Log.info(f"Deleted document {document_id}")

    async def list_documents(self, limit: int | None = None) -> list[Document]:
        """Return stored documents, newest first."""
        try:
            return await asyncio.to_thread(self._doc_store.list_documents, limit)
        except Exception as exc:
            raise ProcessingFailure(classify_error(exc)) from exc

    async def shutdown(self) -> None:
        """Cancel background pipelines and wait for them to finish.

        Cancelled runs are recorded as failed and can be retried.
        """
        await self._cancel(dict(self._tasks))
        self._tasks.clear()

    async def _cancel(self, tasks: dict[str, asyncio.Task[None]]) -> None:
        for task in tasks.values():
            task.cancel()
        await asyncio.gather(*tasks.values(), return_exceptions=True)
        for document_id in tasks:
            # a task cancelled before its first step never reached the processor
            self._guard.stop_processing(f"document-{document_id}")
            try:
                await self._state_machine.fail(
                    document_id,
                    None,
                    ProcessingCancelledError(
                        "Processing was interrupted. Please try again.",
                        document_id=document_id,
                    ),
                )
            except Exception as exc:
                Log.warning(
                    f"Could not record interrupted run of document {document_id}: {exc}"
                )

    async def _ready_text(self, document_id: str) -> str:
        document = await asyncio.to_thread(self._doc_store.get, document_id)
        if document.upload_status is not UploadStatus.COMPLETED:
            raise NotReadyError(
                f"Document {document_id} is {document.upload_status.value}, "
                "questions can be generated once processing has completed",
                document_id=document_id,
            )
        text = document.extracted_text or ""
        if len(text) < self._min_text_length:
            raise InsufficientTextError(
                "Document text is too short for question generation. "
                "Please use a longer document.",
                text_length=len(text),
            )
        score = document.metadata.quality_score or 0.0
        if not self._scorer.is_acceptable(score):
            raise LowQualityError(
                "Extracted text quality is too low for question generation",
                quality_score=round(score, 2),
            )
        return text

    def _admit(self, operation_id: str, estimated_mb: float) -> None:
        decision = self._guard.try_admit(operation_id, estimated_mb)
        if not decision.allowed:
            raise ProcessingFailure(
                classify_error(
                    AdmissionDeniedError(
                        f"Cannot start processing: {decision.reason}",
                        reason=decision.reason,
                    )
                )
            )

    def _estimate_mb(self, length: int) -> float:
        return estimate_memory_mb(length, self._cleaning_chunk_size)

    def _spawn(self, context: PipelineContext, operation_id: str) -> None:
        task = asyncio.create_task(self._run_pipeline(context, operation_id))
        self._tasks[context.document_id] = task
        task.add_done_callback(lambda done: self._forget(context.document_id, done))

    def _forget(self, document_id: str, task: asyncio.Task[None]) -> None:
        if self._tasks.get(document_id) is task:
            del self._tasks[document_id]

    async def _run_pipeline(self, context: PipelineContext, operation_id: str) -> None:
        started = time.perf_counter()
        file_size = len(context.payload or b"")
        quality = 0.0
        text_length = 0
        try:
            result = await self._processor.process(context)
            if result is not None and result.quality is not None:
                quality = result.quality.readability_score / 100
                text_length = len(result.cleaned_text)
        except ProcessingFailure as exc:
            Log.warning(
                f"Pipeline for document {context.document_id} failed: {exc.error.message}",
                kind=exc.error.kind.value,
            )
        finally:
            self._guard.stop_processing(operation_id)
            self._guard.track_metrics(
                PerformanceSample(
                    memory_usage_mb=self._estimate_mb(max(file_size, text_length)),
                    processing_time_ms=(time.perf_counter() - started) * 1000,
                    file_size=file_size,
                    text_length=text_length,
                    quality_score=quality,
                )
            )


def _wait_timeout(document_id: str, timeout_seconds: float | None) -> ProcessingFailure:
    return ProcessingFailure(
        ProcessingError.of(
            ErrorKind.TIMEOUT,
            f"Document {document_id} did not finish within {timeout_seconds}s",
            document_id=document_id,
        )
    )


def build_service(
    settings: Settings,
    database: Database | None = None,
    generator: BaseQuestionGenerator | None = None,
) -> DocumentProcessingService:
    """Build a DocumentProcessingService with all required adapters."""
    object_store = LocalObjectStore(settings.storage_root)
    doc_store = DocumentStoreFactory.create(settings, database)
    state_machine = ProcessingStateMachine(doc_store)
    scorer = QualityScorer(threshold=settings.quality_threshold)
    extractor = TextExtractor(
        PdfExtractorFactory.create(settings),
        max_file_size_bytes=settings.max_file_size_bytes,
        timeout_seconds=settings.extraction_timeout_seconds,
    )
    cleaner = TextCleaner(
        chunk_size=settings.cleaning_chunk_size,
        chunk_threshold_mb=settings.cleaning_chunk_threshold_mb,
        yield_every=settings.cleaning_yield_every,
    )
    steps = [
        LoadDocumentStep(object_store=object_store, doc_store=doc_store),
        ExtractTextStep(extractor=extractor),
        CleanTextStep(cleaner=cleaner),
        ScoreQualityStep(scorer=scorer),
        ValidateTextStep(
            scorer,
            min_text_length=settings.min_text_length,
            short_text_warning_length=settings.short_text_warning_length,
        ),
    ]
    guard = PerformanceGuard(
        PerformanceConfig(
            max_memory_usage_mb=settings.max_memory_usage_mb,
            max_processing_time_ms=settings.max_processing_time_ms,
            max_concurrent_processing=settings.max_concurrent_processing,
            metrics_window_size=settings.metrics_window_size,
            metrics_max_age_hours=settings.metrics_max_age_hours,
        )
    )
    return DocumentProcessingService(
        object_store=object_store,
        doc_store=doc_store,
        state_machine=state_machine,
        processor=Processor(state_machine=state_machine, steps=steps),
        guard=guard,
        scorer=scorer,
        generator=generator or QuestionGeneratorFactory.create(settings),
        retry_policy=RetryPolicy(
            max_attempts=settings.generation_max_attempts,
            backoff_base_seconds=settings.generation_backoff_base_seconds,
        ),
        min_text_length=settings.min_text_length,
        cleaning_chunk_size=settings.cleaning_chunk_size,
    )
