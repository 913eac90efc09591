import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from pdfquiz.pdf.base import BasePdfExtractor
from pdfquiz.pdf.extractor import TextExtractor
from pdfquiz.pdf.models import PdfContent
from pdfquiz.processor.errors import ErrorKind, ProcessingFailure
from pdfquiz.processor.models import Document, ProcessingStep, UploadStatus
from pdfquiz.processor.pipeline import PipelineContext, PipelineStep
from pdfquiz.processor.processor import Processor
from pdfquiz.processor.state_machine import ProcessingStateMachine
from pdfquiz.processor.steps import (
    CleanTextStep,
    ExtractTextStep,
    LoadDocumentStep,
    ScoreQualityStep,
    ValidateTextStep,
)
from pdfquiz.quality.scorer import QualityScorer
from pdfquiz.storage.base import BaseObjectStore
from pdfquiz.storage.exceptions import StorageError
from pdfquiz.storage.memory_document_store import InMemoryDocumentStore
from pdfquiz.text.cleaner import TextCleaner

READABLE_TEXT = " ".join(["The cat sat on the mat."] * 40)


class OutageDocumentStore(InMemoryDocumentStore):
    """Fails every update once progress reaches `down_from`."""

    def __init__(self, down_from: int) -> None:
        super().__init__()
        self._down_from = down_from
        self._down = False

    def update(self, document_id: str, **fields: Any) -> Document:
        if fields.get("processing_progress", 0) >= self._down_from:
            self._down = True
        if self._down:
            raise StorageError("database connection lost")
        return super().update(document_id, **fields)


def _make_document(file_size: int = 1024) -> Document:
    return Document(
        id="doc-1",
        filename="notes.pdf",
        file_size=file_size,
        mime_type="application/pdf",
        file_url="local://doc-1.pdf",
    )


def _make_pipeline(
    pages: list[str] | None = None,
    document: Document | None = None,
) -> tuple[Processor, ProcessingStateMachine, InMemoryDocumentStore, MagicMock, MagicMock]:
    doc_store = InMemoryDocumentStore()
    doc_store.insert(document or _make_document())
    state_machine = ProcessingStateMachine(doc_store)
    object_store = MagicMock(spec=BaseObjectStore)
    object_store.get.return_value = b"%PDF-stored"
    engine = MagicMock(spec=BasePdfExtractor)
    engine.extract.return_value = PdfContent(pages=pages or [READABLE_TEXT])
    scorer = QualityScorer()
    steps: list[PipelineStep] = [
        LoadDocumentStep(object_store=object_store, doc_store=doc_store),
        ExtractTextStep(extractor=TextExtractor(engine)),
        CleanTextStep(cleaner=TextCleaner()),
        ScoreQualityStep(scorer=scorer),
        ValidateTextStep(scorer),
    ]
    processor = Processor(state_machine=state_machine, steps=steps)
    return processor, state_machine, doc_store, object_store, engine


class TestProcessor:
    @pytest.mark.asyncio
    async def test_happy_path_completes(self) -> None:
        processor, state_machine, doc_store, _, _ = _make_pipeline()
        generation = await state_machine.start_upload(doc_store.get("doc-1"))

        result = await processor.process(
            PipelineContext(document_id="doc-1", generation=generation, payload=b"%PDF")
        )

        assert result is not None
        assert result.cleaned_text == READABLE_TEXT
        status = await state_machine.status("doc-1")
        assert status.status is UploadStatus.COMPLETED
        assert status.progress == 100
        document = doc_store.get("doc-1")
        assert document.extracted_text == READABLE_TEXT
        assert document.metadata.quality_score == 100.0
        assert document.metadata.page_count == 1
        assert document.metadata.processing_duration is not None

    @pytest.mark.asyncio
    async def test_loads_payload_from_object_store(self) -> None:
        processor, state_machine, doc_store, object_store, engine = _make_pipeline()
        generation = await state_machine.start_upload(doc_store.get("doc-1"))

        await processor.process(PipelineContext(document_id="doc-1", generation=generation))

        object_store.get.assert_called_once_with("local://doc-1.pdf")
        engine.extract.assert_called_once_with(b"%PDF-stored")

    @pytest.mark.asyncio
    async def test_short_text_fails_with_insufficient_text(self) -> None:
        processor, state_machine, doc_store, _, _ = _make_pipeline(pages=["Short"])
        generation = await state_machine.start_upload(doc_store.get("doc-1"))

        with pytest.raises(ProcessingFailure) as exc_info:
            await processor.process(
                PipelineContext(document_id="doc-1", generation=generation, payload=b"%PDF")
            )

        error = exc_info.value.error
        assert error.kind is ErrorKind.INSUFFICIENT_TEXT
        assert "too short" in error.message
        status = await state_machine.status("doc-1")
        assert status.status is UploadStatus.FAILED
        assert status.progress == 80
        assert status.current_step is ProcessingStep.VALIDATING
        assert await state_machine.can_retry("doc-1") is True

    @pytest.mark.asyncio
    async def test_low_quality_text_fails(self) -> None:
        dense = " ".join(["internationalization"] * 60) + "."
        processor, state_machine, doc_store, _, _ = _make_pipeline(pages=[dense])
        generation = await state_machine.start_upload(doc_store.get("doc-1"))

        with pytest.raises(ProcessingFailure) as exc_info:
            await processor.process(
                PipelineContext(document_id="doc-1", generation=generation, payload=b"%PDF")
            )

        assert exc_info.value.error.kind is ErrorKind.LOW_QUALITY

    @pytest.mark.asyncio
    async def test_empty_file_fails_before_decoding(self) -> None:
        processor, state_machine, doc_store, _, engine = _make_pipeline(
            document=_make_document(file_size=0)
        )
        generation = await state_machine.start_upload(doc_store.get("doc-1"))

        with pytest.raises(ProcessingFailure) as exc_info:
            await processor.process(
                PipelineContext(document_id="doc-1", generation=generation, payload=b"")
            )

        assert exc_info.value.error.kind is ErrorKind.EMPTY_OR_CORRUPTED
        assert exc_info.value.error.recoverable is False
        engine.extract.assert_not_called()
        assert await state_machine.can_retry("doc-1") is False

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_classified(self) -> None:
        processor, state_machine, doc_store, _, engine = _make_pipeline()
        engine.extract.side_effect = RuntimeError("engine crashed")
        generation = await state_machine.start_upload(doc_store.get("doc-1"))

        with pytest.raises(ProcessingFailure) as exc_info:
            await processor.process(
                PipelineContext(document_id="doc-1", generation=generation, payload=b"%PDF")
            )

        assert exc_info.value.error.kind is ErrorKind.PROCESSING_FAILED
        assert (await state_machine.status("doc-1")).status is UploadStatus.FAILED

    @pytest.mark.asyncio
    async def test_stops_when_run_is_reset(self) -> None:
        doc_store = InMemoryDocumentStore()
        doc_store.insert(_make_document())
        state_machine = ProcessingStateMachine(doc_store)
        second = MagicMock(spec=PipelineStep)
        second.PROGRESS = 30
        second.MESSAGE = "second"

        async def reset_during_run(context: PipelineContext) -> PipelineContext:
            state_machine.reset(context.document_id)
            return context

        first = MagicMock(spec=PipelineStep)
        first.PROGRESS = 10
        first.MESSAGE = "first"
        first.run = AsyncMock(side_effect=reset_during_run)
        second.run = AsyncMock()
        processor = Processor(state_machine=state_machine, steps=[first, second])
        generation = await state_machine.start_upload(doc_store.get("doc-1"))

        result = await processor.process(
            PipelineContext(document_id="doc-1", generation=generation)
        )

        assert result is None
        second.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_progress_never_decreases(self) -> None:
        processor, state_machine, doc_store, _, _ = _make_pipeline()
        generation = await state_machine.start_upload(doc_store.get("doc-1"))
        seen: list[int] = []
        original_advance = state_machine.advance

        async def record(*args, **kwargs):  # type: ignore[no-untyped-def]
            seen.append(args[2])
            return await original_advance(*args, **kwargs)

        state_machine.advance = record  # type: ignore[method-assign]
        await processor.process(
            PipelineContext(document_id="doc-1", generation=generation, payload=b"%PDF")
        )

        assert seen == sorted(seen)
        assert seen == [10, 15, 30, 60, 80]

    @pytest.mark.asyncio
    async def test_store_outage_surfaces_as_processing_failure(self) -> None:
        doc_store = OutageDocumentStore(down_from=30)
        doc_store.insert(_make_document())
        state_machine = ProcessingStateMachine(doc_store)
        first = MagicMock(spec=PipelineStep)
        first.PROGRESS = 10
        first.MESSAGE = "first"
        first.run = AsyncMock(side_effect=lambda context: context)
        second = MagicMock(spec=PipelineStep)
        second.PROGRESS = 30
        second.MESSAGE = "second"
        second.run = AsyncMock()
        processor = Processor(state_machine=state_machine, steps=[first, second])
        generation = await state_machine.start_upload(doc_store.get("doc-1"))

        with pytest.raises(ProcessingFailure) as exc_info:
            await processor.process(PipelineContext(document_id="doc-1", generation=generation))

        error = exc_info.value.error
        assert error.kind is ErrorKind.STORAGE_UNAVAILABLE
        assert error.retryable is True
        second.run.assert_not_awaited()
        status = await state_machine.status("doc-1")
        assert status.status is UploadStatus.FAILED
        assert status.progress == 10
        assert await state_machine.can_retry("doc-1") is True

    @pytest.mark.asyncio
    async def test_cancelled_run_is_failed_and_retryable(self) -> None:
        doc_store = InMemoryDocumentStore()
        doc_store.insert(_make_document())
        state_machine = ProcessingStateMachine(doc_store)
        started = asyncio.Event()

        async def block(context: PipelineContext) -> PipelineContext:
            started.set()
            await asyncio.Event().wait()
            return context

        step = MagicMock(spec=PipelineStep)
        step.PROGRESS = 15
        step.MESSAGE = "Extracting text from PDF..."
        step.run = AsyncMock(side_effect=block)
        processor = Processor(state_machine=state_machine, steps=[step])
        generation = await state_machine.start_upload(doc_store.get("doc-1"))

        task = asyncio.create_task(
            processor.process(PipelineContext(document_id="doc-1", generation=generation))
        )
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        status = await state_machine.status("doc-1")
        assert status.status is UploadStatus.FAILED
        assert status.progress == 15
        assert status.error is not None
        assert status.error.kind is ErrorKind.PROCESSING_FAILED
        assert status.error.recoverable is True
        assert doc_store.get("doc-1").upload_status is UploadStatus.FAILED
        assert await state_machine.can_retry("doc-1") is True
