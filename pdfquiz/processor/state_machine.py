"""Per-document pipeline state: uploading -> processing -> completed | failed."""

import asyncio
import itertools
import weakref
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Any, NoReturn

from pdfquiz.logging.logger import Log
from pdfquiz.processor.errors import ErrorKind, ProcessingError, classify_error
from pdfquiz.processor.exceptions import DocumentNotFoundError, InvalidTransitionError
from pdfquiz.processor.models import (
    Document,
    DocumentMetadata,
    ProcessingStatus,
    ProcessingStep,
    UploadStatus,
    step_for_progress,
)
from pdfquiz.storage.base import BaseDocumentStore

_DEFAULT_MESSAGES: dict[UploadStatus, str] = {
    UploadStatus.UPLOADING: "Uploading file...",
    UploadStatus.COMPLETED: "Processing completed successfully",
    UploadStatus.FAILED: "Processing failed",
}


def default_message(status: UploadStatus, progress: int) -> str:
    if status is not UploadStatus.PROCESSING:
        return _DEFAULT_MESSAGES[status]
    if progress < 30:
        return "Extracting text from PDF..."
    if progress < 80:
        return "Processing and cleaning text..."
    return "Finalizing processing..."


@dataclass(slots=True)
class _Run:
    generation: int
    status: UploadStatus
    progress: int
    step: ProcessingStep
    message: str
    error: ProcessingError | None = None


class ProcessingStateMachine:
    """Owns every status transition of every document.

    Transitions for one document are serialized by a per-document lock. Each one
    writes the record store first and only then updates the in-memory run, so a
    store failure leaves the run as it was. start_upload issues a generation
    number; calls carrying an older generation belong to an abandoned run and
    are ignored. The most recent finished runs stay in memory, older ones are
    projected from the record store.
    """

    def __init__(self, store: BaseDocumentStore, max_finished_runs: int = 1000) -> None:
        self._store = store
        self._max_finished_runs = max_finished_runs
        self._active: dict[str, _Run] = {}
        self._finished: OrderedDict[str, _Run] = OrderedDict()
        self._generations = itertools.count(1)
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    async def start_upload(self, document: Document) -> int:
        """Begin a new run for a stored document and return its generation.

        Raises:
            InvalidTransitionError: if the document already has an active run.
            StorageError: if the record store cannot be written.
        """
        async with self._lock(document.id):
            current = self._active.get(document.id)
            if current is not None:
                raise InvalidTransitionError(
                    f"Document {document.id} already has an active run",
                    document_id=document.id,
                    generation=current.generation,
                )
            await self._write(
                document.id,
                upload_status=UploadStatus.UPLOADING,
                processing_progress=0,
                error_message=None,
                error_code=None,
                extracted_text=None,
                text_length=0,
                processed_at=None,
            )
            generation = next(self._generations)
            self._finished.pop(document.id, None)
            self._active[document.id] = _Run(
                generation=generation,
                status=UploadStatus.UPLOADING,
                progress=0,
                step=ProcessingStep.UPLOADING,
                message=default_message(UploadStatus.UPLOADING, 0),
            )
        Log.info(f"Document {document.id} upload started", generation=generation)
        return generation

    async def advance(
        self,
        document_id: str,
        generation: int,
        progress: int,
        message: str,
        step: ProcessingStep | None = None,
    ) -> bool:
        """Record progress for an active run.

        Returns False without changing anything when the run is unknown, reset,
        stale or already terminal.

        Raises:
            InvalidTransitionError: if progress is outside [0, 100) or goes backwards.
            StorageError: if the record store cannot be written.
        """
        async with self._lock(document_id):
            run = self._live_run(document_id, generation)
            if run is None:
                return False
            if not 0 <= progress < 100:
                self._reject(document_id, f"progress {progress} is outside [0, 100)")
            if progress < run.progress:
                self._reject(
                    document_id,
                    f"progress cannot go back from {run.progress} to {progress}",
                )

            status = UploadStatus.PROCESSING if progress > 0 else run.status
            if step is None:
                step = step_for_progress(progress) if status is UploadStatus.PROCESSING else run.step
            await self._write(document_id, upload_status=status, processing_progress=progress)
            run.status = status
            run.progress = progress
            run.step = step
            run.message = message
        Log.debug(f"Document {document_id} at {progress}%: {message}")
        return True

    async def complete(
        self,
        document_id: str,
        generation: int,
        *,
        extracted_text: str,
        page_count: int,
        quality_score: float,
        processing_duration: float,
        has_images: bool = False,
    ) -> bool:
        """Mark a run completed and store its text and metadata."""
        async with self._lock(document_id):
            run = self._live_run(document_id, generation)
            if run is None:
                return False
            await self._write(
                document_id,
                upload_status=UploadStatus.COMPLETED,
                processing_progress=100,
                extracted_text=extracted_text,
                text_length=len(extracted_text),
                error_message=None,
                error_code=None,
                processed_at=datetime.now(),
                metadata=DocumentMetadata(
                    page_count=page_count,
                    quality_score=quality_score,
                    processing_duration=processing_duration,
                    has_images=has_images,
                ),
            )
            run.progress = 100
            run.step = ProcessingStep.COMPLETED
            self._finish(document_id, run, UploadStatus.COMPLETED)
        Log.info(
            f"Document {document_id} completed",
            text_length=len(extracted_text),
            quality_score=round(quality_score, 2),
        )
        return True

    async def fail(
        self,
        document_id: str,
        generation: int | None,
        error: BaseException | ProcessingError,
    ) -> ProcessingError | None:
        """Classify error and mark the run failed, keeping its last progress.

        Passing generation=None fails whatever run is active. Returns None and
        does nothing when there is no run to fail. When the failure cannot be
        stored, the run is still failed in memory with the storage error and
        that error is raised.
        """
        async with self._lock(document_id):
            run = self._active.get(document_id)
            if run is None:
                Log.debug(f"Ignoring failure for document {document_id}: no active run")
                return None
            if generation is not None and run.generation != generation:
                Log.debug(f"Ignoring failure for stale run {generation} of {document_id}")
                return None

            processing_error = classify_error(error)
            try:
                await self._write(
                    document_id,
                    upload_status=UploadStatus.FAILED,
                    error_message=processing_error.message,
                    error_code=processing_error.kind.value,
                )
            except Exception as exc:
                storage_error = classify_error(exc)
                self._finish(document_id, run, UploadStatus.FAILED, storage_error)
                Log.error(
                    f"Document {document_id} failed but the failure was not stored: "
                    f"{storage_error.message}",
                    kind=processing_error.kind.value,
                )
                raise
            self._finish(document_id, run, UploadStatus.FAILED, processing_error)
        Log.error(
            f"Document {document_id} failed: {processing_error.message}",
            kind=processing_error.kind.value,
            recoverable=processing_error.recoverable,
            retryable=processing_error.retryable,
        )
        return processing_error

    def reset(self, document_id: str) -> None:
        """Forget the current run. Work still in flight for it will be ignored."""
        active = self._active.pop(document_id, None)
        finished = self._finished.pop(document_id, None)
        if active is not None or finished is not None:
            Log.info(f"Document {document_id} reset")

    async def status(self, document_id: str) -> ProcessingStatus:
        """Project the document and its last transition into a status record.

        Raises:
            DocumentNotFoundError: if the document is neither tracked nor stored.
        """
        run = self._active.get(document_id) or self._finished.get(document_id)
        if run is not None:
            return ProcessingStatus(
                document_id=document_id,
                status=run.status,
                progress=run.progress,
                current_step=run.step,
                message=run.message,
                error=run.error,
            )
        document = await asyncio.to_thread(self._store.get, document_id)
        status = document.upload_status
        progress = document.processing_progress
        if status is UploadStatus.UPLOADING or (
            status is UploadStatus.FAILED and progress == 0
        ):
            step = ProcessingStep.UPLOADING
        else:
            step = step_for_progress(progress)
        message = document.error_message or default_message(status, progress)
        error = None
        if status is UploadStatus.FAILED and document.error_code:
            error = ProcessingError.of(ErrorKind(document.error_code), message)
        return ProcessingStatus(
            document_id=document_id,
            status=status,
            progress=progress,
            current_step=step,
            message=message,
            error=error,
        )

    async def can_retry(self, document_id: str) -> bool:
        """Return True when the run failed with an error the user can recover from."""
        try:
            status = await self.status(document_id)
        except DocumentNotFoundError:
            return False
        if status.status is not UploadStatus.FAILED or status.error is None:
            return False
        return status.error.recoverable

    def active_generation(self, document_id: str) -> int | None:
        run = self._active.get(document_id)
        return None if run is None else run.generation

    def _lock(self, document_id: str) -> asyncio.Lock:
        lock = self._locks.get(document_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[document_id] = lock
        return lock

    async def _write(self, document_id: str, **fields: Any) -> None:
        write = asyncio.ensure_future(
            asyncio.to_thread(self._store.update, document_id, **fields)
        )
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            # the worker thread cannot be stopped; let it land before the next write
            await asyncio.wait({write})
            raise

    def _finish(
        self,
        document_id: str,
        run: _Run,
        status: UploadStatus,
        error: ProcessingError | None = None,
    ) -> None:
        run.status = status
        run.error = error
        run.message = error.message if error else default_message(status, run.progress)
        if self._active.get(document_id) is not run:
            return
        del self._active[document_id]
        self._finished[document_id] = run
        self._finished.move_to_end(document_id)
        while len(self._finished) > self._max_finished_runs:
            self._finished.popitem(last=False)

    def _live_run(self, document_id: str, generation: int) -> _Run | None:
        run = self._active.get(document_id)
        if run is None or run.generation != generation:
            Log.debug(f"Ignoring update for inactive run {generation} of {document_id}")
            return None
        return run

    def _reject(self, document_id: str, reason: str) -> NoReturn:
        Log.error(f"Invalid transition for document {document_id}: {reason}")
        raise InvalidTransitionError(
            f"Invalid transition for document {document_id}: {reason}",
            document_id=document_id,
        )
