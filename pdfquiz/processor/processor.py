import asyncio
import time

from pdfquiz.logging.logger import Log
from pdfquiz.processor.errors import ProcessingError, ProcessingFailure, classify_error
from pdfquiz.processor.exceptions import ProcessingCancelledError
from pdfquiz.processor.pipeline import PipelineContext, PipelineStep
from pdfquiz.processor.state_machine import ProcessingStateMachine


class Processor:
    """Runs pipeline steps for one document run and records every transition.

    Pipeline: load -> extract -> clean -> score -> validate -> complete.
    """

    def __init__(
        self,
        state_machine: ProcessingStateMachine,
        steps: list[PipelineStep],
    ) -> None:
        self._state_machine = state_machine
        self._steps = steps

    async def process(self, context: PipelineContext) -> PipelineContext | None:
        """Run all steps and mark the run completed.

        Returns None when the run was reset or superseded while in flight.
        A cancelled run is failed as recoverable before the cancellation propagates.

        Raises:
            ProcessingFailure: carrying the classified error once the run is failed.
        """
        Log.info(
            f"Processing document {context.document_id}", generation=context.generation
        )
        started = time.perf_counter()
        try:
            for step in self._steps:
                if not await self._state_machine.advance(
                    context.document_id,
                    context.generation,
                    step.PROGRESS,
                    step.MESSAGE,
                ):
                    Log.info(
                        f"Run {context.generation} of document {context.document_id} "
                        "is no longer active, stopping"
                    )
                    return None
                context = await step.run(context)

            if context.extraction is None or context.quality is None:
                raise ValueError("Pipeline finished without extraction and quality results")
            completed = await self._state_machine.complete(
                context.document_id,
                context.generation,
                extracted_text=context.cleaned_text,
                page_count=context.extraction.page_count,
                quality_score=context.quality.readability_score,
                processing_duration=time.perf_counter() - started,
                has_images=context.extraction.has_images,
            )
            return context if completed else None
        except asyncio.CancelledError:
            await self._record_failure(
                context,
                ProcessingCancelledError(
                    "Processing was interrupted. Please try again.",
                    document_id=context.document_id,
                ),
            )
            raise
        except Exception as exc:
            error = await self._record_failure(context, exc)
            raise ProcessingFailure(error) from exc

    async def _record_failure(
        self, context: PipelineContext, exc: BaseException
    ) -> ProcessingError:
        """Fail the run. An error while storing the failure becomes the reported error."""
        try:
            error = await self._state_machine.fail(
                context.document_id, context.generation, exc
            )
        except Exception as store_exc:
            return classify_error(store_exc)
        return error or classify_error(exc)
