from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pdfquiz.processor.errors import ProcessingError


class UploadStatus(str, Enum):
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadStatus.COMPLETED, UploadStatus.FAILED)


class ProcessingStep(str, Enum):
    UPLOADING = "uploading"
    EXTRACTING = "extracting"
    CLEANING = "cleaning"
    VALIDATING = "validating"
    COMPLETED = "completed"


def step_for_progress(progress: int) -> ProcessingStep:
    """Map a progress percentage to the pipeline step it falls in."""
    if progress >= 100:
        return ProcessingStep.COMPLETED
    if progress >= 80:
        return ProcessingStep.VALIDATING
    if progress >= 30:
        return ProcessingStep.CLEANING
    return ProcessingStep.EXTRACTING


@dataclass(frozen=True)
class DocumentMetadata:
    """Extraction figures stored once a document completes."""

    page_count: int | None = None
    quality_score: float | None = None
    processing_duration: float | None = None
    has_images: bool = False


@dataclass(frozen=True)
class Document:
    """Domain model for an uploaded document. The payload lives in the object store."""

    id: str
    filename: str
    file_size: int
    mime_type: str
    file_url: str
    upload_status: UploadStatus = UploadStatus.UPLOADING
    extracted_text: str | None = None
    text_length: int = 0
    processing_progress: int = 0
    error_message: str | None = None
    error_code: str | None = None
    created_at: datetime = field(default_factory=datetime.now)
    processed_at: datetime | None = None
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["upload_status"] = self.upload_status.value
        data["created_at"] = self.created_at.isoformat()
        data["processed_at"] = self.processed_at.isoformat() if self.processed_at else None
        return data


@dataclass(frozen=True)
class ProcessingStatus:
    """Caller-facing projection of a document and its last transition."""

    document_id: str
    status: UploadStatus
    progress: int
    current_step: ProcessingStep
    message: str
    error: ProcessingError | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "status": self.status.value,
            "progress": self.progress,
            "current_step": self.current_step.value,
            "message": self.message,
            "error": self.error.to_dict() if self.error else None,
        }
