from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class PerformanceConfig:
    """Admission limits and warning thresholds for the performance guard."""

    max_memory_usage_mb: float = 100.0
    max_processing_time_ms: int = 30_000
    max_concurrent_processing: int = 3
    metrics_window_size: int = 100
    metrics_max_age_hours: int = 24
    enable_memory_optimization: bool = True


@dataclass(frozen=True)
class PerformanceSample:
    """Figures recorded for one finished operation.

    quality_score is a 0-1 observability figure, unrelated to the 0-100
    readability gate used for question generation.
    """

    memory_usage_mb: float
    processing_time_ms: float
    file_size: int
    text_length: int
    quality_score: float
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class AdmissionDecision:
    allowed: bool
    reason: str | None = None


@dataclass(frozen=True)
class PerformanceStats:
    average_processing_time_ms: float = 0.0
    average_memory_usage_mb: float = 0.0
    success_rate: float = 0.0
    total_operations: int = 0


@dataclass(frozen=True)
class QueueStatus:
    active_count: int
    max_concurrent: int
    memory_usage_mb: float
    max_memory_mb: float
