"""Admission control and rolling performance metrics."""

import threading
from collections import deque
from dataclasses import asdict, replace
from datetime import datetime, timedelta
from typing import Any

from pdfquiz.logging.logger import Log
from pdfquiz.performance.models import (
    AdmissionDecision,
    PerformanceConfig,
    PerformanceSample,
    PerformanceStats,
    QueueStatus,
)

_LOW_QUALITY_SAMPLE = 0.5
_RECENT_SAMPLES = 10


class PerformanceGuard:
    """Tracks active operations and recent samples, admitting new work within limits.

    The memory figure is the sum of the estimates given for admitted operations.
    All reads and writes of shared state happen under one lock.
    """

    def __init__(self, config: PerformanceConfig | None = None) -> None:
        self._config = config or PerformanceConfig()
        self._lock = threading.Lock()
        self._active: dict[str, float] = {}
        self._samples: deque[PerformanceSample] = deque(
            maxlen=self._config.metrics_window_size
        )

    @property
    def config(self) -> PerformanceConfig:
        return self._config

    def can_admit(self) -> AdmissionDecision:
        with self._lock:
            return self._decide()

    def try_admit(self, operation_id: str, estimated_mb: float = 0.0) -> AdmissionDecision:
        """Check limits and start the operation in one step."""
        with self._lock:
            if operation_id in self._active:
                return AdmissionDecision(allowed=True)
            decision = self._decide()
            if decision.allowed:
                self._active[operation_id] = estimated_mb
        if not decision.allowed:
            Log.warning(f"Admission denied for {operation_id}: {decision.reason}")
        return decision

    def start_processing(self, operation_id: str, estimated_mb: float = 0.0) -> None:
        with self._lock:
            self._active.setdefault(operation_id, estimated_mb)

    def stop_processing(self, operation_id: str) -> None:
        with self._lock:
            self._active.pop(operation_id, None)

    def current_memory_usage_mb(self) -> float:
        with self._lock:
            return sum(self._active.values())

    def track_metrics(self, sample: PerformanceSample) -> None:
        """Append a sample to the rolling window and warn on exceeded thresholds."""
        with self._lock:
            self._samples.append(sample)
        issues = self._issues(sample)
        if issues:
            Log.warning(f"Performance issues detected: {', '.join(issues)}")

    def optimize_memory(self) -> int:
        """Drop samples older than the configured max age; return how many were dropped."""
        if not self._config.enable_memory_optimization:
            return 0
        cutoff = datetime.now() - timedelta(hours=self._config.metrics_max_age_hours)
        with self._lock:
            kept = [sample for sample in self._samples if sample.timestamp > cutoff]
            dropped = len(self._samples) - len(kept)
            self._samples.clear()
            self._samples.extend(kept)
        if dropped:
            Log.info(f"Dropped {dropped} performance samples older than {cutoff}")
        return dropped

    def get_performance_stats(self) -> PerformanceStats:
        with self._lock:
            samples = list(self._samples)
        if not samples:
            return PerformanceStats()
        successful = sum(1 for sample in samples if sample.quality_score > 0)
        return PerformanceStats(
            average_processing_time_ms=sum(s.processing_time_ms for s in samples)
            / len(samples),
            average_memory_usage_mb=sum(s.memory_usage_mb for s in samples) / len(samples),
            success_rate=successful / len(samples) * 100,
            total_operations=len(samples),
        )

    def get_queue_status(self) -> QueueStatus:
        with self._lock:
            return QueueStatus(
                active_count=len(self._active),
                max_concurrent=self._config.max_concurrent_processing,
                memory_usage_mb=sum(self._active.values()),
                max_memory_mb=self._config.max_memory_usage_mb,
            )

    def get_performance_report(self) -> dict[str, Any]:
        with self._lock:
            recent = list(self._samples)[-_RECENT_SAMPLES:]
        return {
            "config": asdict(self._config),
            "current_status": asdict(self.get_queue_status()),
            "stats": asdict(self.get_performance_stats()),
            "recent_metrics": [sample.to_dict() for sample in recent],
        }

    def recent_samples(self) -> list[PerformanceSample]:
        with self._lock:
            return list(self._samples)

    def update_config(self, **changes: Any) -> None:
        """Replace config values; a new window size keeps the newest samples."""
        with self._lock:
            self._config = replace(self._config, **changes)
            if self._samples.maxlen != self._config.metrics_window_size:
                self._samples = deque(
                    self._samples, maxlen=self._config.metrics_window_size
                )

    def clear_metrics(self) -> None:
        with self._lock:
            self._samples.clear()

    def _decide(self) -> AdmissionDecision:
        limit = self._config.max_concurrent_processing
        if len(self._active) >= limit:
            return AdmissionDecision(
                allowed=False,
                reason=f"Maximum concurrent processing limit reached ({limit})",
            )
        memory = sum(self._active.values())
        if memory > self._config.max_memory_usage_mb:
            return AdmissionDecision(
                allowed=False,
                reason=(
                    f"Insufficient memory available "
                    f"({memory:.2f}MB / {self._config.max_memory_usage_mb:g}MB)"
                ),
            )
        return AdmissionDecision(allowed=True)

    def _issues(self, sample: PerformanceSample) -> list[str]:
        issues: list[str] = []
        if sample.memory_usage_mb > self._config.max_memory_usage_mb:
            issues.append(f"High memory usage: {sample.memory_usage_mb:.2f}MB")
        if sample.processing_time_ms > self._config.max_processing_time_ms:
            issues.append(f"Slow processing: {sample.processing_time_ms:.0f}ms")
        if sample.quality_score < _LOW_QUALITY_SAMPLE:
            issues.append(f"Low quality score: {sample.quality_score}")
        return issues
