"""Domain entities for the single in-flight analysis job."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from keyword_analyzer.core.schema import ClassificationResult


class JobStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(slots=True)
class JobState:
    """Progress and results of the current (or last) job."""

    status: JobStatus = JobStatus.IDLE
    topic: str | None = None
    processed_count: int = 0
    total_count: int = 0
    results: dict[int, ClassificationResult] = field(default_factory=dict)
    errors: list[dict[str, Any]] = field(default_factory=list)
    current_item: str = ""
    start_time: float | None = None
    last_update_time: float | None = None

    @property
    def is_processing(self) -> bool:
        return self.status is JobStatus.PROCESSING

    def ordered_results(self) -> list[ClassificationResult]:
        return [self.results[position] for position in sorted(self.results)]
