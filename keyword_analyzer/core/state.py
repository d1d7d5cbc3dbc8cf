from __future__ import annotations

import threading
import time
from typing import Any, Callable

from keyword_analyzer.core.errors import ConflictError
from keyword_analyzer.core.schema import ClassificationResult, percent_complete
from keyword_analyzer.domain import JobState, JobStatus


class JobStateStore:
    """Process-wide record of the in-flight (or last finished) job.

    Only the batch scheduler mutates the store; routes and the exporter read
    snapshots.  All access goes through one lock so the check-then-set in
    :meth:`try_start` stays atomic even if callers live on different threads.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._state = JobState()

    @property
    def is_processing(self) -> bool:
        with self._lock:
            return self._state.is_processing

    @property
    def total_count(self) -> int:
        with self._lock:
            return self._state.total_count

    @property
    def status(self) -> JobStatus:
        with self._lock:
            return self._state.status

    def try_start(self, total: int, topic: str) -> dict[str, Any]:
        with self._lock:
            if self._state.is_processing:
                raise ConflictError("Analysis already in progress")
            now = self._clock()
            self._state = JobState(
                status=JobStatus.PROCESSING,
                topic=topic,
                total_count=total,
                start_time=now,
                last_update_time=now,
            )
            return self._snapshot_locked()

    def set_current_item(self, text: str) -> None:
        with self._lock:
            self._state.current_item = text
            self._state.last_update_time = self._clock()

    def record_result(self, position: int, result: ClassificationResult) -> int:
        """Store the result for ``position`` and return the new processed count."""

        with self._lock:
            if position in self._state.results:
                raise ValueError(f"result for position {position} already recorded")
            self._state.results[position] = result
            if result.outcome == "error":
                self._state.errors.append({"keyword": result.text, "error": result.reason})
            self._state.processed_count += 1
            self._state.last_update_time = self._clock()
            return self._state.processed_count

    def complete(self) -> bool:
        return self._finish(JobStatus.COMPLETED)

    def fail(self, message: str) -> bool:
        return self._finish(JobStatus.ERROR, message)

    def _finish(self, status: JobStatus, message: str | None = None) -> bool:
        """Move a processing job to a terminal status; False if it already left it."""

        with self._lock:
            if not self._state.is_processing:
                return False
            self._state.status = status
            self._state.current_item = ""
            self._state.last_update_time = self._clock()
            if message:
                self._state.errors.append({"error": message})
            return True

    def results(self) -> list[ClassificationResult]:
        with self._lock:
            return self._state.ordered_results()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> dict[str, Any]:
        state = self._state
        return {
            "status": state.status.value,
            "is_processing": state.is_processing,
            "topic": state.topic,
            "processed_count": state.processed_count,
            "total_count": state.total_count,
            "percent_complete": percent_complete(state.processed_count, state.total_count),
            "current_item": state.current_item,
            "results": [result.model_dump() for result in state.ordered_results()],
            "errors": list(state.errors),
            "start_time": state.start_time,
            "last_update_time": state.last_update_time,
        }
