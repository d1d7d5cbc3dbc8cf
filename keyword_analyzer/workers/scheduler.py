"""Background batch classification of an uploaded keyword list."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

from keyword_analyzer.config import Settings
from keyword_analyzer.core.errors import JobSetupError, OracleError, ValidationError
from keyword_analyzer.core.schema import ClassificationResult, Item, ProgressEvent, percent_complete
from keyword_analyzer.core.state import JobStateStore
from keyword_analyzer.infrastructure import EventPublisher
from keyword_analyzer.workers.oracle import OracleClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchPolicy:
    batch_size: int = 10
    concurrent: bool = True
    item_delay: float = 0.1
    batch_delay: float = 0.3
    error_threshold: int = 3
    error_pause: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "BatchPolicy":
        return cls(
            batch_size=settings.batch_size,
            concurrent=settings.concurrent_batches,
            item_delay=settings.item_delay,
            batch_delay=settings.batch_delay,
            error_threshold=settings.consecutive_error_threshold,
            error_pause=settings.consecutive_error_pause,
        )


def partition(items: Sequence[Item], size: int) -> list[list[tuple[int, Item]]]:
    """Split ``items`` into ordered batches of ``(position, item)`` pairs."""

    indexed = list(enumerate(items))
    return [indexed[start : start + size] for start in range(0, len(indexed), size)]


class BatchScheduler:
    def __init__(
        self,
        store: JobStateStore,
        client: OracleClient,
        publisher: EventPublisher,
        policy: BatchPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._client = client
        self._publisher = publisher
        self.policy = policy or BatchPolicy()
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self._consecutive_errors = 0

    # ------------------------------------------------------------------
    # submission
    # ------------------------------------------------------------------
    def submit(self, items: Sequence[Item], topic: str | None) -> dict[str, Any]:
        """Validate, claim the job slot and start the background run.

        Must be called from within the running event loop.  Returns the
        initial job snapshot; raises ``ValidationError`` or ``ConflictError``.
        """

        topic = (topic or "").strip()
        if not topic:
            raise ValidationError("Topic is required")
        if not items:
            raise ValidationError("No keywords found in file")

        snapshot = self._store.try_start(len(items), topic)
        logger.info("Starting analysis of %d keywords for topic %r", len(items), topic)
        self._publish(
            ProgressEvent(
                type="start",
                processed=0,
                total=len(items),
                percent_complete=0,
                message="Starting analysis...",
            )
        )
        self._task = asyncio.get_running_loop().create_task(
            self._supervise(list(items), topic), name="keyword-analysis"
        )
        return snapshot

    async def join(self) -> None:
        """Wait for the current background run, if any, to finish."""

        task = self._task
        if task is not None:
            await asyncio.shield(task)

    async def cancel(self) -> None:
        """Stop the background run; the job ends in the error state."""

        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _supervise(self, items: list[Item], topic: str) -> None:
        try:
            await self.run(items, topic)
        except Exception as exc:
            logger.exception("Background processing error")
            self._fail(f"Processing failed: {exc}")
        finally:
            if self._store.is_processing:
                self._fail("Processing stopped before completion")

    # ------------------------------------------------------------------
    # batch loop
    # ------------------------------------------------------------------
    def _setup(self, items: Sequence[Item]) -> None:
        self._client.check_ready()
        for position, item in enumerate(items):
            if not isinstance(item, Item):
                raise JobSetupError(f"Row {position + 1} is not a keyword item")

    async def run(self, items: Sequence[Item], topic: str) -> None:
        """Classify ``items`` batch by batch; item failures are recorded, not raised."""

        try:
            self._setup(items)
        except JobSetupError as exc:
            logger.error("Analysis setup error: %s", exc)
            self._fail(str(exc))
            return

        self._consecutive_errors = 0
        batches = partition(items, self.policy.batch_size)
        for index, batch in enumerate(batches):
            if self.policy.concurrent and len(batch) > 1:
                await asyncio.gather(
                    *(
                        self._process_item(position, item, topic, start_delay=offset * self.policy.item_delay)
                        for offset, (position, item) in enumerate(batch)
                    )
                )
            else:
                for offset, (position, item) in enumerate(batch):
                    if offset and self.policy.item_delay:
                        await self._sleep(self.policy.item_delay)
                    await self._process_item(position, item, topic)

            if index < len(batches) - 1 and self.policy.batch_delay:
                await self._sleep(self.policy.batch_delay)

        if self._store.complete():
            total = len(items)
            logger.info("Analysis completed: %d keywords", total)
            self._publish(
                ProgressEvent(
                    type="completed",
                    processed=total,
                    total=total,
                    percent_complete=100,
                    message="Analysis completed successfully!",
                )
            )

    async def _process_item(
        self, position: int, item: Item, topic: str, *, start_delay: float = 0.0
    ) -> None:
        if start_delay:
            await self._sleep(start_delay)

        self._store.set_current_item(item.text)
        self._publish(ProgressEvent(type="processing", keyword=item.text, status="Processing"))

        try:
            result = await self._client.classify(item, topic)
        except OracleError as exc:
            logger.error('Error processing keyword "%s": %s', item.text, exc.reason)
            result = ClassificationResult.errored(item, exc.reason)
        except Exception as exc:
            logger.exception('Unexpected error processing keyword "%s"', item.text)
            result = ClassificationResult.errored(item, str(exc) or exc.__class__.__name__)

        processed = self._store.record_result(position, result)
        total = self._store.total_count
        self._publish(
            ProgressEvent(
                type="progress",
                processed=processed,
                total=total,
                percent_complete=percent_complete(processed, total),
                keyword=item.text,
                status=result.label,
            )
        )

        if result.outcome != "error":
            self._consecutive_errors = 0
            return

        self._consecutive_errors += 1
        if self._consecutive_errors >= self.policy.error_threshold:
            logger.warning(
                "Too many consecutive errors, pausing for %.0f seconds...", self.policy.error_pause
            )
            self._consecutive_errors = 0
            await self._sleep(self.policy.error_pause)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _fail(self, message: str) -> None:
        if self._store.fail(message):
            self._publish(ProgressEvent(type="error", message=message))

    def _publish(self, event: ProgressEvent) -> None:
        try:
            self._publisher.publish(event.as_payload())
        except Exception:  # noqa: BLE001
            logger.exception("Progress publish failed")


__all__ = ["BatchPolicy", "BatchScheduler", "partition"]
