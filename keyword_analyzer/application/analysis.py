"""Application service layer for keyword analysis jobs."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from keyword_analyzer.config import Settings
from keyword_analyzer.core.errors import ConflictError
from keyword_analyzer.core.schema import ProgressEvent
from keyword_analyzer.core.state import JobStateStore
from keyword_analyzer.exporters.results_sheet import (
    CSV_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    export_results_csv,
    export_results_xlsx,
)
from keyword_analyzer.extractors import keyword_sheet
from keyword_analyzer.infrastructure import (
    Oracle,
    ProgressBroadcaster,
    Subscriber,
    build_oracle,
    build_pacer,
)
from keyword_analyzer.workers.oracle import OracleClient, RetryPolicy
from keyword_analyzer.workers.scheduler import BatchPolicy, BatchScheduler

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "keyword-analysis-results"


@dataclass(slots=True)
class ExportedFile:
    content: bytes
    media_type: str
    filename: str


class AnalysisService:
    """Coordinates submission, progress streaming, status and export."""

    def __init__(
        self,
        settings: Settings,
        *,
        oracle: Oracle | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.store = JobStateStore()
        self.broadcaster = ProgressBroadcaster(
            queue_size=settings.subscriber_queue_size,
            keepalive_interval=settings.keepalive_interval,
            subscriber_timeout=settings.subscriber_timeout,
        )
        self.client = OracleClient(
            oracle or build_oracle(settings),
            build_pacer(settings, sleep=sleep),
            RetryPolicy.from_settings(settings),
            sleep=sleep,
        )
        self.scheduler = BatchScheduler(
            self.store,
            self.client,
            self.broadcaster,
            BatchPolicy.from_settings(settings),
            sleep=sleep,
        )

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        self.broadcaster.start()

    async def stop(self) -> None:
        await self.scheduler.cancel()
        await self.broadcaster.stop()
        await self.client.aclose()

    # ------------------------------------------------------------------
    # jobs
    # ------------------------------------------------------------------
    async def submit(self, payload: bytes, filename: str, topic: str | None) -> dict[str, Any]:
        if self.store.is_processing:
            raise ConflictError("Analysis already in progress")
        # Workbook parsing is blocking; keep it off the event loop.
        items = await asyncio.to_thread(
            keyword_sheet.parse, payload, filename, self.settings.default_category
        )
        logger.info("Found %d keywords to process in %s", len(items), filename)
        snapshot = self.scheduler.submit(items, topic)
        return {
            "success": True,
            "message": "Analysis started",
            "total_items": snapshot["total_count"],
        }

    def status(self) -> dict[str, Any]:
        return self.store.snapshot()

    def export(self, fmt: str = "xlsx") -> ExportedFile | None:
        """Render the last job's results, or ``None`` if there are none."""

        if self.store.is_processing:
            raise ConflictError("Analysis still in progress")
        results = self.store.results()
        if not results:
            return None
        if fmt == "csv":
            return ExportedFile(export_results_csv(results), CSV_MEDIA_TYPE, f"{EXPORT_FILENAME}.csv")
        return ExportedFile(export_results_xlsx(results), XLSX_MEDIA_TYPE, f"{EXPORT_FILENAME}.xlsx")

    # ------------------------------------------------------------------
    # progress stream
    # ------------------------------------------------------------------
    def open_subscription(self) -> Subscriber:
        """Register a subscriber, seeding it with the current state mid-job."""

        subscriber = self.broadcaster.subscribe()
        subscriber.offer(ProgressEvent(type="connected").as_payload())
        snapshot = self.store.snapshot()
        if snapshot["is_processing"]:
            subscriber.offer(
                ProgressEvent(
                    type="progress",
                    processed=snapshot["processed_count"],
                    total=snapshot["total_count"],
                    percent_complete=snapshot["percent_complete"],
                    keyword=snapshot["current_item"] or None,
                    snapshot=True,
                ).as_payload()
            )
        return subscriber

    def close_subscription(self, subscriber: Subscriber) -> None:
        self.broadcaster.unsubscribe(subscriber)
