from __future__ import annotations

import asyncio
import json
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from keyword_analyzer.application import AnalysisService
from keyword_analyzer.infrastructure import Subscriber
from keyword_analyzer.routes.dependencies import get_analysis_service

router = APIRouter(tags=["progress"])

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

# How often an idle stream re-checks whether the client went away.
DISCONNECT_POLL_SECONDS = 1.0


def format_sse(event: dict) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


async def event_stream(
    request: Request,
    service: AnalysisService,
    subscriber: Subscriber,
) -> AsyncIterator[str]:
    try:
        yield f"retry: {service.settings.sse_retry_ms}\n\n"
        while True:
            try:
                event = await asyncio.wait_for(subscriber.next_event(), DISCONNECT_POLL_SECONDS)
            except asyncio.TimeoutError:
                if await request.is_disconnected():
                    break
                continue
            if event is None:
                break
            yield format_sse(event)
    finally:
        service.close_subscription(subscriber)


@router.get("/analysis-progress")
async def analysis_progress(
    request: Request,
    service: AnalysisService = Depends(get_analysis_service),
) -> StreamingResponse:
    """Stream job progress as server-sent events."""
    subscriber = service.open_subscription()
    return StreamingResponse(
        event_stream(request, service, subscriber),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
