from __future__ import annotations

from fastapi import APIRouter, Depends

from keyword_analyzer import __version__
from keyword_analyzer.application import AnalysisService
from keyword_analyzer.routes.dependencies import get_analysis_service

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(service: AnalysisService = Depends(get_analysis_service)) -> dict:
    return {
        "status": "ok",
        "version": __version__,
        "job_status": service.store.status.value,
        "subscribers": service.broadcaster.subscriber_count,
    }
