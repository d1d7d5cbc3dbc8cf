from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response

from keyword_analyzer.application import AnalysisService
from keyword_analyzer.core.errors import ConflictError, ValidationError
from keyword_analyzer.routes.dependencies import get_analysis_service

router = APIRouter(tags=["analysis"])


@router.post("/analyze-bulk")
async def analyze_bulk(
    file: UploadFile | None = File(default=None),
    topic: str | None = Form(default=None),
    service: AnalysisService = Depends(get_analysis_service),
) -> dict:
    """Upload a keyword spreadsheet and start classifying it in the background."""
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    try:
        payload = await file.read()
        return await service.submit(payload, file.filename or "", topic)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    finally:
        await file.close()


@router.get("/status")
async def get_status(service: AnalysisService = Depends(get_analysis_service)) -> dict:
    return service.status()


@router.get("/download-results")
async def download_results(
    fmt: Literal["xlsx", "csv"] = Query(default="xlsx", alias="format"),
    service: AnalysisService = Depends(get_analysis_service),
) -> Response:
    try:
        exported = service.export(fmt)
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if exported is None:
        raise HTTPException(status_code=404, detail="No results available")
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f"attachment; filename={exported.filename}"},
    )
