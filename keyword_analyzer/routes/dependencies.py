from __future__ import annotations

from fastapi import Request

from keyword_analyzer.application import AnalysisService


def get_analysis_service(request: Request) -> AnalysisService:
    """Return the service instance owned by the running application."""

    return request.app.state.analysis_service
