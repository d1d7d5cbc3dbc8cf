"""Classification oracle hooks.

The batch pipeline only needs something that can answer "is this keyword
relevant to the topic?" with a raw text answer.  The OpenRouter client is the
production implementation; tests install scripted fakes with the same shape.
"""
from __future__ import annotations

from typing import Protocol

from keyword_analyzer.config import Settings

from .openrouter import OpenRouterOracle


class Oracle(Protocol):
    """Contract for classification oracles."""

    def check_ready(self) -> None:
        """Raise ``JobSetupError`` if the oracle cannot serve requests."""

    async def answer(self, keyword: str, topic: str) -> str:
        """Return the raw answer text, raising ``OracleError`` subclasses on failure."""

    async def aclose(self) -> None:
        """Release network resources."""


def build_oracle(settings: Settings) -> Oracle:
    """Create the oracle configured by ``settings``."""

    return OpenRouterOracle(
        settings.openrouter_api_key,
        api_base=settings.openrouter_api_base,
        model=settings.openrouter_model,
        referer=settings.app_url,
        title=settings.app_title,
        timeout=settings.request_timeout,
    )
