"""Integration with the OpenRouter chat completions API."""
from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

import httpx

from keyword_analyzer.core.errors import (
    ApiError,
    JobSetupError,
    MalformedResponseError,
    RateLimitedError,
    TransportError,
)

SYSTEM_PROMPT = 'You are a keyword analyzer. Respond ONLY with "true" or "false".'


class OpenRouterOracle:
    """Asks an OpenRouter-hosted model whether a keyword fits a topic."""

    def __init__(
        self,
        api_key: str | None,
        *,
        api_base: str = "https://openrouter.ai/api/v1",
        model: str = "mistralai/mistral-7b-instruct",
        referer: str | None = None,
        title: str = "Keyword Analyzer",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(api_base)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_base must include scheme and host")

        self._api_key = api_key
        self._model = model
        self._referer = referer
        self._title = title
        self._request_url = f"{api_base.rstrip('/')}/chat/completions"
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._title,
        }
        if self._referer:
            headers["HTTP-Referer"] = self._referer
        return headers

    def _build_payload(self, keyword: str, topic: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": (
                        "Is this keyword relevant for the given topic? "
                        "Answer only with true or false.\n"
                        f'Topic: "{topic}"\n'
                        f'Keyword: "{keyword}"'
                    ),
                },
            ],
            "temperature": 0.1,
            "max_tokens": 5,
        }

    @staticmethod
    def _retry_after(response: httpx.Response) -> float | None:
        value = response.headers.get("retry-after")
        try:
            return float(value) if value is not None else None
        except ValueError:
            return None

    @staticmethod
    def _extract_answer(data: Any) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError("Response has no completion content") from exc
        if not isinstance(content, str):
            raise MalformedResponseError("Completion content is not text")
        return content

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def check_ready(self) -> None:
        if not self._api_key:
            raise JobSetupError("API key is not configured")

    async def answer(self, keyword: str, topic: str) -> str:
        """Return the raw model answer for ``keyword`` against ``topic``."""

        try:
            response = await self._client.post(
                self._request_url,
                headers=self._build_headers(),
                json=self._build_payload(keyword, topic),
            )
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Transport failure: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitedError(self._retry_after(response))
        if not response.is_success:
            raise ApiError(response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError("Response body is not JSON") from exc
        return self._extract_answer(data)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["OpenRouterOracle", "SYSTEM_PROMPT"]
