from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from keyword_analyzer.config import Settings
from keyword_analyzer.core.errors import OracleError, RateLimitedError, TransportError
from keyword_analyzer.core.schema import ClassificationResult, Item
from keyword_analyzer.infrastructure import Oracle, Pacer

logger = logging.getLogger(__name__)

AFFIRMATIVE_ANSWER = "true"


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 5.0
    rate_limit_pause: float = 60.0
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay,
            rate_limit_pause=settings.rate_limit_pause,
            timeout=settings.request_timeout,
        )

    def retrying(
        self,
        attempt: int = 0,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        before_sleep: Callable[[RetryCallState], None] | None = None,
    ) -> AsyncRetrying:
        """Retry controller for one item, resuming at ``attempt`` prior failures.

        Waits double from ``base_delay``; a resumed item keeps its place in the
        backoff sequence and only gets the attempts it has left.
        """

        return AsyncRetrying(
            stop=stop_after_attempt(max(self.max_retries - attempt, 0) + 1),
            wait=wait_exponential(multiplier=self.base_delay * 2**attempt, min=0),
            retry=retry_if_exception_type(OracleError),
            sleep=sleep,
            before_sleep=before_sleep,
            reraise=True,
        )

    def cooldown(self, exc: RateLimitedError) -> float:
        """Rate-limit pause, stretched to the server's ``Retry-After`` when longer."""

        return max(exc.retry_after or 0.0, self.rate_limit_pause)


def is_relevant(answer: str) -> bool:
    """Anything other than a literal ``true`` counts as not relevant."""

    return answer.strip().lower() == AFFIRMATIVE_ANSWER


class OracleClient:
    """Paced, retrying wrapper around one oracle classification call."""

    def __init__(
        self,
        oracle: Oracle,
        pacer: Pacer,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._oracle = oracle
        self._pacer = pacer
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    def check_ready(self) -> None:
        self._oracle.check_ready()

    async def _call(self, item: Item, topic: str) -> str:
        try:
            return await asyncio.wait_for(
                self._oracle.answer(item.text, topic), timeout=self.policy.timeout
            )
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Request timed out after {self.policy.timeout}s") from exc

    async def _call_through_rate_limits(self, item: Item, topic: str) -> str:
        # 429s pause and resend without spending a retry attempt.
        while True:
            await self._pacer.acquire()
            try:
                return await self._call(item, topic)
            except RateLimitedError as exc:
                pause = self.policy.cooldown(exc)
                logger.warning('Rate limited while analyzing "%s", pausing %.0fs', item.text, pause)
                await self._sleep(pause)

    def _log_retry(self, item: Item, offset: int) -> Callable[[RetryCallState], None]:
        def before_sleep(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            logger.warning(
                'Error analyzing "%s" (%s), retry %d/%d in %.0fs',
                item.text,
                getattr(exc, "reason", exc),
                offset + state.attempt_number,
                self.policy.max_retries,
                state.next_action.sleep if state.next_action else 0.0,
            )

        return before_sleep

    async def classify(self, item: Item, topic: str, attempt: int = 0) -> ClassificationResult:
        retrying = self.policy.retrying(
            attempt, sleep=self._sleep, before_sleep=self._log_retry(item, attempt)
        )
        async for trial in retrying:
            with trial:
                answer = await self._call_through_rate_limits(item, topic)
        return ClassificationResult.from_answer(item, is_relevant(answer))

    async def aclose(self) -> None:
        await self._oracle.aclose()
