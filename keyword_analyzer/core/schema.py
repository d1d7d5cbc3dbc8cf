from __future__ import annotations

import time
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, constr

DEFAULT_CATEGORY = "Broad"

Outcome = Literal["relevant", "not_relevant", "error"]

OUTCOME_LABELS: dict[str, str] = {
    "relevant": "Relevant",
    "not_relevant": "Not Relevant",
    "error": "Error",
}

EventType = Literal[
    "connected",
    "start",
    "processing",
    "progress",
    "completed",
    "error",
    "heartbeat",
]


class Item(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: constr(strip_whitespace=True, min_length=1)
    category: str = DEFAULT_CATEGORY


class ClassificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    category: str
    outcome: Outcome
    reason: str | None = None

    @classmethod
    def from_answer(cls, item: Item, relevant: bool) -> "ClassificationResult":
        return cls(
            text=item.text,
            category=item.category,
            outcome="relevant" if relevant else "not_relevant",
        )

    @classmethod
    def errored(cls, item: Item, reason: str) -> "ClassificationResult":
        return cls(text=item.text, category=item.category, outcome="error", reason=reason)

    @property
    def label(self) -> str:
        return OUTCOME_LABELS[self.outcome]


def _now_ms() -> int:
    return int(time.time() * 1000)


class ProgressEvent(BaseModel):
    type: EventType
    processed: int | None = None
    total: int | None = None
    percent_complete: int | None = None
    keyword: str | None = None
    status: str | None = None
    message: str | None = None
    snapshot: bool | None = None
    timestamp: int = Field(default_factory=_now_ms)

    def as_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


def percent_complete(processed: int, total: int) -> int:
    if total <= 0:
        return 0
    # round half up: 1 of 8 is 13%, not 12%
    return (processed * 200 + total) // (2 * total)
