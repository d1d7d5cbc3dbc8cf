"""Infrastructure layer exports."""

from .broadcast import EventPublisher, ProgressBroadcaster, Subscriber
from .openrouter import OpenRouterOracle
from .oracle import Oracle, build_oracle
from .pacer import FixedDelayPacer, Pacer, TokenBucketPacer, build_pacer

__all__ = [
    "EventPublisher",
    "FixedDelayPacer",
    "OpenRouterOracle",
    "Oracle",
    "Pacer",
    "ProgressBroadcaster",
    "Subscriber",
    "TokenBucketPacer",
    "build_oracle",
    "build_pacer",
]
