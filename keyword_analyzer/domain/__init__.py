"""Domain layer definitions."""

from .jobs import JobState, JobStatus

__all__ = [
    "JobState",
    "JobStatus",
]
