"""Waiting for services to change state."""

from .engine import WaitResult, WaitState, format_duration, wait_for_service
from .handlers import (
    DeletionWaitHandler,
    PollAction,
    PollOutcome,
    StatusWaitHandler,
    WaitHandler,
)

__all__ = [
    "DeletionWaitHandler",
    "PollAction",
    "PollOutcome",
    "StatusWaitHandler",
    "WaitHandler",
    "WaitResult",
    "WaitState",
    "format_duration",
    "wait_for_service",
]
