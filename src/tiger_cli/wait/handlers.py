"""Completion checks for the service wait loop."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..core.constants import FAILED_STATUSES, READY_STATUS
from ..services.models import FetchStatus, Service, StatusFetchResult


class PollAction(Enum):
    CONTINUE = "continue"
    SUCCEED = "succeed"
    FAIL = "fail"


@dataclass(frozen=True)
class PollOutcome:
    """Result of checking one observed state.

    ``reason`` is the failure reason for ``FAIL``. For ``CONTINUE`` it is a
    transient error to show while polling carries on.
    """

    action: PollAction
    reason: Optional[str] = None

    @classmethod
    def keep_waiting(cls, error: Optional[str] = None) -> "PollOutcome":
        return cls(PollAction.CONTINUE, error)

    @classmethod
    def succeed(cls) -> "PollOutcome":
        return cls(PollAction.SUCCEED)

    @classmethod
    def fail(cls, reason: str) -> "PollOutcome":
        return cls(PollAction.FAIL, reason)


def _unexpected(result: StatusFetchResult) -> PollOutcome:
    return PollOutcome.fail(
        result.detail
        or f"received unexpected status {result.status_code} while checking service status"
    )


class WaitHandler(ABC):
    """Decides when the wait loop is done."""

    @abstractmethod
    def message(self) -> str:
        """Status text to show next to the spinner."""

    @abstractmethod
    def check(self, result: StatusFetchResult) -> PollOutcome:
        """Inspect the latest fetched state."""


class StatusWaitHandler(WaitHandler):
    """Waits for a service to reach ``target_status``.

    The service disappearing while we wait is a terminal failure, as is any of
    ``failure_statuses``. Server errors are assumed to be temporary.
    """

    def __init__(
        self,
        target_status: str = READY_STATUS,
        service: Optional[Service] = None,
        failure_statuses: Iterable[str] = FAILED_STATUSES,
    ):
        self.target_status = target_status
        self.failure_statuses = frozenset(failure_statuses)
        self.service = service or Service()

    def message(self) -> str:
        return f"Service status: {self.service.status or ''}"

    def check(self, result: StatusFetchResult) -> PollOutcome:
        if result.kind is FetchStatus.FOUND:
            if result.service is None:
                return PollOutcome.fail("no response body returned from API")
            # Keep the caller's copy current so it can be shown after waiting
            self.service.status = result.service.status
            status = result.service.status or ""
            if status == self.target_status:
                return PollOutcome.succeed()
            if status in self.failure_statuses:
                return PollOutcome.fail(f"service failed with status: {status}")
            return PollOutcome.keep_waiting()
        if result.kind is FetchStatus.NOT_FOUND:
            # Can happen if the service is deleted while still provisioning
            return PollOutcome.fail("service not found")
        if result.kind is FetchStatus.SERVER_ERROR:
            return PollOutcome.keep_waiting("internal server error")
        return _unexpected(result)


class DeletionWaitHandler(WaitHandler):
    """Waits for a service to stop being found."""

    def __init__(self, service_id: str):
        self.service_id = service_id

    def message(self) -> str:
        return f"Waiting for service '{self.service_id}' to be deleted"

    def check(self, result: StatusFetchResult) -> PollOutcome:
        if result.kind is FetchStatus.FOUND:
            return PollOutcome.keep_waiting()
        if result.kind is FetchStatus.NOT_FOUND:
            return PollOutcome.succeed()
        if result.kind is FetchStatus.SERVER_ERROR:
            return PollOutcome.keep_waiting("internal server error")
        return _unexpected(result)
