"""Bounded polling loop for asynchronous service state changes.

:func:`wait_for_service` fetches the service state once per tick and asks a
:class:`~tiger_cli.wait.handlers.WaitHandler` whether it is done. Fetches never
overlap: a slow fetch delays the next tick. The overall deadline is enforced
around the whole loop, so a fetch that is still in flight when it expires is
abandoned rather than extending the wait.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from ..core.constants import WAIT_TICK_SECONDS
from ..core.errors import ServiceFailedError, WaitCanceledError, WaitTimeoutError
from ..services.models import StatusFetchResult
from .handlers import PollAction, WaitHandler

logger = logging.getLogger(__name__)

StatusFetcher = Callable[[], Awaitable[StatusFetchResult]]
StatusCallback = Callable[[str], None]


class WaitState(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELED = "canceled"


@dataclass(frozen=True)
class WaitResult:
    state: WaitState
    reason: Optional[str] = None
    elapsed: float = 0.0
    checks: int = 0

    @property
    def ok(self) -> bool:
        return self.state is WaitState.SUCCEEDED

    def raise_for_state(self) -> None:
        """Raise the matching :class:`WaitError` unless the wait succeeded."""
        if self.state is WaitState.SUCCEEDED:
            return
        if self.state is WaitState.TIMED_OUT:
            raise WaitTimeoutError(self.reason or "wait timeout reached")
        if self.state is WaitState.CANCELED:
            raise WaitCanceledError(self.reason or "canceled waiting")
        raise ServiceFailedError(self.reason or "service failed")


def format_duration(seconds: float) -> str:
    """Render ``seconds`` compactly, e.g. ``30m0s`` or ``1.5s``."""
    if seconds < 60:
        return f"{seconds:g}s"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    return f"{minutes}m{secs}s"


async def _tick(interval: float, cancel_event: Optional[asyncio.Event]) -> bool:
    """Sleep one interval; return True if cancellation was requested."""
    if cancel_event is None:
        await asyncio.sleep(interval)
        return False
    if cancel_event.is_set():
        return True
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=interval)
    except asyncio.TimeoutError:
        return False
    return True


async def wait_for_service(
    fetch: StatusFetcher,
    handler: WaitHandler,
    timeout: float,
    timeout_message: str = "",
    on_update: Optional[StatusCallback] = None,
    interval: float = WAIT_TICK_SECONDS,
    cancel_event: Optional[asyncio.Event] = None,
) -> WaitResult:
    """Poll ``fetch`` until ``handler`` reports success or failure.

    Args:
        fetch: Returns the latest observed service state
        handler: Decides whether polling is done
        timeout: Overall deadline in seconds
        timeout_message: Guidance appended to timeout and cancel reasons,
            e.g. "service may still be provisioning"
        on_update: Receives status text to display after every tick
        interval: Seconds between fetches
        cancel_event: Set it to stop waiting between ticks

    Returns:
        A terminal :class:`WaitResult`. Call ``raise_for_state()`` to turn
        anything but success into an exception.
    """
    loop = asyncio.get_running_loop()
    started = loop.time()
    checks = 0
    update = on_update or (lambda _message: None)

    def finish(state: WaitState, reason: Optional[str] = None) -> WaitResult:
        result = WaitResult(state, reason, loop.time() - started, checks)
        logger.debug("Wait finished: %s after %d check(s)", state.value, checks)
        return result

    async def poll() -> WaitResult:
        nonlocal checks
        while True:
            if await _tick(interval, cancel_event):
                return finish(WaitState.CANCELED, f"canceled waiting - {timeout_message}")

            try:
                fetched = await fetch()
            except Exception as e:
                # Network trouble on one fetch is not fatal
                logger.debug("Status fetch failed: %s", e)
                update(f"Error checking service status: {e}")
                continue

            checks += 1
            outcome = handler.check(fetched)
            if outcome.action is PollAction.SUCCEED:
                return finish(WaitState.SUCCEEDED)
            if outcome.action is PollAction.FAIL:
                return finish(WaitState.FAILED, outcome.reason)
            if outcome.reason:
                update(f"Error checking service status: {outcome.reason}")
                continue
            update(handler.message())

    update(handler.message())
    try:
        return await asyncio.wait_for(poll(), timeout=timeout)
    except asyncio.TimeoutError:
        return finish(
            WaitState.TIMED_OUT,
            f"wait timeout reached after {format_duration(timeout)} - {timeout_message}",
        )
    except asyncio.CancelledError:
        return finish(WaitState.CANCELED, f"canceled waiting - {timeout_message}")
    except Exception as e:
        return finish(WaitState.FAILED, f"error waiting - {timeout_message}: {e}")
