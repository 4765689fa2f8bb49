"""Cooperative debounce timer."""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Tuple


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback later; ``asyncio`` event loops qualify."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class Debouncer:
    """Run ``callback`` once input has been quiet for ``delay`` seconds.

    Each ``trigger`` cancels the pending run, if any, and schedules a new one
    with the latest arguments, so a burst of triggers collapses into a single
    call carrying the final values.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        delay: float,
        callback: Callable[..., Any],
    ) -> None:
        self._scheduler = scheduler
        self._delay = delay
        self._callback = callback
        self._handle: Optional[TimerHandle] = None
        self._args: Tuple[Any, ...] = ()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, *args: Any) -> None:
        self.cancel()
        self._args = args
        self._handle = self._scheduler.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        """Run the pending call now instead of waiting for the quiet period."""
        if self._handle is None:
            return
        self.cancel()
        self._callback(*self._args)

    def _fire(self) -> None:
        self._handle = None
        self._callback(*self._args)
