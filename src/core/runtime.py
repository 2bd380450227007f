"""
Scheduling seams shared by the tracker, the session and the video synchronizer.

The app wires these to Qt (QTimer + a queued signal back to the GUI thread); tests
wire them to a manual scheduler and an inline executor.
"""
from __future__ import annotations

from concurrent.futures import Executor, Future
from typing import Any, Callable, Protocol, TypeVar

T = TypeVar("T")

Dispatch = Callable[[Callable[[], None]], None]


class Scheduler(Protocol):
    def start(self, interval_ms: int, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...

    def is_active(self) -> bool: ...


def call_now(fn: Callable[[], None]) -> None:
    fn()


def submit_then(
    executor: Executor,
    dispatch: Dispatch,
    fn: Callable[..., T],
    on_done: Callable[["Future[T]"], None],
    *args: Any,
) -> "Future[T]":
    """Run fn on the executor and hand its finished future to on_done on the coordination thread."""
    future = executor.submit(fn, *args)
    future.add_done_callback(lambda f: dispatch(lambda: on_done(f)))
    return future
