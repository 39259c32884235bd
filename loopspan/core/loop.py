from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Optional

from .recorder import SpanRecorder, recorder_for


def _timed(callback: Callable[..., Any], context=None) -> Callable[..., Any]:
    """
    Wrap `callback` when the context it will run in belongs to a monitored scope.
    Anything asyncio would reject (coroutines, non-callables) is passed through
    untouched so the loop's own debug-mode checks still see it.
    """
    recorder = recorder_for(context)
    if recorder is None or recorder.closed:
        return callback
    if not callable(callback) or inspect.iscoroutinefunction(callback):
        return callback
    return recorder.wrap(callback)


class MonitoredEventLoop(asyncio.SelectorEventLoop):
    """
    Selector event loop that times every unit of work scheduled from inside
    a monitored scope.

    Callbacks, timers, task steps and fd readiness handlers all go through
    one of the overridden entry points below. `call_later` delegates to
    `call_at`, so it is covered without being overridden.
    """

    def __init__(self, selector=None) -> None:
        super().__init__(selector)
        self.span_recorder: Optional[SpanRecorder] = None

    def install_recorder(self, recorder: SpanRecorder) -> None:
        if self.span_recorder is not None and self.span_recorder is not recorder:
            raise RuntimeError("event loop is already monitored")
        self.span_recorder = recorder

    def uninstall_recorder(self, recorder: SpanRecorder) -> None:
        if self.span_recorder is recorder:
            self.span_recorder = None

    def call_soon(self, callback, *args, context=None):
        return super().call_soon(_timed(callback, context), *args, context=context)

    def call_at(self, when, callback, *args, context=None):
        return super().call_at(when, _timed(callback, context), *args, context=context)

    def call_soon_threadsafe(self, callback, *args, context=None):
        return super().call_soon_threadsafe(_timed(callback, context), *args, context=context)

    def _add_reader(self, fd, callback, *args):
        return super()._add_reader(fd, _timed(callback), *args)

    def _add_writer(self, fd, callback, *args):
        return super()._add_writer(fd, _timed(callback), *args)

    def call_exception_handler(self, context):
        # Failures surface here after the failing span was already recorded;
        # handling them is loop work too.
        recorder = self.span_recorder
        if recorder is None or recorder.closed:
            return super().call_exception_handler(context)
        return recorder.wrap(super().call_exception_handler)(context)


def new_event_loop() -> MonitoredEventLoop:
    """Loop factory for asyncio.Runner / asyncio.run."""
    return MonitoredEventLoop()
