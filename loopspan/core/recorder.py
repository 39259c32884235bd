from __future__ import annotations

import time
import functools
from contextvars import Context, ContextVar
from typing import Any, Callable, List, Optional

# Recorder of the monitored scope the current context belongs to.
# Tasks copy their context on creation, so anything scheduled from
# inside the scope inherits it.
current_recorder: ContextVar[Optional["SpanRecorder"]] = ContextVar("span_recorder", default=None)


def recorder_for(context: Context | None = None) -> Optional["SpanRecorder"]:
    """
    Recorder that applies to work which will run in `context`
    (the current context when None).
    """
    if context is None:
        return current_recorder.get()
    return context.get(current_recorder)


class SpanRecorder:
    """
    Measures the wall time of every unit of work it wraps.

    Spans accumulate in a pending buffer until drained. Only the loop
    thread appends or drains, so swapping the buffer needs no lock.
    """

    def __init__(self) -> None:
        self._pending: List[float] = []
        self.closed = False

    def __len__(self) -> int:
        return len(self._pending)

    def record(self, seconds: float) -> None:
        if not self.closed:
            self._pending.append(seconds)

    def drain(self) -> List[float]:
        spans, self._pending = self._pending, []
        return spans

    def close(self) -> None:
        self.closed = True
        self._pending = []

    def wrap(self, callback: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(callback)
        def timed(*args):
            start = time.perf_counter()
            try:
                return callback(*args)
            finally:
                # recorded before any exception carries on to the loop
                self.record(time.perf_counter() - start)

        return timed
