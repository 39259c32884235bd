from __future__ import annotations

import time
import asyncio
import logging
from typing import Callable, List, Optional

from .recorder import SpanRecorder

log = logging.getLogger(__name__)

ReportFn = Callable[[List[float], float, float], None]


def _check_interval(interval: float) -> float:
    interval = float(interval)
    if not interval > 0:
        raise ValueError(f"interval must be > 0, got {interval!r}")
    return interval


class PeriodicTimer:
    """
    Calls `callback` every `interval` seconds on `loop`.

    The next fire is scheduled once the current one has finished, using
    whatever `interval` is at that moment. Changing `interval` therefore
    never moves a fire that is already scheduled.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], None]) -> None:
        self._loop = loop
        self._interval = _check_interval(interval)
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False
        self._schedule()

    @property
    def interval(self) -> float:
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        self._interval = _check_interval(value)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        self._handle = None
        try:
            self._callback()
        finally:
            # keep ticking even if the callback blew up; the error still
            # reaches the loop's exception handler
            if not self._cancelled and not self._loop.is_closed():
                self._schedule()


class IntervalTimer:
    """
    Drains the recorder once per period and hands the spans to `report`
    together with the period bounds.

    Bounds are wall-clock timestamps. The `to` of one period is reused as
    the `from` of the next, so periods never overlap or leave gaps.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        recorder: SpanRecorder,
        interval: float,
        report: ReportFn,
    ) -> None:
        self.report = report
        self._recorder = recorder
        self._from = time.time()
        self._timer = PeriodicTimer(loop, interval, self._fire)

    @property
    def interval(self) -> float:
        return self._timer.interval

    @interval.setter
    def interval(self, value: float) -> None:
        self._timer.interval = value

    @property
    def period_start(self) -> float:
        return self._from

    @property
    def cancelled(self) -> bool:
        return self._timer.cancelled

    def cancel(self) -> None:
        self._timer.cancel()

    def _fire(self) -> None:
        spans = self._recorder.drain()
        from_, to = self._from, time.time()
        # the report runs after `from` moves on: its own runtime belongs to the next period
        self._from = to
        log.debug("interval elapsed: %d spans over %.3fs", len(spans), to - from_)
        self.report(spans, from_, to)
