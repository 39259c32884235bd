from __future__ import annotations

import asyncio
import inspect
import logging
import contextvars
from contextvars import ContextVar
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from .config import DEFAULT_BUCKETS, DEFAULT_INTERVAL
from .histogram import HistogramAggregator, HistogramFn
from .loop import MonitoredEventLoop, new_event_loop
from .recorder import SpanRecorder, current_recorder
from .timer import IntervalTimer

log = logging.getLogger(__name__)

NOT_INITIALIZED = "Event loop not initialized"

SpansFn = Callable[[List[float], float, float], None]

current_monitor: ContextVar[Optional["Monitor"]] = ContextVar("monitor", default=None)


class NotInitialized(RuntimeError):
    """Raised when attaching a listener while no monitored loop is running."""

    def __init__(self, message: str = NOT_INITIALIZED) -> None:
        super().__init__(message)


class Monitor:
    """
    Times every unit of work scheduled inside its scope and reports the
    spans to a single listener every `interval` seconds.

    Use as a context manager around the monitored run (see `run`). Only
    one listener is live at a time: attaching again replaces the callback,
    and a new interval applies once the currently scheduled report fires.
    """

    def __init__(self, loop: MonitoredEventLoop, *, name: str = "loop") -> None:
        if not isinstance(loop, MonitoredEventLoop):
            raise TypeError(f"Monitor needs a MonitoredEventLoop, got {type(loop).__name__}")
        self.loop = loop
        self.name = name
        self.recorder = SpanRecorder()
        self.listener: Optional[SpansFn] = None
        self.aggregator: Optional[HistogramAggregator] = None

        self._timer: Optional[IntervalTimer] = None
        self._context: Optional[contextvars.Context] = None
        self._tokens = None
        self._stopped = asyncio.Event()
        self._closed = False

    @property
    def active(self) -> bool:
        return self._tokens is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def interval(self) -> Optional[float]:
        return self._timer.interval if self._timer else None

    def __enter__(self) -> "Monitor":
        if self._closed or self._tokens is not None:
            raise RuntimeError(f"monitor {self.name!r} cannot be entered twice")
        self.loop.install_recorder(self.recorder)
        self._tokens = (current_recorder.set(self.recorder), current_monitor.set(self))
        # reports always run inside the scope, wherever attach was called from
        self._context = contextvars.copy_context()
        log.debug("monitor %s installed", self.name)
        return self

    def __exit__(self, *exc) -> None:
        rec_token, mon_token = self._tokens
        self._tokens = None
        try:
            current_monitor.reset(mon_token)
            current_recorder.reset(rec_token)
        finally:
            if self._timer is not None:
                self._timer.cancel()
            self.loop.uninstall_recorder(self.recorder)
            self.recorder.close()
            self._closed = True
            log.debug("monitor %s removed", self.name)

    def attach(self, interval: float, callback: SpansFn) -> None:
        """
        Make `callback(spans, from_, to)` the listener, reporting every `interval` seconds.
        """
        if not self.active:
            raise NotInitialized()
        if self._timer is None or self._timer.cancelled:
            self._timer = self._context.run(
                IntervalTimer, self.loop, self.recorder, interval, callback
            )
            log.debug("monitor %s reporting every %.3fs", self.name, self._timer.interval)
        else:
            self._timer.interval = interval
            self._timer.report = callback
            log.debug("monitor %s listener replaced, next interval %.3fs", self.name, self._timer.interval)
        self.listener = callback
        self.aggregator = callback if isinstance(callback, HistogramAggregator) else None

    def monitor_spans(self, callback: Optional[SpansFn] = None, *, interval: float = DEFAULT_INTERVAL):
        """
        Call `callback(spans, from_, to)` periodically with the duration in seconds
        of every unit of work run since the previous call.

        Works as a decorator when `callback` is omitted.
        """
        if not self.active:
            raise NotInitialized()
        if callback is None:
            return lambda fn: self.monitor_spans(fn, interval=interval)
        self.attach(interval, callback)
        return callback

    def monitor_histogram(
        self,
        callback: Optional[HistogramFn] = None,
        *,
        interval: float = DEFAULT_INTERVAL,
        buckets: Iterable[float] = DEFAULT_BUCKETS,
        stacked: bool = False,
        cumulative: bool = False,
    ):
        """
        Call `callback(histogram, from_, to)` periodically with the seconds spent
        in spans of each length; `histogram` maps bucket limit to seconds.

        Works as a decorator when `callback` is omitted.
        """
        if not self.active:
            raise NotInitialized()
        if callback is None:
            return lambda fn: self.monitor_histogram(
                fn, interval=interval, buckets=buckets, stacked=stacked, cumulative=cumulative
            )
        aggregator = HistogramAggregator(callback, buckets=buckets, stacked=stacked, cumulative=cumulative)
        self.attach(interval, aggregator)
        return callback

    def stop(self) -> None:
        """Stop reporting and wake anyone in `wait_stopped`."""
        if self._timer is not None:
            self._timer.cancel()
        self._stopped.set()

    async def wait_stopped(self) -> None:
        await self._stopped.wait()


def get_monitor() -> Monitor:
    """Monitor of the current scope."""
    m = current_monitor.get()
    if m is None or not m.active:
        raise NotInitialized()
    return m


def monitor_spans(callback: Optional[SpansFn] = None, *, interval: float = DEFAULT_INTERVAL):
    """
    Set the listener of the running monitor to be called with raw spans.

    Example:
        @monitor_spans(interval=10)
        def report(spans, from_, to):
            log.info("busy %.2fs of the last %.2fs", sum(spans), to - from_)
    """
    return get_monitor().monitor_spans(callback, interval=interval)


def monitor_histogram(
    callback: Optional[HistogramFn] = None,
    *,
    interval: float = DEFAULT_INTERVAL,
    buckets: Iterable[float] = DEFAULT_BUCKETS,
    stacked: bool = False,
    cumulative: bool = False,
):
    """Set the listener of the running monitor to be called with a histogram of spans."""
    return get_monitor().monitor_histogram(
        callback, interval=interval, buckets=buckets, stacked=stacked, cumulative=cumulative
    )


def _wants_monitor(fn) -> bool:
    """
    True if `fn` has a parameter named 'monitor' or accepts **kwargs.
    """
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return False
    for p in sig.parameters.values():
        if p.name == "monitor":
            return True
        if p.kind == inspect.Parameter.VAR_KEYWORD:
            return True
    return False


def run(
    main: Callable[..., Awaitable[Any]] | Awaitable[Any],
    *,
    debug: Optional[bool] = None,
    name: str = "loop",
) -> Any:
    """
    Run `main` on a fresh monitored event loop and return its result.

    `main` is a coroutine function (given the monitor as `monitor=` if it asks
    for it) or a coroutine. Everything it schedules, directly or indirectly, is
    timed. The monitor is torn down however the run ends.
    """
    with asyncio.Runner(debug=debug, loop_factory=new_event_loop) as runner:
        with Monitor(runner.get_loop(), name=name) as monitor:
            if inspect.iscoroutine(main):
                coro = main
            elif _wants_monitor(main):
                coro = main(monitor=monitor)
            else:
                coro = main()
            # the runner snapshotted its context before the monitor was entered
            return runner.run(coro, context=contextvars.copy_context())
