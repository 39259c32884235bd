"""
Measure how much of an asyncio event loop's time goes into synchronous work.

Every callback, timer and task step scheduled inside a monitored run is
timed. The durations ("spans") are handed to a listener every interval,
either raw or folded into a histogram by span length.

    import loopspan

    async def main():
        @loopspan.monitor_histogram(interval=10, stacked=True)
        def report(histogram, from_, to):
            ...
        await serve_forever()

    loopspan.run(main)
"""
from __future__ import annotations

from loopspan.core.config import DEFAULT_BUCKETS, DEFAULT_INTERVAL, MonitorConfig
from loopspan.core.health import log_utilisation, utilisation
from loopspan.core.histogram import HistogramAggregator, resolve_buckets
from loopspan.core.loop import MonitoredEventLoop, new_event_loop
from loopspan.core.monitor import (
    Monitor,
    NotInitialized,
    get_monitor,
    monitor_histogram,
    monitor_spans,
    run,
)
from loopspan.core.recorder import SpanRecorder

__all__ = [
    "DEFAULT_BUCKETS",
    "DEFAULT_INTERVAL",
    "HistogramAggregator",
    "Monitor",
    "MonitorConfig",
    "MonitoredEventLoop",
    "NotInitialized",
    "SpanRecorder",
    "get_monitor",
    "log_utilisation",
    "monitor_histogram",
    "monitor_spans",
    "new_event_loop",
    "resolve_buckets",
    "run",
    "utilisation",
]

__version__ = "0.1.0"
