from __future__ import annotations

import math
import logging
from typing import Dict, Optional

from .histogram import Histogram, HistogramFn
from .monitor import current_monitor

log = logging.getLogger(__name__)


def utilisation(histogram: Histogram, from_: float, to: float) -> Dict[float, float]:
    """
    Percentage of the period [from_, to] spent in the spans of each bucket.
    """
    elapsed = to - from_
    if elapsed <= 0:
        return {b: 0.0 for b in histogram}
    return {b: v * 100.0 / elapsed for b, v in histogram.items()}


def busy_pct(percentages: Dict[float, float], *, stacked: bool) -> float:
    """Share of the period the loop was running work at all."""
    if stacked:
        # every span is also counted in the last (infinite) bucket
        return percentages.get(math.inf, 0.0)
    return sum(percentages.values())


def _is_stacked(stacked: Optional[bool]) -> bool:
    if stacked is not None:
        return stacked
    m = current_monitor.get()
    return bool(m is not None and m.aggregator is not None and m.aggregator.stacked)


def log_utilisation(
    *,
    stacked: Optional[bool] = None,
    warn_pct: float = 50.0,
    logger: Optional[logging.Logger] = None,
) -> HistogramFn:
    """
    Histogram listener that logs how busy the loop was per span length.

    A busy loop is a blocked loop: anything scheduled has to wait for the
    running span to finish. Spikes point at accidental time.sleep(),
    heavy CPU parsing, massive sync work, etc.

    `stacked` defaults to whatever the running monitor's histogram was
    attached with; pass it explicitly when reporting outside a monitor.
    """
    logger = logger or log

    def report(histogram: Histogram, from_: float, to: float) -> None:
        pct = utilisation(histogram, from_, to)
        busy = busy_pct(pct, stacked=_is_stacked(stacked))
        line = " ".join(f"<{b:g}s:{p:0.2f}%" for b, p in pct.items())

        if busy >= warn_pct:
            logger.warning("event loop busy %.2f%% over %.2fs: %s", busy, to - from_, line)
        else:
            logger.info("event loop busy %.2f%% over %.2fs: %s", busy, to - from_, line)

    return report
