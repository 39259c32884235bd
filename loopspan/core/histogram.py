from __future__ import annotations

import math
from bisect import bisect_right
from typing import Callable, Dict, Iterable, List, Tuple

from .config import DEFAULT_BUCKETS

Histogram = Dict[float, float]
HistogramFn = Callable[[Histogram, float, float], None]


def resolve_buckets(buckets: Iterable[float]) -> Tuple[float, ...]:
    """
    Sort the bucket limits and make sure they end with infinity, so every
    span has somewhere to go.
    """
    bounds = sorted(float(b) for b in buckets)
    for b in bounds:
        if math.isnan(b) or b < 0:
            raise ValueError(f"bucket limits must be non-negative numbers, got {b!r}")
    for lo, hi in zip(bounds, bounds[1:]):
        if lo == hi:
            raise ValueError(f"duplicate bucket limit {lo!r}")
    if not bounds or bounds[-1] != math.inf:
        bounds.append(math.inf)
    return tuple(bounds)


class HistogramAggregator:
    """
    Turns the spans of each period into seconds-per-bucket.

    A span goes into the smallest bucket whose limit is strictly greater
    than it (a span equal to a limit goes to the next one up). When
    `stacked`, it is added to every bucket whose limit is greater, so each
    bucket also includes everything below it.

    When `cumulative`, totals are never reset and the same dict is passed
    to the callback every period; copy it to keep a snapshot.
    """

    def __init__(
        self,
        callback: HistogramFn,
        *,
        buckets: Iterable[float] = DEFAULT_BUCKETS,
        stacked: bool = False,
        cumulative: bool = False,
    ) -> None:
        self.callback = callback
        self.buckets = resolve_buckets(buckets)
        self.stacked = bool(stacked)
        self.cumulative = bool(cumulative)
        self.histogram: Histogram = self._empty()

    def _empty(self) -> Histogram:
        # keys in bucket order so histogram.values() lines up with the limits
        return {b: 0.0 for b in self.buckets}

    def add(self, span: float) -> None:
        i = bisect_right(self.buckets, span)
        if self.stacked:
            for b in self.buckets[i:]:
                self.histogram[b] += span
        else:
            self.histogram[self.buckets[i]] += span

    def __call__(self, spans: List[float], from_: float, to: float) -> None:
        if not self.cumulative:
            self.histogram = self._empty()
        for span in spans:
            self.add(span)
        self.callback(self.histogram, from_, to)
