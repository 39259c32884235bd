from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

# seconds between reports
DEFAULT_INTERVAL = 60.0
# histogram limits; infinity is always appended
DEFAULT_BUCKETS: Tuple[float, ...] = (0.001, 0.01, 0.1, 1.0, 10.0)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, raw: str) -> bool:
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{name}: expected a boolean, got {raw!r}")


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name}: expected a number, got {raw!r}") from None


@dataclass(frozen=True)
class MonitorConfig:
    interval: float = DEFAULT_INTERVAL
    buckets: Tuple[float, ...] = field(default=DEFAULT_BUCKETS)
    stacked: bool = False
    cumulative: bool = False

    def __post_init__(self) -> None:
        if not self.interval > 0:
            raise ValueError(f"interval must be > 0, got {self.interval!r}")
        from .histogram import resolve_buckets

        # same checks the aggregator applies; infinity stays implicit
        buckets = tuple(b for b in resolve_buckets(self.buckets) if b != math.inf)
        object.__setattr__(self, "buckets", buckets)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, *, prefix: str = "LOOPSPAN_") -> "MonitorConfig":
        """
        Build a config from environment variables:

          {prefix}INTERVAL    seconds between reports
          {prefix}BUCKETS     comma separated bucket limits, e.g. "0.001,0.01,0.1"
          {prefix}STACKED     1/true/yes/on
          {prefix}CUMULATIVE  1/true/yes/on

        Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        kwargs: Dict[str, Any] = {}

        raw = env.get(prefix + "INTERVAL")
        if raw:
            kwargs["interval"] = _parse_float(prefix + "INTERVAL", raw)

        raw = env.get(prefix + "BUCKETS")
        if raw:
            kwargs["buckets"] = tuple(
                _parse_float(prefix + "BUCKETS", part) for part in raw.split(",") if part.strip()
            )

        for name in ("stacked", "cumulative"):
            raw = env.get(prefix + name.upper())
            if raw is not None:
                kwargs[name] = _parse_bool(prefix + name.upper(), raw)

        return cls(**kwargs)

    def as_kwargs(self) -> Dict[str, Any]:
        return {
            "interval": self.interval,
            "buckets": self.buckets,
            "stacked": self.stacked,
            "cumulative": self.cumulative,
        }
