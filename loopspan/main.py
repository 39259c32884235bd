from __future__ import annotations
import os, random, asyncio, time
import logging

from loopspan.core.config import MonitorConfig
from loopspan.core.health import log_utilisation
from loopspan.core.logging import setup_logging
from loopspan.core.monitor import Monitor, run

setup_logging(os.getenv("LOOPSPAN_LOG_LEVEL", "INFO"))

log = logging.getLogger(__name__)

# Sample span lengths: lots of short ones, a few very long ones.
SAMPLES = [0.0005] * 100_000 + [0.005] * 10_000 + [0.05] * 1000 + [0.5] * 100 + [5] * 10 + [10]


async def blocking_load(*, max_gap_s: float = 0.02):
    """Keep blocking the loop for a random sampled time, with short idle gaps in between."""
    while True:
        time.sleep(random.choice(SAMPLES))
        await asyncio.sleep(random.random() * max_gap_s)


async def main(monitor: Monitor):
    # one-second reports unless told otherwise
    cfg = MonitorConfig.from_env({"LOOPSPAN_INTERVAL": "1", **os.environ})

    # log_utilisation picks up stacked from the histogram it is attached to
    monitor.monitor_histogram(log_utilisation(), **cfg.as_kwargs())
    log.info("reporting every %.1fs, hit <Ctrl-C> when you've seen enough", cfg.interval)

    try:
        await blocking_load()
    except asyncio.CancelledError:
        log.info("stopping")
        raise

def cli():
    try:
        run(main, name="demo")
    except KeyboardInterrupt:
        pass

if __name__ == "__main__":
    cli()
