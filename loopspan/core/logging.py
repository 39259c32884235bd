from __future__ import annotations

import logging

from .monitor import current_monitor

FORMAT = "%(asctime)s [%(levelname)s] [monitor=%(monitor)s]: %(message)s"


class MonitorLogFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        m = current_monitor.get()
        record.monitor = m.name if m is not None else "-"
        return True


def setup_logging(level: int | str = logging.INFO) -> None:
    # install a handler only when nothing else configured logging
    root = logging.getLogger()
    root.setLevel(level.upper() if isinstance(level, str) else level)

    if not root.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter(FORMAT))
        root.addHandler(h)

    # handler filters see records propagated from child loggers, logger filters do not
    for h in root.handlers:
        if not any(isinstance(f, MonitorLogFilter) for f in h.filters):
            h.addFilter(MonitorLogFilter())
