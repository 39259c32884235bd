import time

import pytest


def _schedule_bursts(loop, copies: int = 5) -> None:
    """
    Four callbacks, each scheduling `copies` callbacks that block for
    0.005, 0.015, 0.025 and 0.035 seconds respectively.
    """
    for i in range(4):
        def burst(i=i):
            for _ in range(copies):
                loop.call_soon(time.sleep, 0.005 + i * 0.01)

        loop.call_soon(burst)


@pytest.fixture
def schedule_bursts():
    return _schedule_bursts
