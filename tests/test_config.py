import math

import pytest

from loopspan.core.config import DEFAULT_BUCKETS, DEFAULT_INTERVAL, MonitorConfig


def test_defaults():
    cfg = MonitorConfig()
    assert cfg.interval == DEFAULT_INTERVAL == 60
    assert cfg.buckets == DEFAULT_BUCKETS == (0.001, 0.01, 0.1, 1, 10)
    assert cfg.stacked is False
    assert cfg.cumulative is False


def test_buckets_sorted():
    assert MonitorConfig(buckets=[1, 0.1, 0.5]).buckets == (0.1, 0.5, 1.0)


@pytest.mark.parametrize("kwargs", [
    {"interval": 0},
    {"interval": -5},
    {"buckets": [-0.1, 1]},
    {"buckets": (0.1, 0.1)},
    {"buckets": (math.nan,)},
])
def test_invalid(kwargs):
    with pytest.raises(ValueError):
        MonitorConfig(**kwargs)


def test_from_env():
    cfg = MonitorConfig.from_env({
        "LOOPSPAN_INTERVAL": "2.5",
        "LOOPSPAN_BUCKETS": "0.1, 0.01,,1",
        "LOOPSPAN_STACKED": "yes",
        "LOOPSPAN_CUMULATIVE": "0",
    })

    assert cfg == MonitorConfig(interval=2.5, buckets=(0.01, 0.1, 1.0), stacked=True, cumulative=False)


def test_from_env_reads_os_environ(monkeypatch):
    monkeypatch.setenv("LOOPSPAN_INTERVAL", "5")
    monkeypatch.setenv("LOOPSPAN_CUMULATIVE", "true")
    monkeypatch.delenv("LOOPSPAN_BUCKETS", raising=False)
    monkeypatch.delenv("LOOPSPAN_STACKED", raising=False)

    cfg = MonitorConfig.from_env()

    assert cfg.interval == 5
    assert cfg.cumulative is True
    assert cfg.buckets == DEFAULT_BUCKETS


def test_from_env_custom_prefix():
    assert MonitorConfig.from_env({"APP_INTERVAL": "3"}, prefix="APP_").interval == 3


@pytest.mark.parametrize("env", [
    {"LOOPSPAN_INTERVAL": "soon"},
    {"LOOPSPAN_BUCKETS": "0.1,big"},
    {"LOOPSPAN_STACKED": "maybe"},
])
def test_from_env_invalid(env):
    with pytest.raises(ValueError, match="LOOPSPAN_"):
        MonitorConfig.from_env(env)


def test_as_kwargs_round_trips_into_monitor_histogram():
    cfg = MonitorConfig(interval=1, stacked=True)
    assert cfg.as_kwargs() == {
        "interval": 1,
        "buckets": DEFAULT_BUCKETS,
        "stacked": True,
        "cumulative": False,
    }


def test_explicit_infinity_dropped():
    assert MonitorConfig(buckets=(1, math.inf)).buckets == (1.0,)
