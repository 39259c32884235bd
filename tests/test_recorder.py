import time

import pytest

from loopspan.core.recorder import SpanRecorder, current_recorder, recorder_for


def test_wrap_records_elapsed_time():
    rec = SpanRecorder()
    timed = rec.wrap(time.sleep)

    timed(0.01)

    spans = rec.drain()
    assert len(spans) == 1
    assert spans[0] == pytest.approx(0.01, abs=0.005)


def test_wrap_passes_args_and_result_through():
    rec = SpanRecorder()

    def add(a, b):
        return a + b

    assert rec.wrap(add)(2, 3) == 5
    assert rec.wrap(add).__name__ == "add"
    assert len(rec) == 1


def test_span_recorded_before_exception_propagates():
    rec = SpanRecorder()

    def boom():
        time.sleep(0.004)
        raise ValueError("oops")

    with pytest.raises(ValueError, match="oops"):
        rec.wrap(boom)()

    spans = rec.drain()
    assert len(spans) == 1
    assert spans[0] == pytest.approx(0.004, abs=0.003)


def test_drain_swaps_buffer():
    rec = SpanRecorder()
    rec.record(0.1)
    rec.record(0.2)

    first = rec.drain()
    rec.record(0.3)

    assert first == [0.1, 0.2]
    assert rec.drain() == [0.3]
    assert rec.drain() == []


def test_closed_recorder_discards_spans():
    rec = SpanRecorder()
    rec.record(0.1)
    rec.close()
    rec.wrap(lambda: None)()

    assert rec.closed
    assert rec.drain() == []


def test_recorder_for_reads_given_context():
    import contextvars

    rec = SpanRecorder()
    assert recorder_for() is None

    token = current_recorder.set(rec)
    try:
        ctx = contextvars.copy_context()
        assert recorder_for() is rec
        assert recorder_for(ctx) is rec
        assert recorder_for(contextvars.Context()) is None
    finally:
        current_recorder.reset(token)

    assert recorder_for(ctx) is rec
    assert recorder_for() is None
