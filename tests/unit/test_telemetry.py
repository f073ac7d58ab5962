import pytest

from mindchat.observability.telemetry import counter, get_counter, reset_counters, time_block


def test_counter_increments():
    assert counter("sync.test") == 1
    assert counter("sync.test", 4) == 5
    assert get_counter("sync.test") == 5
    reset_counters()
    assert get_counter("sync.test") == 0


def test_time_block_fills_timing():
    with time_block("phase") as timing:
        sum(range(1000))
    assert timing.name == "phase"
    assert timing.elapsed_ms >= 0.0


def test_time_block_records_failed_phase():
    with pytest.raises(RuntimeError):
        with time_block("phase") as timing:
            raise RuntimeError("boom")
    assert timing.elapsed_ms >= 0.0
