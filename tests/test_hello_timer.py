import random
import pytest
from dvhop_simulator.protocols.hello_timer import HelloTimer


class TestHelloTimer:
    """Generation-based cancellation and jitter"""

    def test_defaults_from_config(self):
        timer = HelloTimer()
        assert timer.interval == 1.0
        assert timer.jitter_max_ms == 10
        assert not timer.running

    def test_start_and_cancel_bump_generation(self):
        timer = HelloTimer()
        first = timer.start()
        assert timer.is_current(first)

        timer.cancel()
        assert not timer.is_current(first)

        second = timer.start()
        assert second != first
        assert timer.is_current(second)
        assert not timer.is_current(first)

    def test_jitter_is_whole_milliseconds(self):
        random.seed(1)
        timer = HelloTimer(jitter_max_ms=10)
        for _ in range(200):
            jitter = timer.next_jitter()
            assert 0.0 <= jitter <= 0.010
            assert jitter * 1000 == pytest.approx(round(jitter * 1000))

    def test_zero_jitter(self):
        assert HelloTimer(jitter_max_ms=0).next_jitter() == 0.0
