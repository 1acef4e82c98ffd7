from __future__ import annotations

import math

import pytest

from crashgame.runtime_clock import MultiplierClock, multiplier_at


class TestMultiplierCurve:
    def test_starts_at_one(self):
        assert multiplier_at(0) == 1.0

    @pytest.mark.parametrize("elapsed", [0.0, 0.05, 1.0, 6.0, 13.9, 29.99])
    def test_matches_exponential_curve(self, elapsed: float):
        assert multiplier_at(elapsed) == pytest.approx(math.exp(0.05 * elapsed))

    def test_strictly_increasing(self):
        samples = [multiplier_at(step * 0.05) for step in range(0, 600)]
        assert all(later > earlier for earlier, later in zip(samples, samples[1:]))

    def test_doubles_in_about_fourteen_seconds(self):
        assert multiplier_at(math.log(2) / 0.05) == pytest.approx(2.0)

    def test_ten_seconds(self):
        assert multiplier_at(10) == pytest.approx(1.6487, abs=1e-4)


class TestMultiplierClock:
    def test_not_running_until_started(self, fake_time):
        clock = MultiplierClock(time_source=fake_time)
        assert clock.start_time is None
        assert clock.elapsed() == 0.0
        assert clock.multiplier() == 1.0

    def test_uses_elapsed_wall_time(self, fake_time):
        fake_time.now = 50.0
        clock = MultiplierClock(time_source=fake_time)
        clock.start()
        fake_time.advance(6.0)
        assert clock.elapsed() == pytest.approx(6.0)
        assert clock.multiplier() == pytest.approx(math.exp(0.3))

    def test_stop_clears_start_time(self, fake_time):
        clock = MultiplierClock(time_source=fake_time)
        clock.start()
        fake_time.advance(3.0)
        clock.stop()
        assert clock.start_time is None
        assert clock.multiplier() == 1.0
