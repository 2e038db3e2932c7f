"""Tests for taskboard_kernel.domain.clock."""

from datetime import date, datetime, timedelta, timezone

from taskboard_kernel.domain.clock import Clock, DeterministicClock, SystemClock


class TestDeterministicClock:
    def test_fixed_time(self):
        t = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)
        clock = DeterministicClock(t)
        assert clock.now() == t
        assert clock.now() == t

    def test_today_is_date_of_now(self):
        clock = DeterministicClock(datetime(2024, 3, 1, 23, 59, tzinfo=timezone.utc))
        assert clock.today() == date(2024, 3, 1)

    def test_advance(self):
        t = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)
        clock = DeterministicClock(t)
        clock.advance(90)
        assert clock.now() == t + timedelta(seconds=90)


class TestSystemClock:
    def test_is_clock(self):
        assert isinstance(SystemClock(), Clock)

    def test_now_is_timezone_aware(self):
        assert SystemClock().now().tzinfo is not None
