"""Tests for the injectable clocks."""

from datetime import date, datetime, timedelta, timezone

import pytest

from billing_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:

    def test_fixed_until_moved(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()
        assert clock.now() == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_advance_days_moves_billing_date(self):
        clock = DeterministicClock()
        clock.set_date(date(2025, 1, 31))
        clock.advance(days=1)
        assert clock.today() == date(2025, 2, 1)

    def test_advance_seconds(self):
        clock = DeterministicClock()
        before = clock.now()
        assert clock.advance(seconds=1) - before == timedelta(seconds=1)

    def test_set_date(self):
        clock = DeterministicClock()
        clock.set_date(date(2025, 1, 15))
        assert clock.today() == date(2025, 1, 15)

    def test_today_is_utc_date(self):
        clock = DeterministicClock(datetime(2025, 3, 1, 1, 0, tzinfo=timezone(timedelta(hours=3))))
        assert clock.today() == date(2025, 2, 28)

    def test_naive_instant_rejected(self):
        with pytest.raises(ValueError):
            DeterministicClock().set_instant(datetime(2025, 1, 1))


class TestSystemClock:

    def test_timezone_aware(self):
        assert SystemClock().now_utc().tzinfo is not None
