"""
Tests for the fixed-window submission rate limiter.
"""
import threading

import pytest

from conftest import FakeClock
from ruya.services.rate_limit import FixedWindowRateLimiter


class TestFixedWindow:
    def test_allows_up_to_cap_then_rejects(self, clock):
        limiter = FixedWindowRateLimiter(max_hits=10, window_seconds=60, clock=clock)
        results = [limiter.hit("1.2.3.4").allowed for _ in range(11)]
        assert results == [True] * 10 + [False]

    def test_window_resets_after_expiry(self, clock):
        limiter = FixedWindowRateLimiter(max_hits=2, window_seconds=60, clock=clock)
        limiter.hit("k")
        limiter.hit("k")
        assert limiter.hit("k").allowed is False
        clock.advance(60)
        decision = limiter.hit("k")
        assert decision.allowed is True
        assert decision.remaining == 1

    def test_window_is_fixed_not_sliding(self, clock):
        limiter = FixedWindowRateLimiter(max_hits=1, window_seconds=60, clock=clock)
        limiter.hit("k")
        clock.advance(59)
        assert limiter.hit("k").allowed is False
        clock.advance(1)
        assert limiter.hit("k").allowed is True

    def test_retry_after_reports_time_to_reset(self, clock):
        limiter = FixedWindowRateLimiter(max_hits=1, window_seconds=60, clock=clock)
        limiter.hit("k")
        clock.advance(20)
        decision = limiter.hit("k")
        assert decision.allowed is False
        assert decision.retry_after == pytest.approx(40)

    def test_keys_are_independent(self, clock):
        limiter = FixedWindowRateLimiter(max_hits=1, window_seconds=60, clock=clock)
        assert limiter.hit("a").allowed is True
        assert limiter.hit("b").allowed is True
        assert limiter.hit("a").allowed is False

    def test_rejected_hits_do_not_extend_window(self, clock):
        limiter = FixedWindowRateLimiter(max_hits=1, window_seconds=60, clock=clock)
        limiter.hit("k")
        for _ in range(5):
            clock.advance(10)
            limiter.hit("k")
        clock.advance(10)
        assert limiter.hit("k").allowed is True


class TestCapacity:
    def test_least_recently_seen_key_evicted(self, clock):
        limiter = FixedWindowRateLimiter(max_hits=1, window_seconds=60, max_keys=2, clock=clock)
        limiter.hit("a")
        limiter.hit("b")
        limiter.hit("a")  # touch a; b is now least recently seen
        limiter.hit("c")
        assert limiter.tracked_keys() == ["a", "c"]
        # b was forgotten, so it starts a fresh window
        assert limiter.hit("b").allowed is True

    def test_reset_clears_everything(self, clock):
        limiter = FixedWindowRateLimiter(max_hits=1, clock=clock)
        limiter.hit("a")
        limiter.reset()
        assert limiter.tracked_keys() == []
        assert limiter.hit("a").allowed is True

    @pytest.mark.parametrize("kwargs", [
        {"max_hits": 0},
        {"window_seconds": 0},
        {"max_keys": 0},
    ])
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(**kwargs)


class TestConcurrency:
    def test_parallel_hits_never_exceed_cap(self):
        limiter = FixedWindowRateLimiter(max_hits=10, window_seconds=60, clock=FakeClock())
        allowed = []
        lock = threading.Lock()

        def worker():
            for _ in range(5):
                ok = limiter.hit("shared").allowed
                with lock:
                    allowed.append(ok)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(allowed) == 40
        assert sum(allowed) == 10
