"""Tests for the fixed-window attempt limiter."""

import threading

from condopark_engine.ratelimit.limiter import RateLimiter, normalize_identifier


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_limiter(clock=None, **overrides) -> RateLimiter:
    defaults = {"max_attempts": 5, "window_seconds": 900, "scope": "login"}
    defaults.update(overrides)
    return RateLimiter(clock=clock or FakeClock(), **defaults)


class TestCheck:
    def test_first_attempt_allowed(self):
        result = make_limiter().check("a@example.com")
        assert result.allowed is True
        assert result.limit == 5
        assert result.remaining == 4

    def test_remaining_counts_down(self):
        limiter = make_limiter()
        remaining = [limiter.check("a@example.com").remaining for _ in range(5)]
        assert remaining == [4, 3, 2, 1, 0]

    def test_sixth_attempt_blocked(self):
        limiter = make_limiter()
        for _ in range(5):
            assert limiter.check("a@example.com").allowed
        result = limiter.check("a@example.com")
        assert result.allowed is False
        assert result.remaining == 0

    def test_reset_at_is_window_end(self):
        clock = FakeClock(5000.0)
        result = make_limiter(clock).check("a@example.com")
        assert result.reset_at == 5900.0

    def test_identifiers_independent(self):
        limiter = make_limiter(max_attempts=1)
        assert limiter.check("a@example.com").allowed
        assert limiter.check("b@example.com").allowed
        assert not limiter.check("a@example.com").allowed

    def test_identifier_normalized(self):
        limiter = make_limiter(max_attempts=2)
        limiter.check("User@Example.com")
        limiter.check("  user@example.com ")
        assert not limiter.check("USER@EXAMPLE.COM").allowed

    def test_window_expiry_resets_count(self):
        clock = FakeClock()
        limiter = make_limiter(clock)
        for _ in range(6):
            limiter.check("a@example.com")
        clock.advance(900)
        result = limiter.check("a@example.com")
        assert result.allowed is True
        assert result.remaining == 4

    def test_still_blocked_just_before_window_end(self):
        clock = FakeClock()
        limiter = make_limiter(clock)
        for _ in range(5):
            limiter.check("a@example.com")
        clock.advance(899)
        assert not limiter.check("a@example.com").allowed

    def test_blocked_attempts_do_not_extend_window(self):
        clock = FakeClock()
        limiter = make_limiter(clock)
        first = limiter.check("a@example.com")
        for _ in range(10):
            clock.advance(60)
            limiter.check("a@example.com")
        assert limiter.info("a@example.com").reset_at == first.reset_at


class TestInfoAndReset:
    def test_info_unknown_identifier(self):
        assert make_limiter().info("nobody@example.com") is None

    def test_info_does_not_count(self):
        limiter = make_limiter()
        limiter.check("a@example.com")
        for _ in range(10):
            info = limiter.info("a@example.com")
        assert info.remaining == 4
        assert limiter.check("a@example.com").remaining == 3

    def test_info_expired_bucket(self):
        clock = FakeClock()
        limiter = make_limiter(clock)
        limiter.check("a@example.com")
        clock.advance(1000)
        assert limiter.info("a@example.com") is None

    def test_reset_clears_bucket(self):
        limiter = make_limiter(max_attempts=1)
        limiter.check("a@example.com")
        limiter.reset("a@example.com")
        assert limiter.check("a@example.com").allowed


class TestCleanup:
    def test_purge_expired(self):
        clock = FakeClock()
        limiter = make_limiter(clock, cleanup_interval=10_000)
        limiter.check("a@example.com")
        limiter.check("b@example.com")
        clock.advance(901)
        limiter.check("c@example.com")
        assert limiter.purge_expired() == 2
        assert len(limiter) == 1

    def test_periodic_cleanup_on_check(self):
        clock = FakeClock()
        limiter = make_limiter(clock, cleanup_interval=300)
        limiter.check("a@example.com")
        clock.advance(1000)
        limiter.check("b@example.com")
        assert len(limiter) == 1

    def test_scopes_do_not_share_state_between_instances(self):
        login = make_limiter(scope="login", max_attempts=1)
        signup = make_limiter(scope="signup", max_attempts=1)
        login.check("a@example.com")
        assert signup.check("a@example.com").allowed


class TestConcurrency:
    def test_concurrent_checks_never_exceed_limit(self):
        limiter = RateLimiter(max_attempts=5, window_seconds=900)
        results = []
        lock = threading.Lock()
        barrier = threading.Barrier(20)

        def attempt():
            barrier.wait()
            result = limiter.check("race@example.com")
            with lock:
                results.append(result.allowed)

        threads = [threading.Thread(target=attempt) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 5
        assert results.count(False) == 15


def test_normalize_identifier():
    assert normalize_identifier("  Mixed@Case.COM ") == "mixed@case.com"
    assert normalize_identifier(None) == ""
