from jobharvest.ratelimit import RateLimiter


class TestRateLimiter:
    def test_admits_up_to_limit_without_waiting(self, clock):
        rl = RateLimiter(clock=clock, sleep=clock.sleep)
        waits = [rl.acquire("alpha", 3) for _ in range(3)]
        assert waits == [0.0, 0.0, 0.0]
        assert clock.sleeps == []
        assert rl.window("alpha").count == 3

    def test_full_window_sleeps_until_reset(self, clock):
        rl = RateLimiter(clock=clock, sleep=clock.sleep)
        rl.acquire("alpha", 2)
        clock.now += 10
        rl.acquire("alpha", 2)

        waited = rl.acquire("alpha", 2)
        assert waited == 50
        assert clock.sleeps == [50]
        w = rl.window("alpha")
        assert w.count == 1
        assert w.reset_at == clock.now + 60

    def test_expired_window_starts_fresh(self, clock):
        rl = RateLimiter(clock=clock, sleep=clock.sleep)
        rl.acquire("alpha", 1)
        clock.now += 61
        assert rl.acquire("alpha", 1) == 0.0
        assert clock.sleeps == []

    def test_sources_have_separate_windows(self, clock):
        rl = RateLimiter(clock=clock, sleep=clock.sleep)
        rl.acquire("alpha", 1)
        assert rl.acquire("beta", 1) == 0.0
        assert rl.window("alpha") is not rl.window("beta")

    def test_never_more_than_limit_per_window(self, clock):
        rl = RateLimiter(clock=clock, sleep=clock.sleep)
        limit = 4
        starts = []
        for _ in range(25):
            rl.acquire("alpha", limit)
            starts.append(clock.now)
            clock.now += 3

        window_start = starts[0]
        while window_start <= starts[-1]:
            inside = [t for t in starts if window_start <= t < window_start + 60]
            assert len(inside) <= limit
            window_start += 60

    def test_limiters_do_not_share_state(self, clock):
        a = RateLimiter(clock=clock, sleep=clock.sleep)
        b = RateLimiter(clock=clock, sleep=clock.sleep)
        a.acquire("alpha", 1)
        assert b.window("alpha") is None
