"""
Tests for the fixed-window request limiter.
"""

import pytest
from fastapi.testclient import TestClient

from folio.api.app import create_app
from folio.api.ratelimit import RATE_LIMITED_MESSAGE, FixedWindowRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestFixedWindowRateLimiter:
    def test_allows_up_to_limit(self):
        limiter = FixedWindowRateLimiter(max_requests=3, window_seconds=60, clock=FakeClock())

        assert [limiter.hit("1.2.3.4") for _ in range(4)] == [True, True, True, False]

    def test_keys_are_independent(self):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())

        assert limiter.hit("a")
        assert not limiter.hit("a")
        assert limiter.hit("b")

    def test_window_resets(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=clock)
        limiter.hit("a")
        assert not limiter.hit("a")

        clock.now += 60

        assert limiter.hit("a")

    def test_retry_after(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=clock)
        limiter.hit("a")

        clock.now += 20

        assert limiter.retry_after("a") == 41

    def test_reset(self):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
        limiter.hit("a")

        limiter.reset()

        assert limiter.hit("a")

    def test_expired_windows_are_forgotten(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(max_requests=5, window_seconds=10, clock=clock)
        for i in range(1000):
            limiter.hit(f"10.0.{i // 256}.{i % 256}")
        assert len(limiter) == 1000

        clock.now += 1000
        limiter.hit("10.9.9.9")

        assert len(limiter) == 1

    def test_live_windows_survive_a_sweep(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=10, clock=clock)
        limiter.hit("old")
        clock.now += 9
        limiter.hit("busy")
        clock.now += 2

        limiter.hit("new")

        assert len(limiter) == 2
        assert not limiter.hit("busy")


class TestRateLimitMiddleware:
    @pytest.fixture
    def limited_client(self, settings):
        settings.rate_limit_enabled = True
        settings.rate_limit_max_requests = 2
        with TestClient(create_app(settings)) as c:
            yield c

    def test_api_requests_are_limited(self, limited_client):
        assert limited_client.get("/api/posts").status_code == 200
        assert limited_client.get("/api/projects").status_code == 200

        response = limited_client.get("/api/posts")

        assert response.status_code == 429
        assert response.json() == {"error": RATE_LIMITED_MESSAGE}
        assert int(response.headers["retry-after"]) > 0

    def test_service_endpoints_are_exempt(self, limited_client):
        for _ in range(5):
            assert limited_client.get("/health").status_code == 200
