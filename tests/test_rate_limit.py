from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from litestar import Request

from notekeeper.middleware.rate_limit import (
    RateLimiter,
    RateLimitMiddleware,
    RateLimitPolicy,
)

if TYPE_CHECKING:
    from litestar import Litestar
    from litestar.testing import TestClient

    from conftest import FakeMonotonic


@pytest.fixture
def limiter(monotonic: FakeMonotonic) -> RateLimiter:
    return RateLimiter(clock=monotonic)


POLICY = RateLimitPolicy(max_requests=3, window=60)


@pytest.mark.asyncio
async def test_admits_up_to_the_limit(limiter: RateLimiter) -> None:
    decisions = [await limiter.hit("client", POLICY) for _ in range(3)]

    assert all(d.allowed for d in decisions)
    assert [d.remaining for d in decisions] == [2, 1, 0]

    rejected = await limiter.hit("client", POLICY)
    assert not rejected.allowed
    assert rejected.retry_after == 60


@pytest.mark.asyncio
async def test_retry_after_rounds_up(
    limiter: RateLimiter, monotonic: FakeMonotonic
) -> None:
    for _ in range(3):
        await limiter.hit("client", POLICY)

    monotonic.now += 10.5
    decision = await limiter.hit("client", POLICY)

    assert not decision.allowed
    assert decision.retry_after == 50


@pytest.mark.asyncio
async def test_window_resets(limiter: RateLimiter, monotonic: FakeMonotonic) -> None:
    for _ in range(4):
        await limiter.hit("client", POLICY)

    monotonic.now += 60
    decision = await limiter.hit("client", POLICY)

    assert decision.allowed
    assert decision.remaining == 2


@pytest.mark.asyncio
async def test_keys_are_independent(limiter: RateLimiter) -> None:
    for _ in range(3):
        await limiter.hit("a", POLICY)

    assert not (await limiter.hit("a", POLICY)).allowed
    assert (await limiter.hit("b", POLICY)).allowed


def test_signup_is_limited(client: TestClient[Litestar]) -> None:
    for i in range(5):
        response = client.post(
            "/api/signup", json={"username": f"user{i}", "password": "pw"}
        )
        assert response.status_code == 201
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == str(4 - i)

    response = client.post("/api/signup", json={"username": "user5", "password": "pw"})

    assert response.status_code == 429
    body = response.json()
    assert body["kind"] == "rate_limited"
    assert 0 < body["retryAfter"] <= 300
    assert response.headers["Retry-After"] == str(body["retryAfter"])


def test_forwarded_headers_from_untrusted_peers_are_ignored(
    client: TestClient[Litestar],
) -> None:
    statuses = [
        client.post(
            "/api/signup",
            json={"username": f"user{i}", "password": "pw"},
            headers={"X-Forwarded-For": f"10.0.0.{i}", "X-Real-IP": f"10.0.1.{i}"},
        ).status_code
        for i in range(6)
    ]

    assert statuses == [201] * 5 + [429]


def make_request(
    peer: str | None, headers: dict[str, str] | None = None
) -> Request[Any, Any, Any]:
    scope = {
        "type": "http",
        "client": (peer, 50000) if peer is not None else None,
        "headers": [
            (k.lower().encode("latin-1"), v.encode("latin-1"))
            for k, v in (headers or {}).items()
        ],
    }
    return Request(scope)  # pyright: ignore[reportArgumentType]


@pytest.mark.parametrize(
    ("peer", "headers", "expected"),
    [
        ("203.0.113.9", {}, "203.0.113.9"),
        ("203.0.113.9", {"X-Forwarded-For": "10.0.0.1"}, "203.0.113.9"),
        ("203.0.113.9", {"X-Real-IP": "10.0.0.2"}, "203.0.113.9"),
        ("192.168.0.10", {"X-Forwarded-For": "10.0.0.1, 172.16.0.1"}, "10.0.0.1"),
        ("192.168.0.10", {"X-Real-IP": "10.0.0.2"}, "10.0.0.2"),
        ("192.168.0.10", {}, "192.168.0.10"),
        (None, {"X-Forwarded-For": "10.0.0.1"}, "anonymous"),
    ],
)
def test_client_identifier(
    limiter: RateLimiter, peer: str | None, headers: dict[str, str], expected: str
) -> None:
    middleware = RateLimitMiddleware(limiter=limiter, trusted_proxies=("192.168.0.10",))

    assert middleware.client_identifier(make_request(peer, headers)) == expected


def test_login_and_signup_windows_are_independent(
    client: TestClient[Litestar],
) -> None:
    for i in range(5):
        client.post("/api/signup", json={"username": f"user{i}", "password": "pw"})

    assert (
        client.post("/api/signup", json={"username": "x", "password": "pw"}).status_code
        == 429
    )

    for _ in range(10):
        response = client.post("/api/login", json={"username": "user0", "password": "pw"})
        assert response.status_code == 200

    response = client.post("/api/login", json={"username": "user0", "password": "pw"})
    assert response.status_code == 429


def test_unlimited_routes_have_no_headers(
    client: TestClient[Litestar], alice: dict[str, str]
) -> None:
    response = client.get("/api/me", headers=alice)

    assert response.status_code == 200
    assert "X-RateLimit-Limit" not in response.headers
