from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from litestar import Request
from litestar.datastructures import MutableScopeHeaders
from litestar.enums import ScopeType
from litestar.middleware import ASGIMiddleware
from msgspec import Struct

from notekeeper.lib.exceptions import TooManyRequestsError

if TYPE_CHECKING:
    from typing import Final

    from litestar.types import ASGIApp, Message, Receive, Scope, Send


__all__ = ("RateDecision", "RateLimitMiddleware", "RateLimitPolicy", "RateLimiter")


LOGGER: Final = logging.getLogger(__name__)


class RateLimitPolicy(Struct, frozen=True):
    """Rate limit policy.

    A policy admits at most ``max_requests`` requests per client within a
    fixed window of ``window`` seconds.

    Parameters
    ----------
    max_requests : int
        Number of requests admitted per window.
    window : float
        Length of the window in seconds.
    """

    max_requests: int
    window: float


class RateWindow(Struct):
    """Counter of one client within its current window.

    Parameters
    ----------
    count : int
        Requests admitted in the current window.
    reset_at : float
        Clock value at which the window elapses.
    """

    count: int
    reset_at: float


class RateDecision(Struct, frozen=True):
    """Outcome of a single admission check."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: float

    @property
    def retry_after(self) -> int:
        """Whole seconds until the window resets, rounded up."""
        return math.ceil(self.reset_after)


class RateLimiter:
    """Fixed window request counter.

    Each key gets a window that starts with its first request. Requests are
    admitted while the window's count is below the policy limit, once the
    window elapses the next request starts a fresh one. Bursts straddling two
    windows are accepted, this is a fixed window and not a sliding log.

    Windows are never destroyed, memory is bounded by the number of distinct
    keys seen.

    Parameters
    ----------
    clock : Callable[[], float], optional
        Monotonic clock in seconds (the default is :func:`time.monotonic`).
    """

    __slots__ = ("_clock", "_lock", "_windows")

    _clock: Callable[[], float]
    _lock: asyncio.Lock
    _windows: dict[str, RateWindow]

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = asyncio.Lock()
        self._windows = {}

    async def hit(self, key: str, policy: RateLimitPolicy) -> RateDecision:
        """Count a request against ``key`` and decide whether to admit it.

        Parameters
        ----------
        key : str
            Identifies the client (and the policy) the request is counted for.
        policy : RateLimitPolicy
            The limit to enforce.

        Returns
        -------
        RateDecision
            Whether the request is admitted and the state of the window.
        """
        async with self._lock:
            now = self._clock()
            window = self._windows.get(key)

            if window is None or now >= window.reset_at:
                window = RateWindow(count=1, reset_at=now + policy.window)
                self._windows[key] = window
                allowed = True
            elif window.count < policy.max_requests:
                window.count += 1
                allowed = True
            else:
                allowed = False

            return RateDecision(
                allowed=allowed,
                limit=policy.max_requests,
                remaining=max(0, policy.max_requests - window.count),
                reset_after=max(0.0, window.reset_at - now),
            )


class RateLimitMiddleware(ASGIMiddleware):
    """Fixed window rate limiting middleware.

    Limits are defined per route as :class:`RateLimitPolicy` objects in the
    route options, e.g. ``@post(rate_limits=[RateLimitPolicy(5, 300)])``.
    Every policy of a route keeps its own window per client.

    Parameters
    ----------
    limiter : RateLimiter
        The limiter holding the windows.
    exclude_opt_key : str, optional
        Key to check in route options to exclude the route from rate limiting (the default is None).
    exclude_path_pattern : str or tuple[str, ...], optional
        Regex pattern(s) for paths that should bypass rate limiting (the default is None).
    route_limits_key : str, optional
        Key in route options where per-route limits are defined (the default is "rate_limits").
    limit_header_key, remaining_header_key, reset_after_header_key, retry_after_header_key : str
        Header names for emitted rate limit information.
    trusted_proxies : tuple[str, ...], optional
        Peer addresses allowed to name the client through ``X-Forwarded-For``
        or ``X-Real-IP``. Any other peer is keyed on its own address
        (the default is no trusted proxies).
    """

    __slots__ = (
        "limit_header_key",
        "limiter",
        "remaining_header_key",
        "reset_after_header_key",
        "retry_after_header_key",
        "route_limits_key",
        "trusted_proxies",
    )

    limiter: RateLimiter
    route_limits_key: str
    limit_header_key: str
    remaining_header_key: str
    reset_after_header_key: str
    retry_after_header_key: str
    trusted_proxies: frozenset[str]

    def __init__(
        self,
        *,
        limiter: RateLimiter,
        exclude_opt_key: str | None = None,
        exclude_path_pattern: str | tuple[str, ...] | None = None,
        route_limits_key: str = "rate_limits",
        limit_header_key: str = "X-RateLimit-Limit",
        remaining_header_key: str = "X-RateLimit-Remaining",
        reset_after_header_key: str = "X-RateLimit-Reset-After",
        retry_after_header_key: str = "Retry-After",
        trusted_proxies: tuple[str, ...] = (),
    ) -> None:
        self.scopes = (ScopeType.HTTP,)
        self.exclude_opt_key = exclude_opt_key
        self.exclude_path_pattern = exclude_path_pattern

        self.limiter = limiter
        self.route_limits_key = route_limits_key
        self.limit_header_key = limit_header_key
        self.remaining_header_key = remaining_header_key
        self.reset_after_header_key = reset_after_header_key
        self.retry_after_header_key = retry_after_header_key
        self.trusted_proxies = frozenset(trusted_proxies)

    async def handle(
        self, scope: Scope, receive: Receive, send: Send, next_app: ASGIApp
    ) -> None:
        """Handle ASGI call.

        Parameters
        ----------
        scope : Scope
            The ASGI connection scope.
        receive : Receive
            The ASGI receive function.
        send : Send
            The ASGI send function.
        next_app : ASGIApp
            The next ASGI application in the middleware stack to call.
        """
        route_handler = scope["route_handler"]
        route_limits: list[RateLimitPolicy] = route_handler.opt.get(
            self.route_limits_key, []
        )

        if not route_limits:
            await next_app(scope, receive, send)
            return

        app = scope["litestar_app"]
        request: Request[Any, Any, Any] = app.request_class(scope)  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]
        client = self.client_identifier(request)

        most_limited: RateDecision | None = None

        for limit in route_limits:
            key = f"{client}::{route_handler.handler_name}::{limit.max_requests}::{limit.window}"
            decision = await self.limiter.hit(key, limit)

            if not decision.allowed:
                LOGGER.warning(
                    "Rate limited client=%s handler=%s retry_after=%s",
                    client,
                    route_handler.handler_name,
                    decision.retry_after,
                )
                detail = "Too many requests, please try again later."
                raise TooManyRequestsError(
                    detail=detail,
                    headers=self._build_429_headers(decision),
                    retryAfter=decision.retry_after,
                )

            if most_limited is None or decision.remaining < most_limited.remaining:
                most_limited = decision

        if most_limited is not None:
            send = self._wrap_send(send, most_limited)

        await next_app(scope, receive, send)

    def client_identifier(self, request: Request[Any, Any, Any]) -> str:
        """Identify the client a request is counted against.

        Forwarding headers are only honoured when the peer is a trusted
        proxy, otherwise a client could pick a fresh identity per request.
        """
        peer = request.client.host if request.client is not None else None
        if peer is None or peer not in self.trusted_proxies:
            return peer or "anonymous"

        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip() or peer

        return request.headers.get("X-Real-IP") or peer

    def _wrap_send(self, send: Send, decision: RateDecision) -> Send:
        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                headers = MutableScopeHeaders(message)
                for k, v in self._build_headers(decision).items():
                    headers[k] = v
            await send(message)

        return send_wrapper

    def _build_headers(self, decision: RateDecision) -> dict[str, str]:
        return {
            self.limit_header_key: str(decision.limit),
            self.remaining_header_key: str(decision.remaining),
            self.reset_after_header_key: str(decision.retry_after),
        }

    def _build_429_headers(self, decision: RateDecision) -> dict[str, str]:
        headers = self._build_headers(decision)
        headers[self.retry_after_header_key] = str(decision.retry_after)
        return headers
