"""Fixed-window rate limiting for the revocation endpoint.

Counters live in a pluggable store; the default keeps them in process memory
and keys requests by the caller's network address.
"""

import logging
import math
import time
from collections.abc import Callable, Mapping
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, SkipValidation
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from revocation.oauth.errors import TooManyRequestsError
from revocation.oauth.types import RequestContext

logger = logging.getLogger(__name__)

WINDOW_SECONDS_DEFAULT = 15 * 60
MAX_REQUESTS_DEFAULT = 50
HTTP_TOO_MANY_REQUESTS = 429
RATE_LIMIT_MESSAGE_DEFAULT = (
    "You have exceeded the rate limit for token revocation requests"
)


class RateLimitHit(BaseModel):
    """Counter state for one key after recording a request."""

    total_hits: int
    reset_in: float


class RateLimitStore(Protocol):
    """Bookkeeping for request counts within the current window."""

    def increment(self, key: str) -> RateLimitHit: ...


class MemoryRateLimitStore:
    """In-process fixed-window counters.

    `increment` never awaits, so a single event loop needs no lock. Expired
    windows are swept at most once per window length.
    """

    def __init__(
        self,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[int, float]] = {}
        self._next_sweep = clock() + window_seconds

    def increment(self, key: str) -> RateLimitHit:
        now = self._clock()
        if now >= self._next_sweep:
            self.cleanup()
            self._next_sweep = now + self.window_seconds
        hits, reset_at = self._windows.get(key, (0, 0.0))
        if now >= reset_at:
            hits, reset_at = 0, now + self.window_seconds
        hits += 1
        self._windows[key] = (hits, reset_at)
        return RateLimitHit(total_hits=hits, reset_in=reset_at - now)

    def __len__(self) -> int:
        return len(self._windows)

    def cleanup(self) -> int:
        """Drop expired windows. Returns count removed."""
        now = self._clock()
        stale = [k for k, (_, reset_at) in self._windows.items() if now >= reset_at]
        for key in stale:
            del self._windows[key]
        return len(stale)


def client_address(request: Request) -> str:
    """Default rate-limit key: the caller's network address."""
    if request.client is None:
        return "unknown"
    return request.client.host


class RateLimitOptions(BaseModel):
    """Rate-limit configuration; unset fields keep their defaults."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True, frozen=True, extra="forbid"
    )

    window_seconds: float = Field(default=WINDOW_SECONDS_DEFAULT, gt=0)
    max_requests: int = Field(default=MAX_REQUESTS_DEFAULT, ge=0)
    standard_headers: bool = True
    legacy_headers: bool = False
    message: str = RATE_LIMIT_MESSAGE_DEFAULT
    status_code: int = HTTP_TOO_MANY_REQUESTS
    key_func: Callable[[Request], str] = client_address
    store: SkipValidation[RateLimitStore | None] = None


RateLimitConfig = RateLimitOptions | Mapping[str, Any] | Literal[False] | None


def merge_rate_limit_options(
    overrides: RateLimitOptions | Mapping[str, Any] | None,
) -> RateLimitOptions:
    """Apply *overrides* on top of the default options."""
    if overrides is None:
        return RateLimitOptions()
    if isinstance(overrides, RateLimitOptions):
        return overrides
    return RateLimitOptions.model_validate(dict(overrides))


class RateLimiter:
    """Pipeline stage rejecting callers over the per-window cap."""

    def __init__(self, options: RateLimitOptions) -> None:
        self.options = options
        self.store: RateLimitStore = options.store or MemoryRateLimitStore(
            options.window_seconds
        )

    def _headers(self, hit: RateLimitHit) -> dict[str, str]:
        opts = self.options
        remaining = max(0, opts.max_requests - hit.total_hits)
        reset = math.ceil(hit.reset_in)
        headers: dict[str, str] = {}
        if opts.standard_headers:
            headers["RateLimit-Policy"] = (
                f"{opts.max_requests};w={math.ceil(opts.window_seconds)}"
            )
            headers["RateLimit-Limit"] = str(opts.max_requests)
            headers["RateLimit-Remaining"] = str(remaining)
            headers["RateLimit-Reset"] = str(reset)
        if opts.legacy_headers:
            headers["X-RateLimit-Limit"] = str(opts.max_requests)
            headers["X-RateLimit-Remaining"] = str(remaining)
            headers["X-RateLimit-Reset"] = str(math.ceil(time.time() + hit.reset_in))
        return headers

    async def __call__(self, ctx: RequestContext) -> RequestContext | Response:
        key = self.options.key_func(ctx.request)
        hit = self.store.increment(key)
        headers = self._headers(hit)
        if hit.total_hits <= self.options.max_requests:
            return ctx.with_headers(headers)

        logger.info("Rate limit exceeded for %s (%d hits)", key, hit.total_hits)
        error = TooManyRequestsError(self.options.message)
        return JSONResponse(
            error.to_response_object(),
            status_code=self.options.status_code,
            headers={**headers, "Retry-After": str(math.ceil(hit.reset_in))},
        )
