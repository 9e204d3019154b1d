"""Request throttling, IP blocklist and loopback safelist."""

from __future__ import annotations

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.api.http.errors import ForbiddenError, RateLimitedError, error_response
from src.catalog.core.services.cache import CacheStore
from src.catalog.core.services.throttle import ThrottleRequest
from src.catalog.core.services.throttle.strategies import LOGIN_PATH
from src.catalog.runtime.config.config_data import ConfigData


def blocklist_key(ip: str) -> str:
    return f"blocked:{ip}"


def client_ip(request: Request, trust_forwarded_for: bool = False) -> str:
    """Socket peer address, or the first X-Forwarded-For hop when trusted."""
    if trust_forwarded_for:
        xff = request.headers.get("x-forwarded-for")
        if xff and xff.split(",")[0].strip():
            return xff.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def is_safelisted(ip: str, config: ConfigData) -> bool:
    """Safelisted (loopback by default) traffic skips every check outside production."""
    if config.app.environment == "production":
        return False
    return ip in config.rate_limiter.safelist_ips


async def is_blocklisted(ip: str, store: CacheStore) -> bool:
    return bool(await store.get(blocklist_key(ip)))


async def build_throttle_request(request: Request, ip: str) -> ThrottleRequest:
    # Only credential strategies look at the body
    body = b""
    if request.method == "POST" and request.url.path.rstrip("/") == LOGIN_PATH:
        body = await request.body()

    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    return ThrottleRequest(
        ip=ip,
        method=request.method,
        path=request.url.path,
        body=body,
        bearer_token=token.strip() if scheme.lower() == "bearer" and token.strip() else None,
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Safelist, then blocklist, then each throttle strategy in order.

    Stores and strategies come from ``app.state.app_dependencies`` so every
    application instance counts independently.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        app_deps: ApplicationDependencies | None = getattr(
            request.app.state, "app_dependencies", None
        )
        config: ConfigData | None = getattr(request.app.state, "config", None)
        if app_deps is None or config is None or not config.rate_limiter.enabled:
            return await call_next(request)

        ip = client_ip(request, config.rate_limiter.trust_forwarded_for)

        if is_safelisted(ip, config):
            return await call_next(request)

        if await is_blocklisted(ip, app_deps.store):
            logger.warning("Blocked request from blocklisted address", client_ip=ip)
            return error_response(ForbiddenError("Access denied"))

        throttle_request = await build_throttle_request(request, ip)
        for strategy in app_deps.throttle_strategies:
            discriminator = strategy.discriminator(throttle_request)
            if discriminator is None:
                continue

            result = await app_deps.throttle_store.hit(
                strategy.store_key(discriminator), strategy.limit, strategy.period
            )
            if not result.allowed:
                logger.warning(
                    "Request throttled",
                    strategy=strategy.name,
                    discriminator=discriminator,
                    count=result.count,
                    retry_after=result.retry_after,
                )
                return error_response(RateLimitedError(result.retry_after))

        return await call_next(request)
