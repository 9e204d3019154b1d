"""Named throttle rules and the request attributes they key on."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass

from src.catalog.runtime.config.config_data import (
    RateLimiterConfig,
    ThrottleRuleConfig,
    default_throttle_rules,
)

LOGIN_PATH = "/login"
SIGNUP_PATH = "/signup"
API_PREFIX = "/api/"


@dataclass(frozen=True)
class ThrottleRequest:
    """The parts of an HTTP request throttle keys are derived from."""

    ip: str
    method: str
    path: str
    body: bytes = b""
    bearer_token: str | None = None

    def is_post_to(self, path: str) -> bool:
        return self.method == "POST" and self.path.rstrip("/") == path


KeyFunc = Callable[[ThrottleRequest], str | None]


@dataclass(frozen=True)
class ThrottleStrategy:
    """A rule counting requests per discriminator within a trailing window.

    ``key_func`` returns None for requests the rule does not apply to.
    """

    name: str
    limit: int
    period: int
    key_func: KeyFunc

    def discriminator(self, request: ThrottleRequest) -> str | None:
        return self.key_func(request)

    def store_key(self, discriminator: str) -> str:
        return f"throttle:{self.name}:{discriminator}"


def by_ip(request: ThrottleRequest) -> str | None:
    return request.ip


def login_by_ip(request: ThrottleRequest) -> str | None:
    return request.ip if request.is_post_to(LOGIN_PATH) else None


def login_by_email(request: ThrottleRequest) -> str | None:
    """Lower-cased ``user.email`` of a login body; None when it can't be read."""
    if not request.is_post_to(LOGIN_PATH):
        return None
    try:
        payload = json.loads(request.body or b"null")
        email = payload["user"]["email"]
    except (ValueError, KeyError, TypeError):
        return None
    if not isinstance(email, str) or not email.strip():
        return None
    return email.strip().lower()


def signup_by_ip(request: ThrottleRequest) -> str | None:
    return request.ip if request.is_post_to(SIGNUP_PATH) else None


def api_by_subject(resolve_subject: Callable[[str | None], str | None]) -> KeyFunc:
    """Key API calls by verified token subject, falling back to the client IP."""

    def key_func(request: ThrottleRequest) -> str | None:
        if not request.path.startswith(API_PREFIX):
            return None
        subject = resolve_subject(request.bearer_token)
        if subject:
            return f"user:{subject}"
        return f"ip:{request.ip}"

    return key_func


def build_strategies(
    config: RateLimiterConfig,
    resolve_subject: Callable[[str | None], str | None],
) -> list[ThrottleStrategy]:
    """Build the throttle rules in evaluation order.

    Rules missing from ``config.throttles`` keep their built-in limits.
    """
    defaults = default_throttle_rules()
    key_funcs: list[tuple[str, KeyFunc]] = [
        ("req/ip", by_ip),
        ("logins/ip", login_by_ip),
        ("logins/email", login_by_email),
        ("signups/ip", signup_by_ip),
        ("api/user", api_by_subject(resolve_subject)),
    ]

    strategies = []
    for name, key_func in key_funcs:
        rule: ThrottleRuleConfig = config.throttles.get(name) or defaults[name]
        strategies.append(
            ThrottleStrategy(
                name=name,
                limit=rule.limit,
                period=rule.period_seconds,
                key_func=key_func,
            )
        )
    return strategies
