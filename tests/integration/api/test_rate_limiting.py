"""End-to-end tests for throttling, the IP blocklist and the safelist."""

import asyncio
from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from src.catalog.api.http.app import create_app
from src.catalog.api.http.deps import get_db_session
from src.catalog.api.http.middleware.limiter import blocklist_key
from src.catalog.core.services.throttle import InMemoryThrottleStore, ThrottleResult
from src.catalog.runtime.config.config_data import ConfigData, ThrottleRuleConfig
from tests.fixtures.auth import USER_PASSWORD
from tests.fixtures.core import FakeClock

ClientFactory = Callable[[ConfigData], TestClient]


class RecordingThrottleStore(InMemoryThrottleStore):
    """Remembers the latest count seen for every key it was asked about."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.counts: dict[str, int] = {}

    async def hit(self, key: str, limit: int, period: int) -> ThrottleResult:
        result = await super().hit(key, limit, period)
        self.counts[key] = result.count
        return result


@pytest.fixture
def client_for(
    session: Session, fake_clock: FakeClock
) -> Generator[ClientFactory]:
    """Start an app for a given config with its throttle clock under test control."""
    clients: list[TestClient] = []

    def override_get_db_session():
        yield session

    def factory(config: ConfigData) -> TestClient:
        app = create_app(config)
        app.dependency_overrides[get_db_session] = override_get_db_session
        client = TestClient(app)
        client.__enter__()
        app.state.app_dependencies.throttle_store = InMemoryThrottleStore(clock=fake_clock)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)


def with_rules(config: ConfigData, **rules: tuple[int, int]) -> ConfigData:
    config.rate_limiter.throttles = {
        name.replace("_", "/"): ThrottleRuleConfig(limit=limit, period_seconds=period)
        for name, (limit, period) in rules.items()
    }
    return config


def login(client: TestClient, email: str, password: str = USER_PASSWORD, ip: str | None = None):
    headers = {"X-Forwarded-For": ip} if ip else {}
    return client.post(
        "/login",
        json={"user": {"email": email, "password": password}},
        headers=headers,
    )


class TestRequestThrottle:
    def test_429_after_limit(self, client_for, test_config):
        client = client_for(with_rules(test_config, req_ip=(3, 60)))

        statuses = [client.get("/health").status_code for _ in range(3)]
        throttled = client.get("/health")

        assert statuses == [200, 200, 200]
        assert throttled.status_code == 429
        # 1_700_000_000 sits 20s into a 60s window
        assert throttled.headers["Retry-After"] == "40"
        assert throttled.json() == {
            "error": "Rate limit exceeded",
            "message": "Too many requests. Retry after 40 seconds.",
            "retry_after": 40,
        }

    def test_window_slides(self, client_for, test_config, fake_clock):
        client = client_for(with_rules(test_config, req_ip=(2, 60)))
        client.get("/health")
        fake_clock.advance(30)
        client.get("/health")

        fake_clock.advance(29)
        assert client.get("/health").status_code == 429

        fake_clock.advance(2)
        assert client.get("/health").status_code == 200
        assert client.get("/health").status_code == 429

    def test_counts_per_ip(self, client_for, test_config):
        test_config.rate_limiter.trust_forwarded_for = True
        client = client_for(with_rules(test_config, req_ip=(1, 60)))

        assert client.get("/health", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
        assert client.get("/health", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
        assert client.get("/health", headers={"X-Forwarded-For": "10.0.0.2, 10.9.9.9"}).status_code == 200

    def test_forwarded_for_ignored_unless_trusted(self, client_for, test_config):
        client = client_for(with_rules(test_config, req_ip=(1, 60)))

        assert client.get("/health", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
        assert client.get("/health", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 429


class TestLoginThrottles:
    def test_login_attempts_per_ip(self, client_for, test_config, regular_user):
        client = client_for(test_config)

        failures = [
            login(client, f"user{index}@example.com").status_code for index in range(5)
        ]
        blocked = login(client, regular_user.email)

        assert failures == [401] * 5
        assert blocked.status_code == 429
        # logins/ip uses a 20s window and the clock sits on a boundary
        assert blocked.headers["Retry-After"] == "20"

    def test_login_attempts_per_email(self, client_for, test_config, regular_user):
        test_config.rate_limiter.trust_forwarded_for = True
        client = client_for(test_config)

        for index in range(5):
            response = login(client, regular_user.email, "wrong", ip=f"10.0.0.{index}")
            assert response.status_code == 401

        blocked = login(client, regular_user.email.upper(), ip="10.0.1.1")
        other_email = login(client, "someone@example.com", ip="10.0.1.2")

        assert blocked.status_code == 429
        assert other_email.status_code == 401

    def test_unparseable_login_body_only_counts_per_ip(
        self, client_for, test_config, fake_clock
    ):
        client = client_for(test_config)
        store = RecordingThrottleStore(clock=fake_clock)
        client.app.state.app_dependencies.throttle_store = store

        response = client.post(
            "/login", content=b"garbage", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert store.counts["throttle:logins/ip:testclient"] == 1
        assert not [key for key in store.counts if key.startswith("throttle:logins/email:")]

    def test_signups_per_ip(self, client_for, test_config):
        client = client_for(test_config)

        statuses = [
            client.post(
                "/signup",
                json={"user": {"email": f"new{index}@example.com", "password": "secret1"}},
            ).status_code
            for index in range(4)
        ]

        assert statuses == [200, 200, 200, 429]


class TestApiThrottle:
    def test_counts_per_user(self, client_for, test_config, auth_headers_for, regular_user, admin_user):
        client = client_for(with_rules(test_config, api_user=(2, 60)))
        user_headers = auth_headers_for(regular_user)
        admin_headers = auth_headers_for(admin_user)

        assert client.get("/api/v1/products", headers=user_headers).status_code == 200
        assert client.get("/api/v1/products", headers=user_headers).status_code == 200
        assert client.get("/api/v1/products", headers=user_headers).status_code == 429
        assert client.get("/api/v1/products", headers=admin_headers).status_code == 200

    def test_anonymous_calls_count_per_ip(self, client_for, test_config):
        client = client_for(with_rules(test_config, api_user=(1, 60)))

        assert client.get("/api/v1/products").status_code == 401
        assert client.get("/api/v1/products").status_code == 429
        assert client.get("/health").status_code == 200


class TestBlocklist:
    def test_blocked_ip_gets_403(self, client_for, test_config):
        client = client_for(test_config)
        store = client.app.state.app_dependencies.store
        asyncio.run(store.set(blocklist_key("testclient"), True, ttl=60))

        response = client.get("/health")

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden", "message": "Access denied"}

    def test_unblocked_after_delete(self, client_for, test_config):
        client = client_for(test_config)
        store = client.app.state.app_dependencies.store
        asyncio.run(store.set(blocklist_key("testclient"), True))
        asyncio.run(store.delete(blocklist_key("testclient")))

        assert client.get("/health").status_code == 200

    def test_blocklist_applies_with_caching_disabled(self, client_for, test_config):
        test_config.cache.enabled = False
        client = client_for(test_config)
        store = client.app.state.app_dependencies.store
        asyncio.run(store.set(blocklist_key("testclient"), True))

        assert client.get("/health").status_code == 403


class TestSafelistAndSwitches:
    def test_safelisted_ip_is_never_throttled(self, client_for, test_config):
        test_config.rate_limiter.safelist_ips = ["testclient"]
        client = client_for(with_rules(test_config, req_ip=(1, 60)))

        assert [client.get("/health").status_code for _ in range(3)] == [200, 200, 200]

    def test_safelist_ignored_in_production(self, client_for, test_config):
        test_config.app.environment = "production"
        test_config.rate_limiter.safelist_ips = ["testclient"]
        client = client_for(with_rules(test_config, req_ip=(1, 60)))

        first = client.get("/health")
        assert first.status_code == 200
        assert "Strict-Transport-Security" in first.headers
        assert client.get("/health").status_code == 429

    def test_disabled_limiter(self, client_for, test_config):
        test_config.rate_limiter.enabled = False
        client = client_for(with_rules(test_config, req_ip=(1, 60)))

        assert [client.get("/health").status_code for _ in range(3)] == [200, 200, 200]
