"""Shared test fixtures for kvlink test suite."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
import structlog
from redis.exceptions import ConnectionError as RedisConnectionError

from fakes import FAKE_HOST, FAKE_PORT, FakeRedis, FakeRedisServer
from kvlink.infrastructure.cache import RedisCacheClient
from kvlink.infrastructure.cache import transport as transport_module

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _structlog_to_stdlib() -> Iterator[None]:
    """Keep structlog output off stdout (CLI tests assert on stdout)."""
    structlog.configure(
        processors=[structlog.processors.KeyValueRenderer()],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture()
def redis_servers(monkeypatch: pytest.MonkeyPatch) -> dict[tuple[str, int], FakeRedisServer]:
    """Registry of fake servers by (host, port); replaces redis.Redis in transport."""
    servers: dict[tuple[str, int], FakeRedisServer] = {}

    def _factory(**kwargs: Any) -> FakeRedis:
        server = servers.get((kwargs["host"], kwargs["port"]))
        if server is None or not server.reachable:
            raise RedisConnectionError(
                f"Error connecting to {kwargs['host']}:{kwargs['port']}. "
                "Connection refused."
            )
        handle = FakeRedis(server, **kwargs)
        server.opened.append(handle)
        return handle

    monkeypatch.setattr(transport_module, "Redis", _factory)
    return servers


@pytest.fixture()
def fake_server(redis_servers: dict[tuple[str, int], FakeRedisServer]) -> FakeRedisServer:
    """Reachable fake server without a password at FAKE_HOST:FAKE_PORT."""
    server = FakeRedisServer()
    redis_servers[(FAKE_HOST, FAKE_PORT)] = server
    return server


@pytest.fixture()
def client() -> Iterator[RedisCacheClient]:
    """Fresh, unconfigured client (closed after the test)."""
    c = RedisCacheClient()
    yield c
    c.close()


@pytest.fixture()
def connected_client(
    client: RedisCacheClient, fake_server: FakeRedisServer
) -> RedisCacheClient:
    assert client.configure(FAKE_HOST, FAKE_PORT) is True
    return client
