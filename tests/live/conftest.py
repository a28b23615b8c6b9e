"""Shared fixtures for live Redis tests.

These tests talk to a real server and are skipped unless
KVLINK_LIVE_REDIS_HOST is set. Optional: KVLINK_LIVE_REDIS_PORT,
KVLINK_LIVE_REDIS_PASSWORD.
"""

from __future__ import annotations

import os
import socket
import uuid
from collections.abc import Iterator
from dataclasses import dataclass

import pytest

from kvlink.infrastructure.cache import CONNECT_TIMEOUT_SECONDS, RedisCacheClient


@dataclass(frozen=True)
class LiveServer:
    host: str
    port: int
    password: str | None


@pytest.fixture(scope="session")
def live_server() -> LiveServer:
    host = os.environ.get("KVLINK_LIVE_REDIS_HOST")
    if not host:
        pytest.skip("KVLINK_LIVE_REDIS_HOST not set")
    port = int(os.environ.get("KVLINK_LIVE_REDIS_PORT", "6379"))

    # Plain TCP check: only an unreachable server skips, client failures fail.
    try:
        socket.create_connection((host, port), timeout=CONNECT_TIMEOUT_SECONDS).close()
    except OSError as e:
        pytest.skip(f"Redis at {host}:{port} not reachable: {e}")

    return LiveServer(
        host=host,
        port=port,
        password=os.environ.get("KVLINK_LIVE_REDIS_PASSWORD") or None,
    )


@pytest.fixture()
def live_client(live_server: LiveServer) -> Iterator[RedisCacheClient]:
    client = RedisCacheClient()
    assert client.configure(live_server.host, live_server.port, live_server.password)
    yield client
    client.close()


@pytest.fixture()
def key() -> str:
    """Unique key per test so runs never collide."""
    return f"kvlink-test:{uuid.uuid4().hex}"
