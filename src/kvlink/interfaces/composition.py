"""Composition root: builds the one shared cache client from AppConfig."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import structlog

from kvlink.infrastructure.cache import RedisCacheClient
from kvlink.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)


def build_client(config: AppConfig) -> RedisCacheClient:
    """Create the client and make its first connection attempt.

    An unreachable server is not an error here: the client stays
    configured and reconnects lazily on the next operation.
    """
    client = RedisCacheClient()
    connected = client.configure(
        config.redis.host,
        config.redis.port,
        config.redis.password,
    )
    if not connected:
        log.warning(
            "cache_client_started_disconnected",
            host=config.redis.host,
            port=config.redis.port,
        )
    return client


@contextmanager
def client_scope(config: AppConfig) -> Iterator[RedisCacheClient]:
    """Own the client for the duration of a ``with`` block.

    Startup: build + first connect.
    Shutdown: release the connection, log final counters.
    """
    client = build_client(config)
    try:
        yield client
    finally:
        log.debug("cache_client_stats", **client.stats_snapshot())
        client.close()
