"""Transport - one dedicated redis-py connection per handle."""

from __future__ import annotations

import structlog
from redis import Redis
from redis.backoff import NoBackoff
from redis.exceptions import RedisError
from redis.retry import Retry

from kvlink.domain.entities import ConnectionConfig

log = structlog.get_logger(__name__)

CONNECT_TIMEOUT_SECONDS = 1.5


def open_transport(
    config: ConnectionConfig,
    *,
    timeout: float = CONNECT_TIMEOUT_SECONDS,
) -> Redis:
    """Open a socket to ``config.host:config.port``.

    - ``single_connection_client`` pins exactly one connection (no pool fan-out).
    - Zero library retries: a dropped socket must surface as ``ConnectionError``
      instead of being re-opened behind our back without AUTH.
    - ``decode_responses=False`` keeps values as raw bytes.
    - RESP2 and no library info: the handshake sends nothing (no ``HELLO``,
      no ``CLIENT SETINFO``), since a server with ``requirepass`` rejects
      every command before AUTH.

    No password is handed to redis-py; AUTH is issued separately by
    ``authenticate`` so both failure stages stay distinguishable.

    Raises:
        RedisError: socket could not be opened within ``timeout``.
    """
    client = Redis(
        host=config.host,
        port=config.port,
        socket_connect_timeout=timeout,
        single_connection_client=True,
        decode_responses=False,
        retry=Retry(NoBackoff(), 0),
        protocol=2,
        lib_name=None,
        lib_version=None,
    )
    try:
        # No-op if the constructor already connected the pinned socket.
        client.connection.connect()
    except RedisError:
        release_transport(client)
        raise
    return client


def authenticate(client: Redis, password: str) -> None:
    """Issue ``AUTH password``.

    Raises:
        RedisError: no reply, or the server answered with an error.
    """
    client.auth(password)


def release_transport(client: Redis | None) -> None:
    """Close the handle; errors while closing are logged, never raised."""
    if client is None:
        return
    try:
        client.close()
    except RedisError as e:
        log.debug("redis_transport_close_error", error=str(e))
