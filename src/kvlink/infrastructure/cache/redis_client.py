"""Redis cache client - one shared connection, re-established lazily."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, TypeVar

import structlog
from redis import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from kvlink.domain.entities import CommandStatus, ConnectionConfig, FetchResult
from kvlink.domain.exceptions import ConfigurationError
from kvlink.infrastructure.cache.stats import ClientStats
from kvlink.infrastructure.cache.transport import (
    authenticate,
    open_transport,
    release_transport,
)

log = structlog.get_logger(__name__)

T = TypeVar("T")


class RedisCacheClient:
    """Blocking Redis client owning at most one live connection.

    - Built once by the composition root and shared by reference.
    - Every data operation first runs ``_ensure_connected``: if the
      client is disconnected it makes exactly one connect (+ AUTH)
      attempt, never a retry loop.
    - A single re-entrant lock covers connect-then-command, so
      ``configure``/``close`` cannot release a handle underneath an
      in-flight command.
    - Nothing raises: failures come back as ``False``, a miss, or a
      non-OK ``CommandStatus``.

    Usage::

        client = RedisCacheClient()
        client.configure("localhost", 6379, password=None)
        client.store("greeting", b"hello", ttl_seconds=60)
        found, value = client.fetch("greeting", capacity=1024)
        client.close()
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._config: ConnectionConfig | None = None
        self._client: Redis | None = None
        self._connected = False
        self.stats = ClientStats()

    # --- Context Manager ---
    def __enter__(self) -> RedisCacheClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # --- Lifecycle ---
    @property
    def config(self) -> ConnectionConfig | None:
        return self._config

    def configure(self, host: str, port: int, password: str | None = None) -> bool:
        """Replace configuration and connection, then try to connect once.

        Prior state is discarded unconditionally, even when the new
        settings are invalid or the new server is unreachable.

        Returns:
            True if connected (and authenticated) afterwards.
        """
        with self._lock:
            self._teardown()
            try:
                config = ConnectionConfig(host=host, port=port, password=password)
            except ConfigurationError as e:
                log.error("redis_configure_invalid", host=host, port=port, error=str(e))
                return False

            self._config = config
            log.info(
                "redis_configured",
                host=config.host,
                port=config.port,
                auth=config.requires_auth,
            )
            return self._ensure_connected()

    def close(self) -> None:
        """Release the connection and forget the configuration."""
        with self._lock:
            was_configured = self._config is not None
            self._teardown()
            if was_configured:
                log.info("redis_closed")

    def is_ready(self) -> bool:
        with self._lock:
            return (
                self._config is not None
                and self._connected
                and self._client is not None
            )

    def stats_snapshot(self) -> dict[str, int]:
        """Consistent copy of ``stats``, taken under the client lock."""
        with self._lock:
            return self.stats.snapshot()

    # --- Data operations ---
    def store(self, key: str, value: bytes, ttl_seconds: int = 0) -> CommandStatus:
        """SETEX (``ttl_seconds > 0``) or SET, best effort.

        The reply is not inspected; fire-and-forget callers may ignore
        the returned status.
        """
        if not _valid_key(key):
            log.warning("cache_invalid_key", command="set")
            return CommandStatus.INVALID_KEY

        payload = bytes(value) if isinstance(value, (bytearray, memoryview)) else value
        if ttl_seconds > 0:
            status, _ = self._execute(
                "setex", key, lambda c: c.setex(key, ttl_seconds, payload)
            )
        else:
            status, _ = self._execute("set", key, lambda c: c.set(key, payload))

        if status is CommandStatus.OK:
            log.debug("cache_set", key=key, ttl=ttl_seconds, size_bytes=len(payload))
        return status

    def fetch(self, key: str, capacity: int) -> FetchResult:
        """GET ``key``; found only if the value is shorter than ``capacity``.

        One byte of ``capacity`` is reserved for a terminator, so a
        value of exactly ``capacity`` bytes is reported as not found.
        Missing and expired keys (nil reply) are not found either.
        """
        if not _valid_key(key):
            log.warning("cache_invalid_key", command="get")
            return FetchResult.miss(CommandStatus.INVALID_KEY)

        status, raw = self._execute("get", key, lambda c: c.get(key))
        if status is not CommandStatus.OK:
            return FetchResult.miss(status)

        if raw is None:
            log.debug("cache_miss", key=key)
            return FetchResult.miss()

        if len(raw) >= capacity:
            log.debug(
                "cache_value_too_large",
                key=key,
                size_bytes=len(raw),
                capacity=capacity,
            )
            return FetchResult.miss()

        log.debug("cache_hit", key=key, size_bytes=len(raw))
        return FetchResult(found=True, value=bytes(raw))

    def fetch_into(self, key: str, buffer: bytearray | memoryview) -> bool:
        """GET ``key`` into ``buffer`` followed by a zero terminator.

        At most ``len(buffer) - 1`` value bytes are copied. On failure
        the buffer content is unspecified.
        """
        result = self.fetch(key, len(buffer))
        if not result.found:
            return False

        size = len(result.value)
        buffer[:size] = result.value
        buffer[size] = 0
        return True

    def exists(self, key: str) -> bool:
        """EXISTS ``key``; True only for a non-zero integer reply."""
        if not _valid_key(key):
            log.warning("cache_invalid_key", command="exists")
            return False

        status, reply = self._execute("exists", key, lambda c: c.exists(key))
        if status is not CommandStatus.OK:
            return False
        return isinstance(reply, int) and reply != 0

    # --- Internals ---
    def _ensure_connected(self) -> bool:
        # Caller holds self._lock.
        if self._connected:
            return True
        if self._config is None:
            return False

        self._drop_transport()
        config = self._config
        self.stats.connect_attempts += 1

        try:
            client = open_transport(config)
        except RedisError as e:
            self.stats.connect_failures += 1
            log.warning(
                "redis_connection_failed",
                host=config.host,
                port=config.port,
                error=str(e),
            )
            return False

        if config.password is not None:
            try:
                authenticate(client, config.password)
            except RedisError as e:
                # A connection that cannot authenticate is unusable.
                self.stats.auth_failures += 1
                release_transport(client)
                log.error(
                    "redis_auth_failed",
                    host=config.host,
                    port=config.port,
                    error=str(e),
                )
                return False

        self._client = client
        self._connected = True
        log.info("redis_connected", host=config.host, port=config.port)
        return True

    def _execute(
        self,
        command: str,
        key: str,
        call: Callable[[Redis], T],
    ) -> tuple[CommandStatus, T | None]:
        with self._lock:
            if not self._ensure_connected():
                log.debug("redis_not_connected", command=command, key=key)
                return CommandStatus.NOT_CONNECTED, None

            client = self._client
            self.stats.commands += 1
            try:
                return CommandStatus.OK, call(client)
            except (RedisConnectionError, RedisTimeoutError) as e:
                self.stats.severed += 1
                log.warning(
                    "redis_connection_lost", command=command, key=key, error=str(e)
                )
                self._drop_transport()
                return CommandStatus.NOT_CONNECTED, None
            except RedisError as e:
                self.stats.command_errors += 1
                log.warning("redis_command_error", command=command, key=key, error=str(e))
                return CommandStatus.REMOTE_ERROR, None

    def _drop_transport(self) -> None:
        client, self._client = self._client, None
        self._connected = False
        release_transport(client)

    def _teardown(self) -> None:
        self._drop_transport()
        self._config = None


def _valid_key(key: Any) -> bool:
    return isinstance(key, str) and key != ""
