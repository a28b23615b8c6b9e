"""Cache Port - Interface for the single-connection cache client."""

from __future__ import annotations

from typing import Protocol

from kvlink.domain.entities import CommandStatus, FetchResult


class CacheClientPort(Protocol):
    """Port for a blocking key-value cache client owning one connection.

    Implementations:
      - RedisCacheClient (redis-py, one dedicated socket)

    Every operation is total: failures come back as ``False``,
    a miss, or a non-OK ``CommandStatus``, never as an exception.
    """

    def configure(self, host: str, port: int, password: str | None = None) -> bool:
        """Replace settings and connection. True = connected afterwards."""
        ...

    def store(self, key: str, value: bytes, ttl_seconds: int = 0) -> CommandStatus:
        """Best-effort SET / SETEX (ttl_seconds > 0)."""
        ...

    def fetch(self, key: str, capacity: int) -> FetchResult:
        """GET; found only if the value fits in capacity - 1 bytes."""
        ...

    def fetch_into(self, key: str, buffer: bytearray) -> bool:
        """GET into a caller buffer, zero-terminated."""
        ...

    def exists(self, key: str) -> bool:
        """True iff EXISTS replied with a non-zero integer."""
        ...

    def is_ready(self) -> bool:
        """Configured, connected and holding a handle. No I/O."""
        ...

    def close(self) -> None:
        """Release the connection and forget the configuration."""
        ...
