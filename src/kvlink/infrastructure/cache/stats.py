"""In-memory counters for the cache client.

Plain integers, mutated only while the owning client holds its lock;
read them through ``RedisCacheClient.stats_snapshot()`` for a consistent view.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass
class ClientStats:
    """Accumulated connection and command statistics."""

    connect_attempts: int = 0
    connect_failures: int = 0
    auth_failures: int = 0
    commands: int = 0
    command_errors: int = 0
    severed: int = 0

    @property
    def connect_successes(self) -> int:
        return self.connect_attempts - self.connect_failures - self.auth_failures

    def snapshot(self) -> dict[str, int]:
        """Return a JSON-serializable summary."""
        data = asdict(self)
        data["connect_successes"] = self.connect_successes
        return data

    def reset(self) -> None:
        for name in self.__dataclass_fields__:
            setattr(self, name, 0)
