from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from kvlink.domain.exceptions import ConfigurationError

PORT_MIN = 1
PORT_MAX = 65535


@dataclass(frozen=True)
class ConnectionConfig:
    """Where and how to reach the cache server.

    Replaced wholesale on re-configuration, never mutated.
    """

    host: str
    port: int
    password: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.host, str) or not self.host.strip():
            raise ConfigurationError("host must be a non-empty string")
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ConfigurationError(f"port must be an integer, got {self.port!r}")
        if not PORT_MIN <= self.port <= PORT_MAX:
            raise ConfigurationError(
                f"port must be within {PORT_MIN}..{PORT_MAX}, got {self.port}"
            )
        # Empty password means "no AUTH".
        if self.password == "":
            object.__setattr__(self, "password", None)

    @property
    def requires_auth(self) -> bool:
        return self.password is not None


class CommandStatus(str, Enum):
    """Outcome of a command for callers that want more than a bool."""

    OK = "ok"
    NOT_CONNECTED = "not_connected"
    REMOTE_ERROR = "remote_error"
    INVALID_KEY = "invalid_key"


@dataclass(frozen=True)
class FetchResult:
    found: bool
    value: bytes = b""
    status: CommandStatus = CommandStatus.OK

    def __iter__(self) -> Iterator[bool | bytes]:
        # Allows `found, value = client.fetch(...)`.
        yield self.found
        yield self.value

    @classmethod
    def miss(cls, status: CommandStatus = CommandStatus.OK) -> FetchResult:
        return cls(found=False, value=b"", status=status)
