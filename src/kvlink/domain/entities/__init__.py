from .connection import (
    PORT_MAX,
    PORT_MIN,
    CommandStatus,
    ConnectionConfig,
    FetchResult,
)

__all__ = [
    "PORT_MAX",
    "PORT_MIN",
    "CommandStatus",
    "ConnectionConfig",
    "FetchResult",
]
