"""Cache Infrastructure - Redis client and its transport."""

from .redis_client import RedisCacheClient
from .stats import ClientStats
from .transport import CONNECT_TIMEOUT_SECONDS

__all__ = [
    "CONNECT_TIMEOUT_SECONDS",
    "ClientStats",
    "RedisCacheClient",
]
