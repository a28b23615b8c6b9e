from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, RedisConfig

__all__ = ["AppConfig", "EnvOverrides", "RedisConfig", "load_config"]
