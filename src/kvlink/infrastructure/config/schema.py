"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from kvlink.domain.entities import PORT_MAX, PORT_MIN

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


class RedisConfig(BaseModel):
    """Where the cache server lives (YAML section: redis.*)."""

    host: str = Field(
        default="localhost",
        description="Redis server host name or address.",
    )
    port: int = Field(
        default=6379,
        description="Redis server TCP port.",
    )
    password: Optional[str] = Field(
        default=None,
        repr=False,
        description="Password for AUTH. Unset or empty = no AUTH.",
    )

    @field_validator("host")
    @classmethod
    def _validate_host(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("redis.host must not be empty")
        return v

    @field_validator("port")
    @classmethod
    def _validate_port(cls, v: int) -> int:
        if not PORT_MIN <= v <= PORT_MAX:
            raise ValueError(f"redis.port must be within {PORT_MIN}..{PORT_MAX}")
        return v

    @field_validator("password", mode="before")
    @classmethod
    def _empty_password_is_none(cls, v: Any) -> Any:
        if v == "":
            return None
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (logging/redis/cache).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="kvlink", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Redis connection (YAML section: redis.*)
    redis: RedisConfig = Field(default_factory=RedisConfig)

    # Cache (YAML section: cache.*)
    default_ttl_seconds: int = Field(
        default=0,
        validation_alias=AliasChoices(
            "default_ttl_seconds",
            AliasPath("cache", "ttl_seconds"),
        ),
        description="TTL used by `kvlink set` without --ttl. 0 = no expiry.",
    )

    @field_validator("default_ttl_seconds")
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache.ttl_seconds must be >= 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.

        The password is masked.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "logging": {"level": self.log_level, "format": self.log_format},
            "redis": {
                "host": self.redis.host,
                "port": self.redis.port,
                "password": "***" if self.redis.password else None,
            },
            "cache": {"ttl_seconds": self.default_ttl_seconds},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    load.py creates EnvOverrides() to read KVLINK_* variables, converts
    them to a dict of set values and merges that over YAML/defaults
    before AppConfig validation.

    Supported env vars (flat, explicit):
    - KVLINK_ENVIRONMENT
    - KVLINK_LOG_LEVEL, KVLINK_LOG_FORMAT
    - KVLINK_REDIS_HOST, KVLINK_REDIS_PORT, KVLINK_REDIS_PASSWORD
    - KVLINK_CACHE_TTL_SECONDS
    """

    model_config = SettingsConfigDict(
        env_prefix="KVLINK_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    redis_host: Optional[str] = None
    redis_port: Optional[int] = None
    redis_password: Optional[str] = None

    cache_ttl_seconds: Optional[int] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
