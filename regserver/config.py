"""Server configuration from environment variables and CLI flags."""

import os
from typing import Optional

from pydantic import BaseModel, Field, HttpUrl, field_validator

from regserver.registry.models import RegistryConfig

ENV_PREFIX = "REG_SERVER_"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_flag(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


class ServerConfig(BaseModel):
    """reg-server configuration"""

    registry_url: HttpUrl = Field(default="http://localhost:5000")
    registry_username: Optional[str] = None
    registry_password: Optional[str] = None
    registry_timeout: int = Field(default=10, gt=0)
    verify_tls: bool = True

    # No clair URL means vulnerability scanning is disabled
    clair_url: Optional[HttpUrl] = None
    clair_timeout: int = Field(default=120, gt=0)

    host: str = "127.0.0.1"
    port: int = Field(default=8080, gt=0, lt=65536)
    # None defers to REG_SERVER_LOG_LEVEL / REG_SERVER_DEBUG in logging_config
    log_level: Optional[str] = None

    @field_validator("registry_url", "clair_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        if v is None:
            return v
        return str(v).rstrip("/")

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v):
        return v.upper() if v else None

    @classmethod
    def from_env(cls, **overrides) -> "ServerConfig":
        """Build from REG_SERVER_* variables; non-None overrides win."""
        values = {
            "registry_url": _env("REGISTRY_URL"),
            "registry_username": _env("REGISTRY_USERNAME"),
            "registry_password": _env("REGISTRY_PASSWORD"),
            "registry_timeout": _env("REGISTRY_TIMEOUT"),
            "verify_tls": _env_flag("VERIFY_TLS", True),
            "clair_url": _env("CLAIR_URL"),
            "clair_timeout": _env("CLAIR_TIMEOUT"),
            "host": _env("HOST"),
            "port": _env("PORT"),
            "log_level": _env("LOG_LEVEL"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**{k: v for k, v in values.items() if v is not None})

    @property
    def scanning_enabled(self) -> bool:
        return self.clair_url is not None

    def registry_config(self) -> RegistryConfig:
        return RegistryConfig(
            url=str(self.registry_url),
            timeout=self.registry_timeout,
            username=self.registry_username,
            password=self.registry_password,
            verify_tls=self.verify_tls,
        )
