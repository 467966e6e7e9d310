"""Configuration for the readiness checks.

Each dependency gets its own settings section with an environment prefix
(``READINESS_HTTP_``, ``READINESS_POSTGRES_``, ``READINESS_MONGO_``); retry
knobs use plain ``READINESS_``. Bare ``POSTGRES_*``/``MONGO_*`` names are left
alone: Kubernetes service links fill them with values like
``POSTGRES_PORT=tcp://10.0.0.5:5432``. The models are frozen: configuration
is assembled once at startup, then handed to the stage functions as-is.

Database hosts default to the in-cluster service names
``postgresql.<ns>.svc.cluster.local`` and ``mongodb.<ns>.svc.cluster.local``
where ``<ns>`` comes from ``POD_NAMESPACE``.
"""

from __future__ import annotations

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NAMESPACE = "default"


def pod_namespace() -> str:
    """Return the namespace from ``POD_NAMESPACE`` or ``default``."""
    return os.getenv("POD_NAMESPACE", "").strip() or DEFAULT_NAMESPACE


def cluster_host(service: str, namespace: str | None = None) -> str:
    return f"{service}.{namespace or pod_namespace()}.svc.cluster.local"


def parse_urls(raw: str | None) -> list[str]:
    """Split a comma separated URL list, dropping blanks."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


class HTTPCheckSettings(BaseSettings):
    """HTTP endpoints polled by the first stage.

    ``verify_tls`` is off by default: endpoints inside the cluster commonly
    present self-signed certificates. Turning it on makes the check validate
    the chain as usual.
    """

    urls: str = ""
    timeout: float = 10.0
    verify_tls: bool = False

    model_config = SettingsConfigDict(extra="ignore", env_prefix="READINESS_HTTP_", frozen=True)

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be > 0")
        return v

    @property
    def url_list(self) -> list[str]:
        return parse_urls(self.urls)

    @property
    def is_configured(self) -> bool:
        return bool(self.url_list)


class PostgresSettings(BaseSettings):
    """PostgreSQL connection parameters (``READINESS_POSTGRES_*``)."""

    host: str = Field(default_factory=lambda: cluster_host("postgresql"))
    port: int = 5432
    database: str = "postgres"
    user: str = ""
    password: str = ""
    ssl_mode: str = "disable"
    connect_timeout: int = 10

    model_config = SettingsConfigDict(extra="ignore", env_prefix="READINESS_POSTGRES_", frozen=True)

    @property
    def is_configured(self) -> bool:
        return bool(self.user) and bool(self.password)


class MongoSettings(BaseSettings):
    """MongoDB connection parameters (``READINESS_MONGO_*``)."""

    host: str = Field(default_factory=lambda: cluster_host("mongodb"))
    port: int = 27017
    database: str = ""
    user: str = ""
    password: str = ""
    connect_timeout: int = 10

    model_config = SettingsConfigDict(extra="ignore", env_prefix="READINESS_MONGO_", frozen=True)

    @property
    def is_configured(self) -> bool:
        return bool(self.database) and bool(self.user) and bool(self.password)


class RetrySettings(BaseSettings):
    """Stage retry and in-stage ping loop parameters.

    ``max_attempts=0`` keeps retrying a failing stage until the process is
    terminated.
    """

    retry_delay: float = 5.0
    max_attempts: int = 0
    ping_attempts: int = 10
    ping_delay: float = 5.0

    model_config = SettingsConfigDict(extra="ignore", env_prefix="READINESS_", frozen=True)

    @field_validator("retry_delay", "ping_delay", "max_attempts")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("ping_attempts")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("ping_attempts must be >= 1")
        return v


class ReadinessSettings(BaseSettings):
    """Top level settings; sections read their own prefixes."""

    log_level: str = Field(default="INFO", alias="READINESS_LOG_LEVEL")

    http: HTTPCheckSettings = Field(default_factory=HTTPCheckSettings)
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    mongo: MongoSettings = Field(default_factory=MongoSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )


def load_settings() -> ReadinessSettings:
    """Read every section from the process environment."""
    return ReadinessSettings()
