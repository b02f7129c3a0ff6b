"""Service configuration read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping


class ConfigError(Exception):
    """Raised when the environment does not hold a valid configuration."""


def _require(environ: Mapping[str, str], name: str) -> str:
    try:
        return environ[name]
    except KeyError:
        raise ConfigError(f'required environment variable "{name}" is not set') from None


@dataclass(frozen=True)
class IngestorConfig:
    """Configuration of the ingestor service."""

    redis_url: str
    sentiment_ingested_topic: str
    rest_server_port: str

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "IngestorConfig":
        """Build the configuration from ``environ`` (the process environment by default)."""
        env = os.environ if environ is None else environ
        return cls(
            redis_url=_require(env, "REDIS_URL"),
            sentiment_ingested_topic=_require(env, "SENTIMENT_INGESTED_TOPIC"),
            rest_server_port=_require(env, "REST_SERVER_PORT"),
        )


@dataclass(frozen=True)
class ProcessorConfig:
    """Configuration of the processor service."""

    rest_server_port: str
    database_url: str
    redis_url: str
    sentiment_ingested_topic: str

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ProcessorConfig":
        """Build the configuration from ``environ`` (the process environment by default)."""
        env = os.environ if environ is None else environ
        return cls(
            rest_server_port=_require(env, "REST_SERVER_PORT"),
            database_url=_require(env, "DATABASE_URL"),
            redis_url=_require(env, "REDIS_URL"),
            sentiment_ingested_topic=_require(env, "SENTIMENT_INGESTED_TOPIC"),
        )