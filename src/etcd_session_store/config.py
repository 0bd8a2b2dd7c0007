"""Store configuration.

``StoreConfig`` is a Pydantic model so that configuration coming from YAML
files or the environment is validated before any connection is made.

Classes
-------
- StoreConfig  — validated store and backend settings

Functions
---------
- build_backend  — instantiate the backend named by a ``StoreConfig``
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from etcd_session_store.backends.base import AsyncKeyValueBackend
from etcd_session_store.namespace import DEFAULT_KEY_PREFIX

ENV_PREFIX: str = "ETCD_SESSION_"


class StoreConfig(BaseModel):
    """Settings for an ``EtcdSessionStore`` and its backend.

    Parameters
    ----------
    backend:
        Which backend to build: ``"etcd"`` (default), ``"redis"`` or
        ``"memory"``.
    hosts:
        etcd endpoints as ``"host:port"`` strings or URLs.
    key_prefix:
        Root key for all sessions.
    redis_url:
        Connection URL for the redis backend.
    format:
        Record serialization format.
    corrupt_policy:
        Listing behaviour for corrupt entries (``"raise"`` or ``"skip"``).
    listing_concurrency:
        Maximum parallel decodes during a listing.
    read_timeout:
        etcd client request timeout in seconds.
    log_level:
        Logging level name used by the command-line interface.
    """

    model_config = ConfigDict(extra="forbid")

    backend: Literal["etcd", "redis", "memory"] = "etcd"
    hosts: list[str] = Field(default_factory=lambda: ["127.0.0.1:2379"])
    key_prefix: str = DEFAULT_KEY_PREFIX
    redis_url: str = "redis://localhost:6379/0"
    format: Literal["json", "yaml"] = "json"
    corrupt_policy: Literal["raise", "skip"] = "raise"
    listing_concurrency: int = Field(default=8, ge=1)
    read_timeout: float = Field(default=60, gt=0)
    log_level: str = "WARNING"

    @field_validator("hosts", mode="before")
    @classmethod
    def _split_hosts(cls, value: object) -> object:
        if isinstance(value, str):
            return [h.strip() for h in value.split(",") if h.strip()]
        return value

    @field_validator("hosts")
    @classmethod
    def _require_hosts(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one host is required")
        return value

    @field_validator("key_prefix")
    @classmethod
    def _require_prefix(cls, value: str) -> str:
        if not value:
            raise ValueError("key_prefix must not be empty")
        if not value.endswith("/"):
            raise ValueError("key_prefix must end with '/'")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        return value.upper()

    # ------------------------------------------------------------------
    # Loaders
    # ------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, path: str | Path) -> StoreConfig:
        """Load a config from a YAML mapping on disk.

        An empty file yields the defaults.
        """
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {str(path)!r} must contain a mapping.")
        return cls.model_validate(data)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StoreConfig:
        """Load a config from ``ETCD_SESSION_*`` environment variables.

        ``ETCD_SESSION_HOSTS`` is a comma-separated list.  Unset variables
        keep their defaults.
        """
        env = os.environ if environ is None else environ
        data: dict[str, str] = {}
        for name in cls.model_fields:
            value = env.get(f"{ENV_PREFIX}{name.upper()}")
            if value is not None:
                data[name] = value
        return cls.model_validate(data)


def build_backend(config: StoreConfig) -> AsyncKeyValueBackend:
    """Instantiate the backend selected by ``config``."""
    if config.backend == "memory":
        from etcd_session_store.backends.memory import AsyncInMemoryBackend  # noqa: PLC0415

        return AsyncInMemoryBackend()
    if config.backend == "redis":
        from etcd_session_store.backends.redis import AsyncRedisBackend  # noqa: PLC0415

        return AsyncRedisBackend(url=config.redis_url)
    from etcd_session_store.backends.etcd import EtcdBackend  # noqa: PLC0415

    return EtcdBackend(hosts=config.hosts, read_timeout=config.read_timeout)


__all__ = ["ENV_PREFIX", "StoreConfig", "build_backend"]
