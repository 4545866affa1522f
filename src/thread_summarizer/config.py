"""Service configuration loaded from YAML with environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping, Optional

import yaml

from thread_summarizer.errors.exceptions import ConfigError

ENV_OVERRIDES = {
    "FORUMS_API_URL": "forums_base_url",
    "FORUMS_API_KEY": "forums_api_key",
    "OPENAI_BASE_URL": "openai_base_url",
    "OPENAI_API_KEY": "openai_api_key",
    "OPENAI_MODEL": "model",
}


@dataclass
class ServiceConfig:
    forums_base_url: str = "https://foru.ms/api/v1"
    forums_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com"
    openai_api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 1500
    generation_timeout: float = 30.0
    max_attempts: int = 3
    backoff_base: float = 1.0
    cache_ttl_seconds: float = 24 * 60 * 60
    cache_max_entries: int = 1000
    min_content_length: int = 50

    def __post_init__(self) -> None:
        if self.generation_timeout <= 0:
            raise ConfigError("generation_timeout must be positive")
        if self.max_attempts < 1:
            raise ConfigError("max_attempts must be at least 1")
        if self.cache_ttl_seconds <= 0:
            raise ConfigError("cache_ttl_seconds must be positive")
        if self.cache_max_entries < 1:
            raise ConfigError("cache_max_entries must be at least 1")


def load_config(
    path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ServiceConfig:
    """Build a ``ServiceConfig`` from an optional YAML file plus environment.

    Environment variables listed in ``ENV_OVERRIDES`` win over file values.

    Raises:
        ConfigError: If the file is unreadable, malformed or has unknown keys.
    """
    env = os.environ if env is None else env
    values: dict = {}

    if path is not None:
        try:
            loaded = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Cannot read config {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config {path} must be a mapping")
        values.update(loaded)

    known = {f.name for f in fields(ServiceConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    for env_name, field_name in ENV_OVERRIDES.items():
        if env.get(env_name):
            values[field_name] = env[env_name]

    try:
        return ServiceConfig(**values)
    except TypeError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
