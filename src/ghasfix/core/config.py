# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Application configuration via environment variables, .env and YAML files."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ghasfix.core.constants import (
    DEFAULT_POLL_ATTEMPTS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TOOL,
)
from ghasfix.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GHASFIX_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    # GitHub
    github_token: str = Field(
        default="",
        validation_alias=AliasChoices("GHASFIX_GITHUB_TOKEN", "GITHUB_TOKEN"),
    )
    github_org: str = Field(
        default="",
        validation_alias=AliasChoices("GHASFIX_GITHUB_ORG", "GITHUB_ORG"),
    )
    github_repo: str = Field(
        default="",
        validation_alias=AliasChoices("GHASFIX_GITHUB_REPO", "GITHUB_REPO"),
    )
    # Comma-separated in the environment; NoDecode skips JSON decoding.
    github_repos: Annotated[list[str], NoDecode] = []
    api_url: str = "https://api.github.com"
    web_url: str = "https://github.com"
    request_timeout: float = 30.0
    rate_limit_max_wait: float = 60.0

    @field_validator("github_repos", mode="before")
    @classmethod
    def _parse_github_repos(cls, v: object) -> list[str]:
        if isinstance(v, str):
            return [r.strip() for r in v.split(",") if r.strip()]
        return v if isinstance(v, list) else []

    # Autofix
    tool: str = DEFAULT_TOOL
    # Empty means the run proposes DEFAULT_BRANCH_NAME.
    branch_name: str = ""
    poll_attempts: int = DEFAULT_POLL_ATTEMPTS
    poll_interval: float = DEFAULT_POLL_INTERVAL

    # Logging
    log_level: str = "WARNING"
    log_format: str = "text"


def get_settings() -> Settings:
    return Settings()


# Keys accepted in a --config YAML file.
CONFIG_FILE_KEYS = frozenset({
    "org",
    "repo",
    "repos",
    "branch",
    "alerts",
    "severity",
    "state",
    "tool",
    "create_pr",
    "no_pr",
    "pr_title",
    "pr_body",
    "timeout",
    "yes",
    "dry_run",
    "verbose",
    "quiet",
})


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML options file and return its recognised keys.

    List-valued options (``repos``, ``alerts``, ``severity``) may be given
    either as YAML lists or as comma-separated strings.
    """
    config_path = Path(path)
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in config file {config_path}: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    options: dict[str, Any] = {}
    for key, value in raw.items():
        normalized = str(key).replace("-", "_")
        if normalized not in CONFIG_FILE_KEYS:
            raise ConfigurationError(f"Unknown option in config file: {key}")
        if normalized in ("repos", "alerts", "severity") and isinstance(value, str):
            value = [v.strip() for v in value.split(",") if v.strip()]
        elif normalized in ("repos", "alerts", "severity") and isinstance(value, list):
            value = [str(v).strip() for v in value]
        options[normalized] = value
    return options
