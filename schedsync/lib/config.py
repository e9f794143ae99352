"""
Configuration loader for schedsync.

Settings come from the process environment, with a .env file in the working
directory filling in anything the environment doesn't set.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from . import envparse
from .fields import FieldNames, load_field_names

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULER_COMMAND = "p2 schedule --json"
DEFAULT_GH_TIMEOUT = 30
DEFAULT_SCHEDULER_TIMEOUT = 300
DEFAULT_FIELDS_FILE = "scheduler_fields.yaml"


class ConfigError(Exception):
    """Configuration is present but unusable."""


@dataclass
class SyncConfig:
    """Settings for one sync run."""
    github_token: str  # Empty means gh uses its own stored login
    current_repo: str  # "owner/repo" the run belongs to, for redaction
    scheduler_command: str
    gh_timeout: int
    scheduler_timeout: int
    field_names: FieldNames


def _int_setting(env: dict[str, str], key: str, default: int) -> int:
    raw = env.get(key, "")
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got '{raw}'") from None
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


def load_sync_config(cwd: Path | None = None, environ: dict[str, str] | None = None) -> SyncConfig:
    """Build SyncConfig from .env (if present) overlaid with the environment.

    Raises:
        ConfigError: if a setting is invalid or .env can't be parsed
    """
    cwd = cwd or Path.cwd()
    environ = dict(os.environ) if environ is None else environ

    try:
        env = envparse.load_env(cwd / ".env", required=False)
    except ValueError as e:
        raise ConfigError(f"Invalid .env: {e}") from None
    env.update({k: v for k, v in environ.items() if v})

    fields_file = Path(env.get("SCHEDSYNC_FIELDS_FILE", DEFAULT_FIELDS_FILE))
    if not fields_file.is_absolute():
        fields_file = cwd / fields_file

    config = SyncConfig(
        github_token=env.get("GITHUB_TOKEN") or env.get("GH_TOKEN", ""),
        current_repo=env.get("GITHUB_REPOSITORY", ""),
        scheduler_command=env.get("SCHEDULER_COMMAND", DEFAULT_SCHEDULER_COMMAND),
        gh_timeout=_int_setting(env, "GH_TIMEOUT_SECONDS", DEFAULT_GH_TIMEOUT),
        scheduler_timeout=_int_setting(env, "SCHEDULER_TIMEOUT_SECONDS", DEFAULT_SCHEDULER_TIMEOUT),
        field_names=load_field_names(fields_file),
    )
    if config.github_token:
        logger.debug("Using GitHub token from environment")
    return config
