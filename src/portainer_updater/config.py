"""
Configuration loading for the updater.

The settings file is a list of shell-style ``KEY="value"`` assignments. It is
created with safe defaults (email disabled) on first run and loaded into an
immutable ``UpdaterConfig`` that every stage receives explicitly.
"""

from __future__ import annotations

import logging
import os
import platform
import re
import shlex
import socket
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from portainer_updater.constants import (
    ARCH_ALIASES,
    DEFAULT_BACKUP_KEEP,
    DEFAULT_CONFIG_PATH,
    DEFAULT_CONTAINER_NAME,
    DEFAULT_EMAIL_BODY,
    DEFAULT_IMAGE_NAME,
    DEFAULT_IMAGE_OS,
    DEFAULT_VERSION_COMMAND,
    DEFAULT_VOLUME_NAME,
)
from portainer_updater.exceptions import ConfigError
from portainer_updater.models import ImageReference

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_TEMPLATE = f"""\
# === Portainer Updater Configuration ===

# Email notifications
EMAIL_ENABLED=false
EMAIL_TO="your@email.com"
EMAIL_FROM="$(hostname)@yourdomain.com"
EMAIL_SUBJECT="Portainer Updated on $(hostname)"
EMAIL_BODY="{DEFAULT_EMAIL_BODY}"

# Docker settings
CONTAINER_NAME="{DEFAULT_CONTAINER_NAME}"
IMAGE_NAME="{DEFAULT_IMAGE_NAME}"
VOLUME_NAME="{DEFAULT_VOLUME_NAME}"

# Number of backup containers to keep
BACKUP_KEEP={DEFAULT_BACKUP_KEEP}
"""

_SUBSTITUTION = re.compile(r"\$\(hostname\)|\$\{(\w+)\}|\$(\w+)")


def host_arch() -> str:
    """Return the registry architecture name for this host."""
    machine = platform.machine()
    return ARCH_ALIASES.get(machine.lower(), machine.lower())


class Settings(BaseSettings):
    """Process settings read from the environment.

    ``CONFIG_PATH`` overrides where the settings file lives.
    """

    config_path: str = DEFAULT_CONFIG_PATH

    model_config = {"env_prefix": ""}

    @field_validator("config_path")
    @classmethod
    def _blank_means_default(cls, value: str) -> str:
        return value.strip() or DEFAULT_CONFIG_PATH


class UpdaterConfig(BaseModel):
    """Immutable settings for one update run."""

    email_enabled: bool = False
    email_to: str = "your@email.com"
    email_from: str = ""
    email_subject: str = ""
    email_body: Path = Path(DEFAULT_EMAIL_BODY)

    container_name: str = DEFAULT_CONTAINER_NAME
    image_name: str = DEFAULT_IMAGE_NAME
    volume_name: str = DEFAULT_VOLUME_NAME

    backup_keep: int = Field(default=DEFAULT_BACKUP_KEEP, ge=0)
    image_arch: str = Field(default_factory=host_arch)
    image_os: str = DEFAULT_IMAGE_OS
    version_command: str = DEFAULT_VERSION_COMMAND
    rollback_on_failure: bool = False

    model_config = {"frozen": True, "extra": "ignore"}

    @field_validator("image_name")
    @classmethod
    def _check_image_name(cls, value: str) -> str:
        ImageReference.parse(value)
        return value


def _expand(value: str, scope: dict[str, str]) -> str:
    """Expand ``$(hostname)``, ``${VAR}`` and ``$VAR`` like the shell would."""

    def replace(match: re.Match) -> str:
        if match.group(0) == "$(hostname)":
            return socket.gethostname()
        name = match.group(1) or match.group(2)
        return scope.get(name, os.environ.get(name, ""))

    return _SUBSTITUTION.sub(replace, value)


def parse_config_text(text: str) -> dict[str, str]:
    """
    Parse newline-delimited ``KEY="value"`` assignments.

    Blank lines and ``#`` comments are skipped, a leading ``export`` is
    allowed, and values may reference earlier keys or environment variables.

    Args:
        text: Contents of the settings file

    Returns:
        Mapping of key to expanded value

    Raises:
        ValueError: A line has unbalanced quotes or is not an assignment
    """
    values: dict[str, str] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        tokens = shlex.split(line, comments=True)
        if tokens and tokens[0] == "export":
            tokens = tokens[1:]

        for token in tokens:
            key, sep, value = token.partition("=")
            if not sep or not re.fullmatch(r"[A-Za-z_]\w*", key):
                raise ValueError(f"line {lineno}: not an assignment: {raw!r}")
            values[key] = _expand(value, values)

    return values


def write_default_config(path: Path) -> None:
    """Create the settings file with documented defaults."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    logger.info(f"Default config created at {path}. Email disabled until you update it.")


def load_config(path: Optional[Path] = None) -> UpdaterConfig:
    """
    Load the settings file, creating it first if it does not exist.

    Args:
        path: Settings file path (defaults to ``CONFIG_PATH`` or
            ``./portainer-upd.conf``)

    Returns:
        Immutable configuration for this run

    Raises:
        ConfigError: The file cannot be written, read or parsed
    """
    if path is None:
        path = Path(Settings().config_path)

    try:
        if not path.exists():
            logger.info(f"No config file found. Creating default config at {path}")
            write_default_config(path)
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot access config file {path}: {e}") from e

    try:
        values = parse_config_text(text)
        config = UpdaterConfig(**{key.lower(): value for key, value in values.items()})
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    logger.debug(f"Loaded config from {path}: {config}")
    return config
