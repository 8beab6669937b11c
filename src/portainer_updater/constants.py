"""
Centralized configuration constants for the updater.

This module provides a single source of truth for values shared by the
registry client, the container runtime wrapper and the update stages.
"""

# ============================================================================
# Configuration File
# ============================================================================

DEFAULT_CONFIG_PATH = "./portainer-upd.conf"
"""Config file used when CONFIG_PATH is not set."""

DEFAULT_CONTAINER_NAME = "portainer"
DEFAULT_IMAGE_NAME = "portainer/portainer-ce:lts"
DEFAULT_VOLUME_NAME = "portainer_data"
DEFAULT_EMAIL_BODY = "/tmp/portainer_update_email.txt"
DEFAULT_VERSION_COMMAND = "/portainer --version"

DEFAULT_BACKUP_KEEP = 2
"""Number of most recent backup containers kept after an update."""

# ============================================================================
# Host Dependencies
# ============================================================================

REQUIRED_BINS: tuple[str, ...] = ("docker",)
"""External commands the update workflow shells out to."""

PACKAGE_MANAGERS: tuple[str, ...] = ("apt-get", "dnf", "yum", "pacman")
"""Supported package managers, in preference order."""

PACKAGE_NAME_OVERRIDES: dict[str, dict[str, str]] = {
    "apt-get": {"docker": "docker.io"},
}
"""Distribution package names that differ from the binary name."""

# ============================================================================
# Registry
# ============================================================================

REGISTRY_AUTH_URL = "https://auth.docker.io/token"
REGISTRY_SERVICE = "registry.docker.io"
REGISTRY_API_URL = "https://registry-1.docker.io/v2"

MEDIA_TYPE_MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"
MEDIA_TYPE_OCI_INDEX = "application/vnd.oci.image.index.v1+json"
MEDIA_TYPE_MANIFEST = "application/vnd.docker.distribution.manifest.v2+json"
MEDIA_TYPE_OCI_MANIFEST = "application/vnd.oci.image.manifest.v1+json"

DEFAULT_IMAGE_OS = "linux"

ARCH_ALIASES: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
}
"""platform.machine() values mapped to registry architecture names."""

# ============================================================================
# Container Settings
# ============================================================================

SERVICE_PORTS: tuple[int, ...] = (8000, 9443, 9000)
"""Host ports published by the service (same port inside the container)."""

DOCKER_SOCKET = "/var/run/docker.sock"
DATA_MOUNT_TARGET = "/data"
RESTART_POLICY = "always"

BACKUP_INFIX = "_backup_"
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

# ============================================================================
# Notifications
# ============================================================================

MAIL_TOOLS: tuple[str, ...] = ("s-nail", "mail")
"""Mail senders, in preference order."""

VERSION_PATTERN = r"[0-9]+\.[0-9]+(?:\.[0-9]+)?"
UNKNOWN_VERSION = "unknown"
