"""
Process-local data models for the update workflow.

Nothing here is persisted: containers are re-listed from the runtime on every
run and the image reference is parsed from the loaded configuration.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from portainer_updater.constants import BACKUP_INFIX, BACKUP_TIMESTAMP_FORMAT

DOCKER_HUB_HOSTS = frozenset({"docker.io", "index.docker.io", "registry-1.docker.io"})

_HOST_PORT = re.compile(r":(\d+)->")


@dataclass(frozen=True)
class ImageReference:
    """
    Parsed ``[registry/]repository[:tag]`` image reference.

    Docker Hub short names are normalised: ``nginx`` becomes
    ``library/nginx`` and a missing tag means ``latest``.
    """

    registry: str
    """Registry hostname (``docker.io`` for Docker Hub)."""

    repository: str
    """Repository path within the registry (e.g. ``portainer/portainer-ce``)."""

    tag: str
    """Image tag (e.g. ``lts``)."""

    @classmethod
    def parse(cls, image: str) -> "ImageReference":
        """
        Parse a container image reference string.

        Args:
            image: Image reference (e.g. ``portainer/portainer-ce:lts``)

        Returns:
            Parsed ImageReference

        Raises:
            ValueError: If the reference is empty or pinned by digest
        """
        if not image or not image.strip():
            raise ValueError("Image reference must not be empty")
        if "@" in image:
            raise ValueError(f"Digest-pinned image cannot be updated: {image}")

        image = image.strip()
        tag = "latest"
        last_slash = image.rfind("/")
        last_colon = image.rfind(":")
        if last_colon > last_slash:
            image, tag = image[:last_colon], image[last_colon + 1:]

        parts = image.split("/")
        first = parts[0]
        if len(parts) > 1 and ("." in first or ":" in first or first == "localhost"):
            registry = first
            parts = parts[1:]
        else:
            registry = "docker.io"

        if registry in DOCKER_HUB_HOSTS:
            registry = "docker.io"
            if len(parts) == 1:
                parts = ["library", *parts]

        return cls(registry=registry, repository="/".join(parts), tag=tag)

    @property
    def is_docker_hub(self) -> bool:
        return self.registry == "docker.io"

    def __str__(self) -> str:
        return f"{self.registry}/{self.repository}:{self.tag}"


@dataclass(frozen=True)
class ContainerInfo:
    """One row of the runtime's container listing."""

    id: str
    name: str
    ports: str = ""

    @property
    def host_ports(self) -> frozenset[int]:
        """Host ports published by this container (IPv4 and IPv6 bindings)."""
        return frozenset(int(port) for port in _HOST_PORT.findall(self.ports))


@dataclass(frozen=True, order=True)
class BackupInstance:
    """
    A renamed former canonical container.

    Ordering uses the embedded timestamp and the same-second sequence number,
    never the raw name.
    """

    created: datetime
    sequence: int = 0
    name: str = field(default="", compare=False)

    @classmethod
    def parse(cls, name: str, canonical: str) -> Optional["BackupInstance"]:
        """
        Parse ``<canonical>_backup_YYYYMMDD_HHMMSS[_N]``.

        Returns:
            BackupInstance, or None if ``name`` is not a backup of ``canonical``
        """
        prefix = f"{canonical}{BACKUP_INFIX}"
        if not name.startswith(prefix):
            return None

        match = re.fullmatch(r"(\d{8}_\d{6})(?:_(\d+))?", name[len(prefix):])
        if not match:
            return None

        try:
            created = datetime.strptime(match.group(1), BACKUP_TIMESTAMP_FORMAT)
        except ValueError:
            return None
        return cls(created=created, sequence=int(match.group(2) or 0), name=name)
