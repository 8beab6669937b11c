"""Free the service's host ports from other running containers."""

from __future__ import annotations

import logging
from typing import Iterable

from portainer_updater.constants import SERVICE_PORTS
from portainer_updater.models import ContainerInfo
from portainer_updater.runtime import ContainerRuntime

logger = logging.getLogger(__name__)


def find_port_conflicts(
    containers: Iterable[ContainerInfo],
    ports: Iterable[int],
    canonical_name: str,
) -> list[ContainerInfo]:
    """
    Select containers publishing any of ``ports`` on the host.

    The canonical container is never returned, even when it holds one of the
    ports.
    """
    watched = frozenset(ports)
    return [
        c for c in containers
        if c.name != canonical_name and c.host_ports & watched
    ]


def stop_port_conflicts(
    runtime: ContainerRuntime,
    canonical_name: str,
    ports: Iterable[int] = SERVICE_PORTS,
) -> list[ContainerInfo]:
    """
    Stop every other running container that occupies a service port.

    Stops run one after another; the first failure raises CommandError.

    Returns:
        The containers that were stopped
    """
    conflicts = find_port_conflicts(runtime.list_running(), ports, canonical_name)
    if not conflicts:
        logger.debug("No conflicting containers on service ports")
        return []

    logger.warning(
        "Containers using required ports: "
        + ", ".join(f"{c.name} ({c.id})" for c in conflicts)
    )
    for container in conflicts:
        logger.info(f"Stopping {container.name} to free ports")
        runtime.stop(container.id)
    return conflicts
