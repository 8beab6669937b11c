"""
Replace the canonical container with one running the freshly pulled image.

Steps: pull, stop and rename the old container to a timestamped backup,
clear the canonical name, start the new container. There is no recovery
beyond aborting on the first failed command unless rollback is enabled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from portainer_updater.config import UpdaterConfig
from portainer_updater.constants import (
    BACKUP_INFIX,
    BACKUP_TIMESTAMP_FORMAT,
    DATA_MOUNT_TARGET,
    DOCKER_SOCKET,
    RESTART_POLICY,
    SERVICE_PORTS,
)
from portainer_updater.exceptions import CommandError
from portainer_updater.runtime import ContainerRuntime

logger = logging.getLogger(__name__)


def backup_name_for(name: str, now: datetime, existing: Iterable[str] = ()) -> str:
    """
    Build a backup container name that is not already taken.

    ``<name>_backup_YYYYMMDD_HHMMSS``, followed by ``_1``, ``_2``... when an
    earlier backup was made in the same second.
    """
    base = f"{name}{BACKUP_INFIX}{now.strftime(BACKUP_TIMESTAMP_FORMAT)}"
    taken = set(existing)
    candidate = base
    sequence = 0
    while candidate in taken:
        sequence += 1
        candidate = f"{base}_{sequence}"
    return candidate


@dataclass(frozen=True)
class TransitionResult:
    """What the transition did to the container namespace."""

    container_id: str
    backup_name: Optional[str] = None


class TransitionExecutor:
    """Performs the backup-rename-replace sequence for one container."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        config: UpdaterConfig,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.runtime = runtime
        self.config = config
        self._clock = clock

    def execute(self) -> TransitionResult:
        """
        Run the full transition.

        Raises:
            CommandError: A pull, stop, rename or run command failed
        """
        name = self.config.container_name
        image = self.config.image_name

        logger.info(f"Pulling image {image}")
        self.runtime.pull(image)

        backup_name = self._backup_current(name)

        self.runtime.remove(name, ignore_errors=True)

        logger.info(f"Starting new container {name}")
        try:
            container_id = self._start_new(name, image)
        except CommandError:
            if backup_name and self.config.rollback_on_failure:
                self._rollback(name, backup_name)
            raise

        return TransitionResult(container_id=container_id, backup_name=backup_name)

    def _backup_current(self, name: str) -> Optional[str]:
        """Stop the canonical container and rename it to a backup name."""
        names = self.runtime.list_container_names()
        if name not in names:
            logger.info(f"No existing container named {name}, nothing to back up")
            return None

        backup_name = backup_name_for(name, self._clock(), names)
        logger.info(f"Stopping container {name}")
        self.runtime.stop(name)

        if not self.runtime.container_exists(name):
            logger.warning(f"Skipped rename: container {name} no longer exists")
            return None

        logger.info(f"Renaming {name} to backup {backup_name}")
        self.runtime.rename(name, backup_name)
        return backup_name

    def _start_new(self, name: str, image: str) -> str:
        return self.runtime.run_container(
            name=name,
            image=image,
            ports=SERVICE_PORTS,
            volumes=[
                (DOCKER_SOCKET, DOCKER_SOCKET),
                (self.config.volume_name, DATA_MOUNT_TARGET),
            ],
            restart=RESTART_POLICY,
        )

    def _rollback(self, name: str, backup_name: str) -> None:
        """Restore the backup under the canonical name and start it again."""
        logger.warning(f"Start of {name} failed, restoring backup {backup_name}")
        try:
            self.runtime.remove(name, ignore_errors=True)
            self.runtime.rename(backup_name, name)
            self.runtime.start(name)
        except CommandError as e:
            logger.error(f"Rollback to {backup_name} failed: {e}")
            return
        logger.warning(f"Rolled back to previous container {name}")
