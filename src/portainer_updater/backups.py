"""Prune old backup containers, keeping the most recent ones."""

from __future__ import annotations

import logging
from typing import Iterable

from portainer_updater.exceptions import CommandError
from portainer_updater.models import BackupInstance
from portainer_updater.runtime import ContainerRuntime

logger = logging.getLogger(__name__)


def list_backups(names: Iterable[str], canonical: str) -> list[BackupInstance]:
    """Return the backups of ``canonical`` among ``names``, newest first."""
    backups = []
    for name in names:
        backup = BackupInstance.parse(name, canonical)
        if backup is not None:
            backups.append(backup)
    return sorted(backups, reverse=True)


def select_stale_backups(names: Iterable[str], canonical: str, keep: int) -> list[str]:
    """
    Pick the backups to remove.

    Args:
        names: All container names
        canonical: Canonical container name
        keep: Number of most recent backups to retain

    Returns:
        Names of every backup older than the ``keep`` newest, newest first
    """
    return [b.name for b in list_backups(names, canonical)[max(keep, 0):]]


def prune_backups(runtime: ContainerRuntime, canonical: str, keep: int) -> list[str]:
    """
    Remove all but the ``keep`` most recent backups of ``canonical``.

    A failed removal is logged and skipped so one stuck backup does not
    abort cleanup.

    Returns:
        Names of the backups that were removed
    """
    stale = select_stale_backups(runtime.list_container_names(), canonical, keep)
    if not stale:
        logger.debug(f"No old backups of {canonical} to remove")
        return []

    removed = []
    for name in stale:
        logger.info(f"Removing old backup: {name}")
        try:
            runtime.remove(name)
        except CommandError as e:
            logger.warning(f"Could not remove backup {name}: {e}")
            continue
        removed.append(name)
    return removed
