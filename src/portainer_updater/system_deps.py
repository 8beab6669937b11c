"""Install the host tools the updater shells out to."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Iterable

from portainer_updater.constants import (
    PACKAGE_MANAGERS,
    PACKAGE_NAME_OVERRIDES,
    REQUIRED_BINS,
)
from portainer_updater.exceptions import DependencyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SystemDepResult:
    """Outcome of checking (and possibly installing) a single host tool."""

    binary: str
    already_installed: bool
    package: str | None = None
    manager: str | None = None


def find_missing(bins: Iterable[str] = REQUIRED_BINS) -> list[str]:
    """Return the tools from ``bins`` that are not on PATH."""
    return [name for name in bins if not shutil.which(name)]


def detect_package_manager() -> str | None:
    """Return the first supported package manager found on PATH."""
    for manager in PACKAGE_MANAGERS:
        if shutil.which(manager):
            return manager
    return None


def privilege_prefix() -> list[str]:
    """Return the command prefix needed to run installs as root.

    Raises:
        DependencyError: Not root and sudo is unavailable.
    """
    if os.geteuid() == 0:
        return []
    if shutil.which("sudo"):
        return ["sudo"]
    raise DependencyError("Cannot install dependencies: not root and sudo not found")


def package_name(manager: str, binary: str) -> str:
    """Map a binary name to the package that provides it for ``manager``."""
    return PACKAGE_NAME_OVERRIDES.get(manager, {}).get(binary, binary)


def install_commands(manager: str, packages: list[str], prefix: list[str]) -> list[list[str]]:
    """Build the command sequence that installs ``packages`` with ``manager``."""
    if manager == "apt-get":
        return [
            [*prefix, "apt-get", "update", "-qq"],
            [*prefix, "apt-get", "install", "-y", *packages],
        ]
    if manager in ("dnf", "yum"):
        return [[*prefix, manager, "install", "-y", *packages]]
    if manager == "pacman":
        return [[*prefix, "pacman", "-Sy", "--noconfirm", *packages]]
    raise DependencyError(f"Unsupported package manager: {manager}")


def ensure_dependencies(bins: Iterable[str] = REQUIRED_BINS) -> list[SystemDepResult]:
    """Install any missing host tools, skipping ones already present.

    Raises:
        DependencyError: No supported package manager, no way to escalate
            privileges, or an install command failed.
    """
    bins = list(bins)
    missing = find_missing(bins)
    results = [
        SystemDepResult(binary=name, already_installed=True)
        for name in bins
        if name not in missing
    ]
    if not missing:
        logger.debug(f"All required tools present: {', '.join(bins)}")
        return results

    logger.info(f"Installing missing dependencies: {', '.join(missing)}")
    prefix = privilege_prefix()

    manager = detect_package_manager()
    if manager is None:
        raise DependencyError(
            "Could not detect supported package manager. "
            f"Please install manually: {', '.join(missing)}"
        )

    packages = [package_name(manager, name) for name in missing]
    for cmd in install_commands(manager, packages, prefix):
        logger.debug(f"Running: {' '.join(cmd)}")
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            raise DependencyError(
                result.stderr.strip()
                or f"{manager} exited with code {result.returncode}"
            )

    for name, package in zip(missing, packages):
        results.append(
            SystemDepResult(
                binary=name, already_installed=False, package=package, manager=manager
            )
        )
    return results
