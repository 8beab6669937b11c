"""
Container runtime wrapper for the update workflow.

Provides one interface over the docker (or podman) CLI for the handful of
container operations the updater needs. Every command is strict: a non-zero
exit raises ``CommandError`` unless the caller opts out.
"""

import logging
import subprocess
from typing import Iterable, Optional

from portainer_updater.exceptions import CommandError, DependencyError
from portainer_updater.models import ContainerInfo

logger = logging.getLogger(__name__)

RUNTIMES = ("docker", "podman")


class ContainerRuntime:
    """
    Client for container lifecycle operations.

    Detects the available runtime binary (docker, then podman) unless one is
    given explicitly.
    """

    def __init__(self, runtime: Optional[str] = None):
        self.runtime = runtime or self._detect_runtime()
        if not self.runtime:
            raise DependencyError("Neither docker nor podman found in PATH")
        logger.debug(f"Using container runtime: {self.runtime}")

    @staticmethod
    def _detect_runtime() -> Optional[str]:
        """Detect available container runtime."""
        for cmd in RUNTIMES:
            try:
                result = subprocess.run([cmd, "--version"], capture_output=True)
                if result.returncode == 0:
                    return cmd
            except FileNotFoundError:
                continue
        return None

    def _run(
        self,
        args: list[str],
        check: bool = True,
        merge_stderr: bool = False,
    ) -> subprocess.CompletedProcess:
        """
        Run a runtime subcommand.

        Args:
            args: Arguments after the runtime binary
            check: Raise CommandError on a non-zero exit
            merge_stderr: Fold stderr into stdout

        Returns:
            Completed process with text output
        """
        cmd = [self.runtime, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        if merge_stderr:
            result = subprocess.run(
                cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True
            )
        else:
            result = subprocess.run(cmd, capture_output=True, text=True)

        if check and result.returncode != 0:
            raise CommandError(cmd, result.returncode, result.stderr or "")
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_container_names(self, include_stopped: bool = True) -> list[str]:
        """Return container names, including stopped ones by default."""
        args = ["ps", "--format", "{{.Names}}"]
        if include_stopped:
            args.insert(1, "-a")
        result = self._run(args)
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def container_exists(self, name: str) -> bool:
        """Check whether a container (running or stopped) is named exactly ``name``."""
        return name in self.list_container_names()

    def list_running(self) -> list[ContainerInfo]:
        """Return running containers with their published ports."""
        result = self._run(["ps", "--format", "{{.ID}}\t{{.Names}}\t{{.Ports}}"])
        containers = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            fields = line.split("\t")
            fields += [""] * (3 - len(fields))
            containers.append(
                ContainerInfo(id=fields[0].strip(), name=fields[1].strip(), ports=fields[2].strip())
            )
        return containers

    def inspect_image_id(self, name: str) -> str:
        """
        Get the image ID a running container was created from.

        Returns:
            Image ID (``sha256:...``), or "" if the container does not exist
            or is not running
        """
        result = self._run(
            ["inspect", "--format={{if .State.Running}}{{.Image}}{{end}}", name], check=False
        )
        if result.returncode != 0:
            logger.debug(f"No container named {name}: {result.stderr.strip()}")
            return ""
        image_id = result.stdout.strip()
        if not image_id:
            logger.debug(f"Container {name} is not running")
        return image_id

    def exec(self, name: str, command: list[str]) -> subprocess.CompletedProcess:
        """Run ``command`` inside a container, stderr merged into stdout, unchecked."""
        return self._run(["exec", name, *command], check=False, merge_stderr=True)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def pull(self, image: str) -> None:
        """Pull an image, blocking until complete."""
        self._run(["pull", image])

    def stop(self, name: str) -> None:
        """Stop a container by name or ID."""
        self._run(["stop", name])

    def rename(self, old: str, new: str) -> None:
        """Rename a container."""
        self._run(["rename", old, new])

    def remove(self, name: str, ignore_errors: bool = False) -> bool:
        """
        Remove a stopped container.

        Returns:
            True if the container was removed
        """
        result = self._run(["rm", name], check=not ignore_errors)
        return result.returncode == 0

    def start(self, name: str) -> None:
        """Start an existing container."""
        self._run(["start", name])

    def run_container(
        self,
        name: str,
        image: str,
        ports: Iterable[int] = (),
        volumes: Iterable[tuple[str, str]] = (),
        restart: Optional[str] = None,
    ) -> str:
        """
        Create and start a detached container.

        Args:
            name: Container name
            image: Image reference
            ports: Ports published as ``host:container`` with the same number
            volumes: (source, target) mount pairs
            restart: Restart policy

        Returns:
            ID of the new container
        """
        args = ["run", "-d"]
        for port in ports:
            args += ["-p", f"{port}:{port}"]
        args.append(f"--name={name}")
        if restart:
            args.append(f"--restart={restart}")
        for source, target in volumes:
            args += ["-v", f"{source}:{target}"]
        args.append(image)

        result = self._run(args)
        return result.stdout.strip()
