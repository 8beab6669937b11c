"""Exception hierarchy for the update workflow.

Every stage raises a subclass of ``UpdaterError``; the plugin turns the first
one into a failed ``ToolResult`` and the CLI into a non-zero exit.
"""

from __future__ import annotations


class UpdaterError(Exception):
    """Base class for all errors that abort an update run."""

    exit_code: int = 1


class DependencyError(UpdaterError):
    """A required host tool is missing and cannot be installed."""


class ConfigError(UpdaterError):
    """The configuration file could not be created or parsed."""


class RegistryError(UpdaterError):
    """A request to the image registry failed."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"Registry request to {url} failed: {message}")


class CommandError(UpdaterError):
    """An external command exited with a non-zero status."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(
            f"Command '{' '.join(cmd)}' exited with code {returncode}{detail}"
        )

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        return self.returncode or 1


class NotificationError(UpdaterError):
    """The mail tool failed to send the status message."""
