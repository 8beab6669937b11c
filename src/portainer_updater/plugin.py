"""Tool interface between the update workflow and the CLI runner."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

from portainer_updater.exceptions import UpdaterError

if TYPE_CHECKING:
    from portainer_updater.context import ExecutionContext

# Conventional shell status for an interrupted run
CANCELLED_EXIT_CODE = 130


class ResultStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of one update run.

    ``data`` holds what the run learned or changed: digests, the decision,
    the backup name, removed backups, the running version and, on failure,
    ``exit_code``.
    """

    status: ResultStatus
    summary: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failed(cls, error: UpdaterError, data: dict[str, Any]) -> "ToolResult":
        """Build a FAILURE result carrying the error's exit status."""
        return cls(
            status=ResultStatus.FAILURE,
            summary=str(error),
            data={**data, "exit_code": error.exit_code},
        )

    @property
    def exit_code(self) -> int:
        if self.status is ResultStatus.SUCCESS:
            return 0
        if self.status is ResultStatus.CANCELLED:
            return CANCELLED_EXIT_CODE
        return int(self.data.get("exit_code") or 1)


ParamType = Literal["str", "int", "bool", "path"]


@dataclass(frozen=True)
class ToolParam:
    """A command-line option the tool accepts; ``bool`` params become flags."""

    name: str
    description: str
    type: ParamType = "str"
    default: Any = None


@runtime_checkable
class ToolPlugin(Protocol):
    """What the CLI runner needs from a tool: metadata, options and ``run``."""

    name: str
    description: str
    version: str

    def get_params(self) -> list[ToolParam]: ...

    def run(self, args: dict[str, Any], ctx: ExecutionContext) -> ToolResult:
        """
        Execute one run.

        Args:
            args: Option values keyed by ToolParam.name
            ctx: Progress reporting and cancellation

        Returns:
            ToolResult; errors that abort the run come back as FAILURE
            rather than being raised
        """
        ...
