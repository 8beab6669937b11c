"""Run context handed from the CLI runner to UpdaterPlugin.run."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)


def _no_progress(fraction: float, message: str) -> None:
    pass


@dataclass
class ExecutionContext:
    """
    Hooks the runner exposes to the update stages.

    ``on_progress`` receives ``(fraction, message)`` as each stage starts.
    ``cancel_event`` is set by the runner on Ctrl-C; the plugin checks it
    before the first destructive stage.
    """

    on_progress: Callable[[float, str], None] = _no_progress
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def progress(self, fraction: float, message: str) -> None:
        """Report the start of a stage; ``fraction`` is clamped to 0.0-1.0."""
        logger.debug(f"Stage: {message}")
        self.on_progress(min(max(fraction, 0.0), 1.0), message)

    @property
    def is_cancelled(self) -> bool:
        return self.cancel_event.is_set()
