"""Decide whether the running container needs replacing."""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class UpdateDecision(Enum):
    """Outcome of comparing remote and local image identity."""

    PROCEED = "proceed"
    SKIP = "skip"


def decide_update(remote_digest: str, local_digest: str, force: bool = False) -> UpdateDecision:
    """
    Compare the published and running image digests.

    An empty digest on either side means "unknown" and always proceeds, which
    also covers the first run when no container exists yet. Digests are
    compared as exact strings.

    Args:
        remote_digest: Config digest of the published image
        local_digest: Image ID of the running container
        force: Proceed even when the digests match

    Returns:
        SKIP only for equal, non-empty digests without force
    """
    if remote_digest and local_digest and remote_digest == local_digest:
        if force:
            logger.warning("Force update requested, proceeding despite identical digests")
            return UpdateDecision.PROCEED
        return UpdateDecision.SKIP
    return UpdateDecision.PROCEED
