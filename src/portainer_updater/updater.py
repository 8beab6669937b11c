"""ToolPlugin implementation for the container update workflow."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from portainer_updater import __version__
from portainer_updater.backups import prune_backups
from portainer_updater.config import UpdaterConfig, load_config
from portainer_updater.context import ExecutionContext
from portainer_updater.decision import UpdateDecision, decide_update
from portainer_updater.exceptions import UpdaterError
from portainer_updater.notifier import get_running_version, notify_update
from portainer_updater.plugin import ResultStatus, ToolParam, ToolResult
from portainer_updater.ports import stop_port_conflicts
from portainer_updater.registry import RegistryClient
from portainer_updater.runtime import ContainerRuntime
from portainer_updater.system_deps import ensure_dependencies
from portainer_updater.transition import TransitionExecutor

logger = logging.getLogger(__name__)


class UpdaterPlugin:
    """
    Keeps one container on the latest published image.

    Stages run strictly in order and the first UpdaterError aborts the run:
    dependencies, config, remote digest, decision, port conflicts,
    transition, backup pruning, notification.
    """

    name = "portainer-updater"
    description = "Update the Portainer container to the latest published image"
    version = __version__

    def __init__(
        self,
        ensure_deps: Callable[[], Any] = ensure_dependencies,
        config_loader: Callable[[], UpdaterConfig] = load_config,
        runtime_factory: Callable[[], ContainerRuntime] = ContainerRuntime,
        registry: Optional[RegistryClient] = None,
    ):
        self._ensure_deps = ensure_deps
        self._config_loader = config_loader
        self._runtime_factory = runtime_factory
        self._registry = registry

    def get_params(self) -> list[ToolParam]:
        return [
            ToolParam(
                name="force",
                description="Replace the container even if the image digests match",
                type="bool",
                default=False,
            ),
        ]

    def run(self, args: dict[str, Any], ctx: ExecutionContext) -> ToolResult:
        force = bool(args.get("force"))
        data: dict[str, Any] = {"force": force}

        try:
            ctx.progress(0.0, "Checking dependencies")
            self._ensure_deps()

            config = self._config_loader()
            runtime = self._runtime_factory()
            registry = self._registry or RegistryClient()
            data["container"] = config.container_name

            ctx.progress(0.15, "Checking remote image digest")
            remote = registry.resolve_remote_digest(
                config.image_name, config.image_arch, config.image_os
            )
            logger.info(f"Latest image digest: {remote or '(unknown)'}")
            local = runtime.inspect_image_id(config.container_name)
            logger.info(f"Running container image digest: {local or '(none)'}")

            decision = decide_update(remote, local, force)
            data.update(remote_digest=remote, local_digest=local, decision=decision.value)
            if decision is UpdateDecision.SKIP:
                return ToolResult(
                    status=ResultStatus.SUCCESS,
                    summary=f"{config.container_name} is already up to date (based on image digest)",
                    data=data,
                )

            if ctx.is_cancelled:
                return ToolResult(status=ResultStatus.CANCELLED, summary="Cancelled by user", data=data)

            ctx.progress(0.3, "Freeing service ports")
            stopped = stop_port_conflicts(runtime, config.container_name)
            data["stopped_conflicts"] = [c.name for c in stopped]

            ctx.progress(0.45, "Replacing container")
            transition = TransitionExecutor(runtime, config).execute()
            data.update(container_id=transition.container_id, backup=transition.backup_name)

            current_version = get_running_version(runtime, config)
            logger.info(f"Running version: {current_version}")
            data["version"] = current_version

            ctx.progress(0.8, "Cleaning up old backups")
            data["removed_backups"] = prune_backups(
                runtime, config.container_name, config.backup_keep
            )

            ctx.progress(0.9, "Sending notification")
            data["notified"] = notify_update(runtime, config, version=current_version)

        except UpdaterError as e:
            logger.error(f"Update aborted: {e}")
            return ToolResult.failed(e, data)

        ctx.progress(1.0, "Done")
        return ToolResult(
            status=ResultStatus.SUCCESS,
            summary=f"{config.container_name} updated to {current_version}",
            data=data,
        )


def create_plugin() -> UpdaterPlugin:
    """Factory used by the CLI entry point."""
    return UpdaterPlugin()
