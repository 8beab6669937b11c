"""
Email notification of a completed update.

The message is written to a scratch file and fed to whichever mail tool is
installed (``s-nail`` preferred, then ``mail``). The scratch file is always
removed afterwards.
"""

from __future__ import annotations

import logging
import re
import shlex
import shutil
import socket
import subprocess
from datetime import datetime
from typing import Optional

from portainer_updater.config import UpdaterConfig
from portainer_updater.constants import MAIL_TOOLS, UNKNOWN_VERSION, VERSION_PATTERN
from portainer_updater.exceptions import NotificationError
from portainer_updater.runtime import ContainerRuntime

logger = logging.getLogger(__name__)


def extract_version(output: str) -> str:
    """Return the first ``X.Y`` or ``X.Y.Z`` in ``output``, or "unknown"."""
    match = re.search(VERSION_PATTERN, output or "")
    return match.group(0) if match else UNKNOWN_VERSION


def get_running_version(runtime: ContainerRuntime, config: UpdaterConfig) -> str:
    """Ask the running container for its version; "unknown" if it cannot say."""
    result = runtime.exec(config.container_name, shlex.split(config.version_command))
    if result.returncode != 0:
        logger.debug(f"Version command failed in {config.container_name}: {result.stdout}")
        return UNKNOWN_VERSION
    return extract_version(result.stdout)


def compose_message(
    hostname: str,
    version: str,
    container_name: str,
    when: datetime,
) -> str:
    """Build the plain-text notification body."""
    return (
        f"✅ Portainer CE has been updated on host: {hostname}\n"
        "\n"
        f"Updated to       : {version}\n"
        f"Time             : {when.strftime('%a %b %d %H:%M:%S %Y')}\n"
        f"Container name   : {container_name}\n"
    )


def detect_mail_tool() -> Optional[str]:
    """Return the first available mail sender."""
    for tool in MAIL_TOOLS:
        if shutil.which(tool):
            return tool
    return None


def mail_command(tool: str, config: UpdaterConfig) -> list[str]:
    """Build the send command for ``tool``; the body is read from stdin."""
    cmd = [tool, "-s", config.email_subject, "-r", config.email_from]
    if tool == "s-nail":
        cmd += ["-S", f"from={config.email_from}"]
    cmd.append(config.email_to)
    return cmd


def send_notification(config: UpdaterConfig, body: str) -> bool:
    """
    Send ``body`` to the configured recipient if notifications are enabled.

    Returns:
        True if a mail was handed to a mail tool

    Raises:
        NotificationError: The mail tool exited with an error
    """
    if not config.email_enabled:
        logger.debug("Email notifications disabled")
        return False

    logger.info(f"Sending email notification to {config.email_to}")
    body_file = config.email_body
    try:
        try:
            body_file.write_text(body, encoding="utf-8")
        except OSError as e:
            raise NotificationError(f"Cannot write message file {body_file}: {e}") from e

        tool = detect_mail_tool()
        if tool is None:
            logger.warning(f"Email not sent: {'/'.join(MAIL_TOOLS)} not found")
            return False

        cmd = mail_command(tool, config)
        with open(body_file, "r", encoding="utf-8") as stdin:
            result = subprocess.run(cmd, stdin=stdin, capture_output=True, text=True)
        if result.returncode != 0:
            raise NotificationError(
                f"{tool} exited with code {result.returncode}: {result.stderr.strip()}"
            )
        return True
    finally:
        body_file.unlink(missing_ok=True)


def notify_update(
    runtime: ContainerRuntime,
    config: UpdaterConfig,
    version: Optional[str] = None,
    when: Optional[datetime] = None,
) -> bool:
    """Compose and send the update notification."""
    if not config.email_enabled:
        return False
    if version is None:
        version = get_running_version(runtime, config)
    body = compose_message(
        socket.gethostname(),
        version,
        config.container_name,
        when or datetime.now(),
    )
    return send_notification(config, body)
