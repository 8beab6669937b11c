"""Tests for portainer_updater.notifier."""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from portainer_updater.exceptions import NotificationError
from portainer_updater.notifier import (
    compose_message,
    extract_version,
    get_running_version,
    mail_command,
    notify_update,
    send_notification,
)


@pytest.mark.parametrize(
    "output,expected",
    [
        ("2.21.4", "2.21.4"),
        ("Portainer version 2.19 (build abc)", "2.19"),
        ("time=... level=INFO msg=\"version 2.27.1-lts\"", "2.27.1"),
        ("no version here", "unknown"),
        ("", "unknown"),
    ],
)
def test_extract_version(output, expected):
    assert extract_version(output) == expected


def test_get_running_version(fake_runtime, make_config):
    fake_runtime.add("portainer")
    fake_runtime.version_output = "2.21.4\n"

    assert get_running_version(fake_runtime, make_config()) == "2.21.4"
    assert fake_runtime.calls == [("exec", "portainer", "/portainer", "--version")]


def test_get_running_version_command_failure(fake_runtime, make_config):
    fake_runtime.version_returncode = 126
    fake_runtime.version_output = "OCI runtime exec failed 1.2.3"

    assert get_running_version(fake_runtime, make_config()) == "unknown"


def test_compose_message():
    body = compose_message("box1", "2.21.4", "portainer", datetime(2026, 10, 18, 9, 30, 15))
    assert body.splitlines() == [
        "✅ Portainer CE has been updated on host: box1",
        "",
        "Updated to       : 2.21.4",
        "Time             : Sun Oct 18 09:30:15 2026",
        "Container name   : portainer",
    ]


def test_mail_command_variants(make_config):
    config = make_config()
    assert mail_command("s-nail", config) == [
        "s-nail", "-s", "Portainer Updated", "-r", "host@example.com",
        "-S", "from=host@example.com", "ops@example.com",
    ]
    assert mail_command("mail", config) == [
        "mail", "-s", "Portainer Updated", "-r", "host@example.com", "ops@example.com",
    ]


class TestSendNotification:
    """Tests for message delivery and scratch file cleanup."""

    def test_disabled_does_nothing(self, make_config):
        config = make_config(email_enabled=False)
        with patch("portainer_updater.notifier.subprocess.run") as mock_run:
            assert send_notification(config, "body") is False
        mock_run.assert_not_called()
        assert not config.email_body.exists()

    def test_prefers_s_nail_and_cleans_up(self, make_config):
        config = make_config(email_enabled=True)
        seen = {}

        def fake_run(cmd, stdin, capture_output, text):
            seen["cmd"] = cmd
            seen["body"] = stdin.read()
            return MagicMock(returncode=0, stderr="")

        with patch(
            "portainer_updater.notifier.shutil.which", return_value="/usr/bin/tool"
        ), patch("portainer_updater.notifier.subprocess.run", side_effect=fake_run):
            assert send_notification(config, "hello\n") is True

        assert seen["cmd"][0] == "s-nail"
        assert seen["body"] == "hello\n"
        assert not config.email_body.exists()

    def test_falls_back_to_mail(self, make_config):
        config = make_config(email_enabled=True)
        with patch(
            "portainer_updater.notifier.shutil.which",
            side_effect=lambda name: "/usr/bin/mail" if name == "mail" else None,
        ), patch(
            "portainer_updater.notifier.subprocess.run",
            return_value=MagicMock(returncode=0, stderr=""),
        ) as mock_run:
            assert send_notification(config, "hello\n") is True

        assert mock_run.call_args.args[0][0] == "mail"

    def test_no_mail_tool_skips_and_cleans_up(self, make_config):
        config = make_config(email_enabled=True)
        with patch("portainer_updater.notifier.shutil.which", return_value=None), patch(
            "portainer_updater.notifier.subprocess.run"
        ) as mock_run:
            assert send_notification(config, "hello\n") is False

        mock_run.assert_not_called()
        assert not config.email_body.exists()

    def test_send_failure_raises_and_cleans_up(self, make_config):
        config = make_config(email_enabled=True)
        with patch(
            "portainer_updater.notifier.shutil.which", return_value="/usr/bin/s-nail"
        ), patch(
            "portainer_updater.notifier.subprocess.run",
            return_value=MagicMock(returncode=1, stderr="smtp: connection refused"),
        ):
            with pytest.raises(NotificationError, match="connection refused"):
                send_notification(config, "hello\n")

        assert not config.email_body.exists()

    def test_unwritable_body_file_raises(self, make_config, tmp_path):
        config = make_config(email_enabled=True, email_body=tmp_path / "missing" / "body.txt")
        with pytest.raises(NotificationError, match="Cannot write"):
            send_notification(config, "hello\n")


def test_notify_unknown_version_still_sends(fake_runtime, make_config):
    """Version pattern finds nothing: body says "unknown" and the mail goes out."""
    config = make_config(email_enabled=True)
    fake_runtime.add("portainer")
    fake_runtime.version_output = "portainer: build information unavailable"
    seen = {}

    def fake_run(cmd, stdin, capture_output, text):
        seen["body"] = stdin.read()
        return MagicMock(returncode=0, stderr="")

    with patch(
        "portainer_updater.notifier.shutil.which", return_value="/usr/bin/s-nail"
    ), patch("portainer_updater.notifier.subprocess.run", side_effect=fake_run), patch(
        "portainer_updater.notifier.socket.gethostname", return_value="box1"
    ):
        assert notify_update(fake_runtime, config) is True

    assert "Updated to       : unknown" in seen["body"]
    assert "host: box1" in seen["body"]
