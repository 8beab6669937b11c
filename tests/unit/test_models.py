"""Tests for portainer_updater.models."""

from datetime import datetime

import pytest

from portainer_updater.models import BackupInstance, ContainerInfo, ImageReference


class TestImageReference:
    """Tests for image reference parsing."""

    def test_parse_org_repo_tag(self):
        ref = ImageReference.parse("portainer/portainer-ce:lts")
        assert ref.registry == "docker.io"
        assert ref.repository == "portainer/portainer-ce"
        assert ref.tag == "lts"
        assert ref.is_docker_hub is True

    def test_parse_official_image_gets_library_prefix(self):
        ref = ImageReference.parse("nginx")
        assert ref.repository == "library/nginx"
        assert ref.tag == "latest"

    def test_parse_explicit_docker_hub_host(self):
        ref = ImageReference.parse("docker.io/portainer/portainer-ce:2.21.4")
        assert ref.registry == "docker.io"
        assert ref.repository == "portainer/portainer-ce"
        assert ref.tag == "2.21.4"

    def test_parse_other_registry_with_port(self):
        ref = ImageReference.parse("registry.local:5000/team/app:1.0")
        assert ref.registry == "registry.local:5000"
        assert ref.repository == "team/app"
        assert ref.tag == "1.0"
        assert ref.is_docker_hub is False

    def test_str(self):
        assert str(ImageReference.parse("portainer/portainer-ce:lts")) == (
            "docker.io/portainer/portainer-ce:lts"
        )

    @pytest.mark.parametrize("image", ["", "   ", "nginx@sha256:abc"])
    def test_parse_rejects_invalid(self, image):
        with pytest.raises(ValueError):
            ImageReference.parse(image)


class TestContainerInfo:
    """Tests for published port parsing."""

    def test_host_ports_ipv4_and_ipv6(self):
        info = ContainerInfo(
            id="abc",
            name="web",
            ports="0.0.0.0:9000->9000/tcp, :::9000->9000/tcp, 0.0.0.0:8080->80/tcp",
        )
        assert info.host_ports == frozenset({9000, 8080})

    def test_unpublished_ports_are_ignored(self):
        info = ContainerInfo(id="abc", name="db", ports="5432/tcp")
        assert info.host_ports == frozenset()

    def test_empty_ports(self):
        assert ContainerInfo(id="abc", name="x").host_ports == frozenset()


class TestBackupInstance:
    """Tests for backup name parsing and ordering."""

    def test_parse_backup_name(self):
        backup = BackupInstance.parse("portainer_backup_20260101_120000", "portainer")
        assert backup is not None
        assert backup.created == datetime(2026, 1, 1, 12, 0, 0)
        assert backup.sequence == 0
        assert backup.name == "portainer_backup_20260101_120000"

    def test_parse_same_second_sequence(self):
        backup = BackupInstance.parse("portainer_backup_20260101_120000_2", "portainer")
        assert backup.sequence == 2

    @pytest.mark.parametrize(
        "name",
        [
            "portainer",
            "portainer_backup_",
            "portainer_backup_latest",
            "portainer_backup_20261301_120000",  # month 13
            "other_backup_20260101_120000",
            "portainer_agent_backup_20260101_120000",
        ],
    )
    def test_parse_rejects_non_backups(self, name):
        assert BackupInstance.parse(name, "portainer") is None

    def test_ordering_uses_timestamp_then_sequence(self):
        older = BackupInstance.parse("portainer_backup_20251231_235959", "portainer")
        same_second = BackupInstance.parse("portainer_backup_20260101_000000", "portainer")
        same_second_later = BackupInstance.parse("portainer_backup_20260101_000000_1", "portainer")

        assert sorted([same_second_later, older, same_second]) == [
            older,
            same_second,
            same_second_later,
        ]
