"""Pytest configuration and fixtures."""

from __future__ import annotations

import subprocess

import pytest

from portainer_updater.config import UpdaterConfig
from portainer_updater.context import ExecutionContext
from portainer_updater.exceptions import CommandError
from portainer_updater.models import ContainerInfo


class FakeRuntime:
    """In-memory stand-in for ContainerRuntime.

    Containers are kept in a dict keyed by name. Every mutation is recorded
    in ``calls`` so tests can assert on the exact sequence of operations.
    """

    runtime = "docker"

    def __init__(self):
        self.containers: dict[str, dict] = {}
        self.image_ids: dict[str, str] = {}
        self.calls: list[tuple] = []
        self.fail_on: dict[str, int] = {}
        self.version_output = "2.21.4"
        self.version_returncode = 0
        self._next_id = 1

    def add(self, name, image_id="sha256:old", running=True, ports=""):
        cid = f"c{self._next_id:03d}"
        self._next_id += 1
        self.containers[name] = {
            "id": cid,
            "image_id": image_id,
            "running": running,
            "ports": ports,
        }
        return cid

    def _record(self, op, *args):
        self.calls.append((op, *args))
        if op in self.fail_on:
            raise CommandError(["docker", op, *args], self.fail_on[op], f"{op} failed")

    def _resolve(self, ref):
        for name, info in self.containers.items():
            if ref in (name, info["id"]):
                return name
        raise CommandError(["docker", "inspect", ref], 1, f"No such container: {ref}")

    def mutations(self):
        return [c for c in self.calls if c[0] in ("pull", "stop", "rename", "rm", "start", "run")]

    # Queries

    def list_container_names(self, include_stopped=True):
        return [
            name for name, info in self.containers.items()
            if include_stopped or info["running"]
        ]

    def container_exists(self, name):
        return name in self.containers

    def list_running(self):
        return [
            ContainerInfo(id=info["id"], name=name, ports=info["ports"])
            for name, info in self.containers.items()
            if info["running"]
        ]

    def inspect_image_id(self, name):
        info = self.containers.get(name)
        return info["image_id"] if info and info["running"] else ""

    def exec(self, name, command):
        self.calls.append(("exec", name, *command))
        return subprocess.CompletedProcess(
            ["docker", "exec", name, *command],
            self.version_returncode,
            stdout=self.version_output,
        )

    # Mutations

    def pull(self, image):
        self._record("pull", image)

    def stop(self, name):
        self._record("stop", name)
        self.containers[self._resolve(name)]["running"] = False

    def rename(self, old, new):
        self._record("rename", old, new)
        self.containers[new] = self.containers.pop(self._resolve(old))

    def remove(self, name, ignore_errors=False):
        try:
            self._record("rm", name)
            del self.containers[self._resolve(name)]
        except CommandError:
            if ignore_errors:
                return False
            raise
        return True

    def start(self, name):
        self._record("start", name)
        self.containers[self._resolve(name)]["running"] = True

    def run_container(self, name, image, ports=(), volumes=(), restart=None):
        self._record("run", name, image)
        if name in self.containers:
            raise CommandError(["docker", "run", name], 125, "name already in use")
        port_text = ", ".join(f"0.0.0.0:{p}->{p}/tcp" for p in ports)
        cid = self.add(
            name,
            image_id=self.image_ids.get(image, "sha256:new"),
            running=True,
            ports=port_text,
        )
        self.containers[name]["volumes"] = list(volumes)
        self.containers[name]["restart"] = restart
        return cid


@pytest.fixture
def fake_runtime():
    """Empty in-memory container runtime."""
    return FakeRuntime()


@pytest.fixture
def make_config(tmp_path):
    """Build an UpdaterConfig with test-friendly defaults."""

    def _make(**overrides):
        values = {
            "image_arch": "amd64",
            "email_to": "ops@example.com",
            "email_from": "host@example.com",
            "email_subject": "Portainer Updated",
            "email_body": tmp_path / "portainer_update_email.txt",
        }
        values.update(overrides)
        return UpdaterConfig(**values)

    return _make


@pytest.fixture
def ctx():
    """Create an execution context."""
    return ExecutionContext()
