import itertools
import socket
from types import SimpleNamespace

import pytest

from docker_deployer.errors import RuntimeAPIError
from docker_deployer.models import Service
from docker_deployer.runtime import RuntimeContainer, Transition
from docker_deployer.settings import AppSettings


class FakeRuntime:
    """In-memory stand-in for DockerRuntime that records every call in order."""

    def __init__(self):
        self.containers: dict[str, dict] = {}  # id -> {"name", "running"}
        self.pull_events: dict[str, list[dict]] = {}
        self.errors: dict[tuple[str, str], RuntimeAPIError] = {}  # (action, name or image) -> error
        self.calls: list[tuple[str, str]] = []
        self.specs = []
        self._ids = itertools.count(1)

    def add_container(self, name: str, running: bool = False) -> str:
        container_id = f"{name}-{next(self._ids):04d}"
        self.containers[container_id] = {"name": name, "running": running}
        return container_id

    def is_running(self, name: str) -> bool:
        return any(c["running"] for c in self.containers.values() if c["name"] == name)

    def _name(self, container_id: str) -> str:
        return self.containers[container_id]["name"]

    def _check(self, action: str, key: str) -> None:
        if (action, key) in self.errors:
            raise self.errors[(action, key)]

    def mutations(self) -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] in ("stop", "remove", "create", "start")]

    def list_containers(self, all: bool = True) -> list[RuntimeContainer]:
        self.calls.append(("list", ""))
        return [
            RuntimeContainer(id=cid, names=(f"/{c['name']}",), state="running" if c["running"] else "exited")
            for cid, c in self.containers.items()
            if all or c["running"]
        ]

    def pull(self, image: str):
        self.calls.append(("pull", image))
        self._check("pull", image)
        default = [{"status": f"Status: Image is up to date for {image}"}]
        yield from self.pull_events.get(image, default)

    def create_container(self, spec) -> str:
        self.calls.append(("create", spec.name))
        self._check("create", spec.name)
        self.specs.append(spec)
        return self.add_container(spec.name)

    def start(self, container_id: str) -> Transition:
        name = self._name(container_id)
        self.calls.append(("start", name))
        self._check("start", name)
        if self.containers[container_id]["running"]:
            return Transition.ALREADY_IN_STATE
        self.containers[container_id]["running"] = True
        return Transition.CHANGED

    def stop(self, container_id: str) -> Transition:
        name = self._name(container_id)
        self.calls.append(("stop", name))
        self._check("stop", name)
        if not self.containers[container_id]["running"]:
            return Transition.ALREADY_IN_STATE
        self.containers[container_id]["running"] = False
        return Transition.CHANGED

    def remove(self, container_id: str) -> None:
        name = self._name(container_id)
        self.calls.append(("remove", name))
        self._check("remove", name)
        del self.containers[container_id]


def new_image_events(image: str) -> list[dict]:
    return [
        {"status": "Pulling from library", "id": image},
        {"status": "Downloading", "progressDetail": {"current": 10, "total": 100}},
        {"status": f"Status: Downloaded newer image for {image}"},
    ]


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def settings():
    return AppSettings(HOST_IP_INTERFACES=["eth0", "en0"], RESTART_POLICY="always", RESTART_MAX_RETRIES=5)


@pytest.fixture
def services():
    return [
        Service(name="web", registry="example/web", tag="1.0", env=["MODE=prod"], port=8080, links=["db:db"]),
        Service(name="db", registry="postgres", tag="16"),
        Service(name="worker", registry="example/worker", tag="latest", cmd=["run", "--queue", "default"]),
    ]


@pytest.fixture(autouse=True)
def host_interfaces(monkeypatch):
    """Interfaces seen by psutil; empty unless a test fills it."""
    interfaces: dict[str, list] = {}
    monkeypatch.setattr("docker_deployer.network.psutil.net_if_addrs", lambda: interfaces)
    return interfaces


def inet(address: str, family=socket.AF_INET):
    return SimpleNamespace(family=family, address=address)
