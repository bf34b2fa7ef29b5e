"""
Runtime client boundary.

The reconciler only talks to the container runtime through `DockerRuntime`
(or any object with the same methods, which is what the tests substitute).
Every method queries the runtime afresh; nothing here caches runtime state.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

import docker
import requests
from docker.errors import DockerException
from docker.tls import TLSConfig

from .errors import RuntimeAPIError
from .models import DockerOptions
from .settings import AppSettings, get_settings

logger = logging.getLogger(__name__)

NOT_MODIFIED = 304


class Transition(str, Enum):
    """Result of a state-changing call that may already be satisfied."""

    CHANGED = "changed"
    ALREADY_IN_STATE = "already_in_state"


@dataclass(frozen=True)
class RuntimeContainer:
    id: str
    names: tuple[str, ...]
    state: str = ""

    def is_named(self, name: str) -> bool:
        return f"/{name}" in self.names

    @classmethod
    def from_listing(cls, entry: dict[str, Any]) -> "RuntimeContainer":
        return cls(id=entry["Id"], names=tuple(entry.get("Names") or ()), state=entry.get("State", ""))


@dataclass(frozen=True)
class ContainerSpec:
    image: str
    name: str
    command: str | list[str] | None = None
    env: list[str] = field(default_factory=list)
    port: int | None = None
    links: list[str] | None = None
    restart_policy: dict[str, Any] = field(default_factory=dict)


def _normalize_links(links: list[str]) -> list[tuple[str, str]]:
    # (container, alias) pairs; an empty alias makes docker-py emit the bare name.
    return [tuple(link.split(":", 1)) if ":" in link else (link, "") for link in links]


class DockerRuntime:
    """Thin adapter over the docker-py low-level API client."""

    def __init__(self, api: docker.APIClient, stop_timeout: int = 10):
        self.api = api
        self.stop_timeout = stop_timeout

    @staticmethod
    def _translate(e: Exception) -> RuntimeAPIError:
        status_code = getattr(e, "status_code", None)
        message = getattr(e, "explanation", None) or str(e)
        return RuntimeAPIError(message, status_code=status_code)

    def list_containers(self, all: bool = True) -> list[RuntimeContainer]:
        try:
            entries = self.api.containers(all=all)
        except (DockerException, requests.RequestException) as e:
            raise self._translate(e) from e
        return [RuntimeContainer.from_listing(entry) for entry in entries]

    def pull(self, image: str) -> Iterator[dict[str, Any]]:
        """Yields decoded progress events; errors surface while iterating."""
        try:
            yield from self.api.pull(image, stream=True, decode=True)
        except (DockerException, requests.RequestException) as e:
            raise self._translate(e) from e

    def create_container(self, spec: ContainerSpec) -> str:
        try:
            host_config = self.api.create_host_config(
                port_bindings={spec.port: spec.port} if spec.port else None,
                links=_normalize_links(spec.links) if spec.links else None,
                restart_policy=spec.restart_policy or None,
            )
            created = self.api.create_container(
                spec.image,
                command=spec.command,
                name=spec.name,
                environment=list(spec.env),
                ports=[spec.port] if spec.port else None,
                host_config=host_config,
            )
        except (DockerException, requests.RequestException) as e:
            raise self._translate(e) from e

        for warning in created.get("Warnings") or []:
            logger.warning("create %s: %s", spec.name, warning)
        return created["Id"]

    def _transition(
        self, path: str, container_id: str, params: dict[str, Any] | None = None, **kwargs: Any
    ) -> Transition:
        # docker-py hides 304 behind a successful return, so inspect the raw response.
        try:
            response = self.api._post(self.api._url(path, container_id), params=params, **kwargs)
            if response.status_code == NOT_MODIFIED:
                return Transition.ALREADY_IN_STATE
            self.api._raise_for_status(response)
        except (DockerException, requests.RequestException) as e:
            if getattr(e, "status_code", None) == NOT_MODIFIED:
                return Transition.ALREADY_IN_STATE
            raise self._translate(e) from e
        return Transition.CHANGED

    def start(self, container_id: str) -> Transition:
        return self._transition("/containers/{0}/start", container_id)

    def stop(self, container_id: str) -> Transition:
        # The HTTP read has to outlast the grace period, as in APIClient.stop.
        timeout = self.api.timeout + self.stop_timeout if self.api.timeout is not None else None
        return self._transition("/containers/{0}/stop", container_id, params={"t": self.stop_timeout}, timeout=timeout)

    def remove(self, container_id: str) -> None:
        try:
            self.api.remove_container(container_id)
        except (DockerException, requests.RequestException) as e:
            raise self._translate(e) from e


def _tls_config(options: DockerOptions) -> TLSConfig | bool:
    if not options.uses_tls:
        return False
    client_cert = (options.cert, options.key) if options.cert and options.key else None
    return TLSConfig(client_cert=client_cert, ca_cert=options.ca, verify=options.tls_verify)


def connect(options: DockerOptions | None = None, settings: AppSettings | None = None) -> DockerRuntime:
    """Builds a runtime client from the services file options, then settings, then the Docker environment."""
    settings = settings or get_settings()
    options = options or DockerOptions()

    kwargs: dict[str, Any] = {"version": options.version or "auto"}
    if options.timeout:
        kwargs["timeout"] = options.timeout

    base_url = options.resolved_base_url() or settings.DOCKER_BASE_URL
    try:
        if base_url:
            api = docker.APIClient(base_url=base_url, tls=_tls_config(options), **kwargs)
        else:
            api = docker.from_env(**kwargs).api
    except DockerException as e:
        raise RuntimeAPIError(f"Could not connect to Docker daemon: {e}") from e

    logger.debug("connected to %s (API %s)", api.base_url, api.api_version)
    return DockerRuntime(api, stop_timeout=settings.STOP_TIMEOUT)
