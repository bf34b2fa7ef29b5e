import logging

from rich.console import Console

from .errors import LifecycleError, RuntimeAPIError
from .models import Service
from .network import add_host_ip
from .puller import ImagePuller, PullOutcome
from .resolver import ContainerResolver
from .runtime import ContainerSpec, RuntimeContainer, Transition
from .settings import AppSettings, get_settings

console = Console()
logger = logging.getLogger(__name__)


class Reconciler:
    """
    Drives each declared service towards a started container built from its current image.

    One pass is: pull every image, recreate the containers whose image changed,
    then make sure every service has a container and issue start on it. Each
    phase walks the services in order and stops at the first failure.
    """

    def __init__(self, runtime, settings: AppSettings | None = None):
        self.runtime = runtime
        self.settings = settings or get_settings()
        self.puller = ImagePuller(runtime)
        self.resolver = ContainerResolver(runtime)

    def reconcile(self, services: list[Service]) -> list[PullOutcome]:
        outcomes = self.puller.pull_all(services)
        fetched = {o.service for o in outcomes if o.fetched}
        changed = [s for s in services if s.name in fetched]
        logger.debug("new images: %s", [s.name for s in changed])

        self.recreate(changed)
        self.ensure_running(services)
        return outcomes

    def _resolve(self, service: Service) -> RuntimeContainer | None:
        try:
            return self.resolver.resolve(service)
        except RuntimeAPIError as e:
            raise LifecycleError(service.name, "find", str(e), e.status_code) from e

    def recreate(self, services: list[Service]) -> None:
        for service in services:
            self.recreate_container(service)

    def recreate_container(self, service: Service) -> str:
        """Stop and remove any existing container, then create a fresh one. Does not start it."""
        console.print(f"[bold yellow]Re-creating container for service:[/bold yellow] {service.name}")
        container = self._resolve(service)

        if container:
            console.print(f"   [dim]Stopping and removing container '{service.name}' ({container.id[:12]})...[/dim]")
            try:
                result = self.runtime.stop(container.id)
            except RuntimeAPIError as e:
                raise LifecycleError(service.name, "stop", str(e), e.status_code) from e
            if result is Transition.ALREADY_IN_STATE:
                logger.debug("%s was already stopped", service.name)

            try:
                self.runtime.remove(container.id)
            except RuntimeAPIError as e:
                raise LifecycleError(service.name, "remove", str(e), e.status_code) from e

        return self.create_container(service)

    def ensure_running(self, services: list[Service]) -> None:
        for service in services:
            self.ensure_container(service)

    def ensure_container(self, service: Service) -> Transition:
        container = self._resolve(service)
        container_id = container.id if container else self.create_container(service)

        try:
            result = self.runtime.start(container_id)
        except RuntimeAPIError as e:
            raise LifecycleError(service.name, "start", str(e), e.status_code) from e

        if result is Transition.ALREADY_IN_STATE:
            console.print(f"[dim green]✓ Running: {service.name}[/dim green]")
        else:
            console.print(f"[bold green]✅ Started: {service.name}[/bold green]")
        return result

    def build_spec(self, service: Service) -> ContainerSpec:
        # The service stays untouched; the host IP goes into a copy of its env.
        env = list(service.env)
        add_host_ip(env, self.settings.HOST_IP_INTERFACES, self.settings.HOST_IP_VARIABLE)

        restart_policy = {"Name": self.settings.RESTART_POLICY}
        if self.settings.RESTART_MAX_RETRIES:
            restart_policy["MaximumRetryCount"] = self.settings.RESTART_MAX_RETRIES

        return ContainerSpec(
            image=service.image,
            name=service.name,
            command=service.cmd,
            env=env,
            port=service.port,
            links=list(service.links) if service.links else None,
            restart_policy=restart_policy,
        )

    def create_container(self, service: Service) -> str:
        spec = self.build_spec(service)
        console.print(f"   [dim]Creating container '{spec.name}' from {spec.image}...[/dim]")
        logger.debug("create spec: %s", spec)
        try:
            return self.runtime.create_container(spec)
        except RuntimeAPIError as e:
            raise LifecycleError(service.name, "create", str(e), e.status_code) from e
