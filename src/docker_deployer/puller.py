import logging
from dataclasses import dataclass
from typing import Any

from rich.console import Console

from .errors import ConfigurationError, PullError, RuntimeAPIError
from .models import Service

console = Console()
logger = logging.getLogger(__name__)

UP_TO_DATE_MARKER = "Image is up to date"


@dataclass(frozen=True)
class PullOutcome:
    service: str
    image: str
    fetched: bool


def image_was_fetched(final_status: str) -> bool:
    """Reads the last status line of a pull: anything but 'up to date' means a new image arrived."""
    return UP_TO_DATE_MARKER not in final_status


def validate_service(service: Service) -> None:
    if not service.tag:
        raise ConfigurationError("No service 'tag'", service=service.name)
    if not service.registry:
        raise ConfigurationError("No service 'registry'", service=service.name)


def _event_error(event: dict[str, Any]) -> str | None:
    detail = event.get("errorDetail")
    if detail:
        return detail.get("message") if isinstance(detail, dict) else str(detail)
    return event.get("error")


class ImagePuller:
    """Pulls each service's image in declaration order, one at a time."""

    def __init__(self, runtime):
        self.runtime = runtime
        self.outcomes: list[PullOutcome] = []

    def pull_all(self, services: list[Service]) -> list[PullOutcome]:
        """
        Returns one outcome per service, in order.
        The first failure aborts the remaining pulls and is raised; `outcomes`
        still holds whatever completed before it.
        """
        self.outcomes = []
        # All services are checked up front so a bad entry causes no runtime traffic.
        for service in services:
            validate_service(service)

        for service in services:
            self.outcomes.append(self.pull(service))
        return list(self.outcomes)

    def pull(self, service: Service) -> PullOutcome:
        validate_service(service)
        image = service.image
        console.print(f"[blue]Pulling:[/blue] {image}")

        last: dict[str, Any] | None = None
        try:
            for event in self.runtime.pull(image):
                logger.debug("pull progress %s: %s", image, event)
                error = _event_error(event)
                if error:
                    raise PullError(service.name, image, error)
                console.print(".", end="")
                last = event
        except RuntimeAPIError as e:
            raise PullError(service.name, image, str(e)) from e
        finally:
            console.print()

        if last is None:
            raise PullError(service.name, image, "runtime returned an empty pull response")

        fetched = image_was_fetched(last.get("status", ""))
        logger.debug("pull finished %s: %s", image, last)
        if fetched:
            console.print(f"[green]New image:[/green] {image}")
        else:
            console.print(f"[dim]Up to date: {image}[/dim]")
        return PullOutcome(service=service.name, image=image, fetched=fetched)
