import logging

from .models import Service
from .runtime import RuntimeContainer

logger = logging.getLogger(__name__)


class ContainerResolver:
    """Maps a declared service to the runtime container carrying its name."""

    def __init__(self, runtime):
        self.runtime = runtime

    def resolve(self, service: Service) -> RuntimeContainer | None:
        # Stopped containers count: they still hold the name.
        containers = self.runtime.list_containers(all=True)
        # Names are unique in the runtime, so the first match is the only one.
        match = next((c for c in containers if c.is_named(service.name)), None)
        logger.debug("resolved %s -> %s", service.name, match.id if match else None)
        return match
