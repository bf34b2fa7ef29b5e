class DeployerError(Exception):
    """Base class for every error that aborts a reconciliation run."""


class ConfigurationError(DeployerError):
    """The configuration source or a declared service is unusable."""

    def __init__(self, message: str, service: str | None = None):
        self.service = service
        super().__init__(f"{message} (service: {service})" if service else message)


class RuntimeAPIError(DeployerError):
    """The container runtime rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class PullError(DeployerError):
    def __init__(self, service: str, image: str, detail: str):
        self.service = service
        self.image = image
        self.detail = detail
        super().__init__(f"Pull of '{image}' failed for service '{service}': {detail}")


class LifecycleError(DeployerError):
    """A stop/remove/create/start failed with something other than a no-op."""

    def __init__(self, service: str, action: str, detail: str, status_code: int | None = None):
        self.service = service
        self.action = action
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"Could not {action} container for service '{service}': {detail}")
