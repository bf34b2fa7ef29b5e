from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Union


class Service(BaseModel):
    """A declared container. `registry` and `tag` are checked by the puller so it can name the service."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., min_length=1, description="Unique identifier, also the runtime container name")
    registry: Optional[str] = Field(None, description="Image repository reference")
    tag: Optional[str] = Field(None, description="Image tag, joined as registry:tag")
    cmd: Optional[Union[str, list[str]]] = Field(None, description="Command override")
    env: list[str] = Field(default_factory=list, description="KEY=VALUE environment entries, in order")
    port: Optional[int] = Field(None, ge=1, le=65535, description="TCP port published identically on host and container")
    links: Optional[list[str]] = Field(None, description="Links to other containers")

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: list[str]) -> list[str]:
        for entry in v:
            if "=" not in entry:
                raise ValueError(f"env entry {entry!r} is not KEY=VALUE")
        return v

    @property
    def image(self) -> str:
        return f"{self.registry}:{self.tag}"


class DockerOptions(BaseModel):
    """Connection options for the runtime endpoint (the `docker` block of the services file)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_url: Optional[str] = Field(None, description="Full endpoint URL, e.g. unix:///var/run/docker.sock")
    socket_path: Optional[str] = Field(None, alias="socketPath")
    host: Optional[str] = None
    port: Optional[int] = Field(None, ge=1, le=65535)
    protocol: Optional[str] = Field(None, pattern="^(http|https|tcp)$")
    version: Optional[str] = Field(None, description="API version, 'auto' when unset")
    timeout: Optional[int] = Field(None, ge=1, description="HTTP timeout in seconds for runtime calls")

    ca: Optional[str] = Field(None, description="Path to the CA certificate")
    cert: Optional[str] = Field(None, description="Path to the client certificate")
    key: Optional[str] = Field(None, description="Path to the client key")
    tls_verify: bool = Field(True, alias="tlsVerify")

    @property
    def uses_tls(self) -> bool:
        return self.protocol == "https" or bool(self.cert and self.key)

    def resolved_base_url(self) -> str | None:
        if self.base_url:
            return self.base_url
        if self.socket_path:
            return f"unix://{self.socket_path}"
        if self.host:
            port = self.port or (2376 if self.uses_tls else 2375)
            scheme = "https" if self.uses_tls else "http"
            return f"{scheme}://{self.host}:{port}"
        return None


class DeployConfig(BaseModel):
    docker: DockerOptions = Field(default_factory=DockerOptions)
    services: list[Service] = Field(default_factory=list)

    @field_validator("services")
    @classmethod
    def validate_unique_names(cls, v: list[Service]) -> list[Service]:
        seen: set[str] = set()
        for service in v:
            if service.name in seen:
                raise ValueError(f"duplicate service name '{service.name}'")
            seen.add(service.name)
        return v
