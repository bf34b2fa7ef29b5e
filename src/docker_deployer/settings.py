from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration loaded from Environment Variables or .env file.
    Values in the services file's `docker` block take precedence over DOCKER_BASE_URL.
    """

    SERVICES_FILE: str | None = None  # Path or http(s) URL used when no CLI argument is given
    DOCKER_BASE_URL: str | None = None
    DEBUG: bool = False

    HOST_IP_INTERFACES: list[str] = ["eth0", "en0"]
    HOST_IP_VARIABLE: str = "DOCKER_HOST_IP"

    RESTART_POLICY: str = "always"
    RESTART_MAX_RETRIES: int = 5
    STOP_TIMEOUT: int = 10
    CONFIG_FETCH_TIMEOUT: float = 30.0

    model_config = SettingsConfigDict(env_prefix="DEPLOYER_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> AppSettings:
    """Process-wide settings; call get_settings.cache_clear() after changing DEPLOYER_* variables."""
    return AppSettings()
