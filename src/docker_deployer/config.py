import logging
from pathlib import Path
from urllib.parse import urlparse

import requests
import yaml
from pydantic import ValidationError

from .errors import ConfigurationError
from .models import DeployConfig
from .settings import get_settings

logger = logging.getLogger(__name__)


def _fetch(url: str, timeout: float) -> dict:
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise ConfigurationError(f"Could not fetch {url}: {e}") from e

    if resp.status_code != 200:
        raise ConfigurationError(f"Invalid response from {url} (HTTP {resp.status_code}): {resp.text}")
    try:
        return resp.json()
    except ValueError as e:
        raise ConfigurationError(f"Error parsing {url}: {e}") from e


def _read(path: Path) -> dict:
    if not path.exists():
        raise ConfigurationError(f"{path} not found")
    # safe_load reads JSON as well as YAML.
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing {path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Error reading {path}: {e}") from e


def load_config(source: str, timeout: float | None = None) -> DeployConfig:
    """Loads the services document from a local file or an http(s) URL."""
    if urlparse(source).scheme in ("http", "https"):
        raw = _fetch(source, timeout or get_settings().CONFIG_FETCH_TIMEOUT)
    else:
        raw = _read(Path(source))

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{source} must contain a mapping with 'docker' and 'services'")
    logger.debug("cfg %s", raw)

    try:
        return DeployConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {source}: {e}") from e
