import logging
import socket

import psutil

logger = logging.getLogger(__name__)

DEFAULT_INTERFACES = ("eth0", "en0")


def find_host_ip(interfaces=DEFAULT_INTERFACES) -> str | None:
    """IPv4 address of the first preferred interface present on this host, if any."""
    addrs = psutil.net_if_addrs()
    for name in interfaces:
        if name not in addrs:
            continue
        for addr in addrs[name]:
            if addr.family == socket.AF_INET:
                return addr.address
        # Only the first interface that exists is considered.
        return None
    return None


def add_host_ip(env: list[str], interfaces=DEFAULT_INTERFACES, variable: str = "DOCKER_HOST_IP") -> str | None:
    """Appends `<variable>=<ip>` to `env` in place. A host without a usable address is left untouched."""
    host_ip = find_host_ip(interfaces)
    if host_ip:
        logger.debug("Host IP for container env: %s", host_ip)
        env.append(f"{variable}={host_ip}")
    return host_ip
