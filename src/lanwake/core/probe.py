"""Host reachability probe over well-known TCP service ports."""

import logging
import re
import socket
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Tried in order; the first port accepting a connection wins.
HOST_CHECK_PORTS: tuple[tuple[int, str], ...] = (
    (3389, "RDP"),
    (22, "SSH"),
    (80, "HTTP"),
    (443, "HTTPS"),
    (5938, "TeamViewer"),
)
DEFAULT_TIMEOUT = 3.0
MAX_HOST_LENGTH = 253

_HOST_RE = re.compile(r"^[a-zA-Z0-9.\-:]+$")


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a reachability check."""

    is_up: bool
    info: Optional[str] = None
    err_code: Optional[int] = None
    err_str: Optional[str] = None
    error_port: Optional[int] = None


def is_checkable_host(host: str) -> bool:
    """Allow-list for probe targets: alphanumerics, dots, hyphens and colons only."""
    return bool(host) and len(host) <= MAX_HOST_LENGTH and bool(_HOST_RE.fullmatch(host))


def check_host(
    host: str,
    ports: tuple[tuple[int, str], ...] = HOST_CHECK_PORTS,
    timeout: float = DEFAULT_TIMEOUT,
) -> ProbeResult:
    """
    Probe a host by opening a TCP connection to each port in turn.

    Blocks for up to ``timeout`` seconds per port. Callers are expected to
    have checked ``host`` with is_checkable_host().

    Args:
        host: Hostname or IP address
        ports: Ordered (port, label) pairs to try
        timeout: Connect timeout per port in seconds

    Returns:
        ProbeResult for the first open port, or the error of the last attempt
    """
    err_code: Optional[int] = None
    err_str: Optional[str] = None
    error_port: Optional[int] = None

    for port, label in ports:
        try:
            with socket.create_connection((host, port), timeout=timeout):
                logger.debug("%s is up on %d (%s)", host, port, label)
                return ProbeResult(is_up=True, info=f"{port} ({label})")
        except OSError as exc:
            err_code = exc.errno if exc.errno is not None else 0
            err_str = exc.strerror or str(exc)
            error_port = port
            logger.debug("%s:%d not reachable: %s", host, port, err_str)

    logger.info("%s is down (last error on port %s: %s)", host, error_port, err_str)
    return ProbeResult(is_up=False, err_code=err_code, err_str=err_str, error_port=error_port)
