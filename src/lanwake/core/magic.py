"""Wake-on-LAN magic packet construction and transmission."""

import ipaddress
import logging
import re
import socket
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from wakeonlan import create_magic_packet

from lanwake.core.result import (
    Err,
    Ok,
    ResolutionError,
    Result,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_WOL_PORT = 9
PACKET_SIZE = 102

_MAC_RE = re.compile(r"^([0-9A-F]{2}-){5}[0-9A-F]{2}$")
_BARE_MAC_RE = re.compile(r"^[0-9A-F]{12}$")
_INT_RE = re.compile(r"^[+-]?\d+$")

_ALL_ONES = 0xFFFFFFFF


@dataclass
class DebugTrace:
    """Human-readable record of every decision taken while sending a packet."""

    lines: list[str] = field(default_factory=list)

    def add(self, msg: str, *args: Any) -> None:
        line = msg % args if args else msg
        self.lines.append(line)
        logger.debug(line)


@dataclass(frozen=True)
class BroadcastTarget:
    """Directed broadcast destination derived from an IPv4 address and prefix length."""

    netmask: str
    network_address: str
    network_size: int
    broadcast_address: str


@dataclass(frozen=True)
class SentPacket:
    mac: str
    address: str
    port: int
    size: int


def normalize_mac(mac: str) -> Result[str]:
    """
    Normalize a MAC address to ``AA-BB-CC-DD-EE-FF`` form.

    Accepts ``:`` or ``-`` separators, or a bare run of 12 hex digits.

    Returns:
        Ok(normalized) or Err(ValidationError)
    """
    normalized = str(mac).strip().upper().replace(":", "-")
    if _BARE_MAC_RE.match(normalized):
        normalized = "-".join(normalized[i : i + 2] for i in range(0, 12, 2))
    if len(normalized) != 17 or not _MAC_RE.match(normalized):
        return Err(ValidationError(f"Invalid MAC-address: {normalized}"))
    return Ok(normalized)


def build_magic_packet(mac: str) -> bytes:
    """Build the 102-byte payload (6 x 0xFF + 16 x MAC) for a normalized MAC."""
    return create_magic_packet(mac)


def _parse_int(value: Union[str, int]) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not _INT_RE.fullmatch(text):
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _is_empty(value: Union[str, int, None]) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def parse_cidr(cidr: Union[str, int, None]) -> Result[Optional[int]]:
    """Validate an optional CIDR prefix length. Empty means no broadcast derivation."""
    if _is_empty(cidr):
        return Ok(None)
    value = _parse_int(cidr)  # type: ignore[arg-type]
    if value is None or not 0 <= value <= 32:
        return Err(
            ValidationError(
                f"Invalid subnet size of {cidr}. CIDR must be between 0 and 32."
            )
        )
    return Ok(value)


def parse_port(
    port: Union[str, int, None], default: int = DEFAULT_WOL_PORT
) -> Result[int]:
    """Validate an optional UDP port; empty falls back to ``default``."""
    if _is_empty(port):
        return Ok(default)
    value = _parse_int(port)  # type: ignore[arg-type]
    if value is None or not 1 <= value <= 65535:
        return Err(
            ValidationError(
                f"Invalid port value of {port}. Port must be between 1 and 65535."
            )
        )
    return Ok(value)


def broadcast_target(ip: str, cidr: int) -> BroadcastTarget:
    """
    Compute the directed broadcast address of the subnet ``ip/cidr``.

    Uses explicit unsigned 32-bit arithmetic so that ``cidr=0`` yields a zero
    mask (and 255.255.255.255 as broadcast) on every platform.

    Args:
        ip: Dotted-quad IPv4 address
        cidr: Prefix length, 0..32

    Returns:
        BroadcastTarget with netmask, network address, size and broadcast address
    """
    if not 0 <= cidr <= 32:
        raise ValueError(f"cidr out of range: {cidr}")
    mask = (_ALL_ONES << (32 - cidr)) & _ALL_ONES
    network = int(ipaddress.IPv4Address(ip)) & mask
    size = 2 ** (32 - cidr)
    broadcast = network + size - 1
    return BroadcastTarget(
        netmask=str(ipaddress.IPv4Address(mask)),
        network_address=str(ipaddress.IPv4Address(network)),
        network_size=size,
        broadcast_address=str(ipaddress.IPv4Address(broadcast)),
    )


def _is_ipv4(host: str) -> bool:
    try:
        ipaddress.IPv4Address(host)
    except ValueError:
        return False
    return True


def resolve_address(host: str, trace: DebugTrace) -> Result[str]:
    """Return ``host`` if it is an IPv4 literal, otherwise its forward DNS lookup."""
    if _is_ipv4(host):
        return Ok(host)
    if not host:
        return Err(ResolutionError('Cannot resolve hostname "".'))
    trace.add("Resolving host: %s", host)
    try:
        resolved = socket.gethostbyname(host)
    except (OSError, UnicodeError) as exc:
        logger.debug("Lookup of %r failed: %s", host, exc)
        resolved = host
    if resolved == host:
        return Err(ResolutionError(f'Cannot resolve hostname "{host}".'))
    trace.add("Resolved %s to %s", host, resolved)
    return Ok(resolved)


def _describe(exc: OSError) -> str:
    if exc.errno is not None:
        return f"{exc.errno} - {exc.strerror}"
    return str(exc)


def _udp_socket() -> socket.socket:
    return socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)


def transmit(packet: bytes, address: str, port: int, trace: DebugTrace) -> Result[None]:
    """Send ``packet`` once over a broadcast-enabled UDP socket."""
    trace.add("Creating UDP socket (AF_INET, SOCK_DGRAM, IPPROTO_UDP)")
    try:
        sock = _udp_socket()
    except OSError as exc:
        return Err(TransportError(f"Cannot create UDP socket: {_describe(exc)}"))

    with sock:
        trace.add("Enabling SO_BROADCAST on socket")
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        except OSError as exc:
            return Err(TransportError(f"Cannot enable broadcast: {_describe(exc)}"))

        trace.add("Sending magic packet to %s:%d", address, port)
        try:
            sock.sendto(packet, (address, port))
        except OSError as exc:
            return Err(TransportError(f"Cannot send magic packet: {_describe(exc)}"))
    return Ok(None)


def send_wake(
    mac: str,
    host: str,
    cidr: Union[str, int, None] = "",
    port: Union[str, int, None] = "",
    *,
    default_port: int = DEFAULT_WOL_PORT,
    trace: Optional[DebugTrace] = None,
) -> Result[SentPacket]:
    """
    Validate the inputs and send one Wake-on-LAN magic packet.

    Workflow:
        1. Normalize and validate the MAC address
        2. Build the magic packet
        3. Resolve the target host to an IPv4 address
        4. Replace the address with the subnet broadcast when ``cidr`` is set
        5. Validate the port
        6. Send once over UDP with SO_BROADCAST enabled

    The first failing step ends the pipeline; nothing is sent after an error.

    Args:
        mac: MAC address of the host to wake
        host: Hostname or IPv4 address of the host (or its subnet)
        cidr: Optional prefix length; when set the subnet broadcast is targeted
        port: Optional UDP port
        default_port: Port used when ``port`` is empty
        trace: Optional DebugTrace collecting a line per decision point

    Returns:
        Ok(SentPacket) or Err(ValidationError | ResolutionError | TransportError)
    """
    if trace is None:
        trace = DebugTrace()
    trace.add("send_wake(%r, %r, %r, %r)", mac, host, cidr, port)

    trace.add("Validating MAC address: %s", mac)
    mac_result = normalize_mac(mac)
    if isinstance(mac_result, Err):
        return _fail(mac_result, trace)
    normalized = mac_result.value
    trace.add("MAC = %s", normalized)

    trace.add("Creating the magic packet")
    packet = build_magic_packet(normalized)

    address_result = resolve_address(str(host).strip(), trace)
    if isinstance(address_result, Err):
        return _fail(address_result, trace)
    address = address_result.value

    cidr_result = parse_cidr(cidr)
    if isinstance(cidr_result, Err):
        return _fail(cidr_result, trace)
    if cidr_result.value is not None:
        trace.add("CIDR is set to %d. Will use broadcast address.", cidr_result.value)
        target = broadcast_target(address, cidr_result.value)
        trace.add("netmask = %s", target.netmask)
        trace.add("network address = %s", target.network_address)
        trace.add("network size = %d", target.network_size)
        trace.add("broadcast address = %s", target.broadcast_address)
        address = target.broadcast_address

    port_result = parse_port(port, default=default_port)
    if isinstance(port_result, Err):
        return _fail(port_result, trace)
    udp_port = port_result.value

    sent = transmit(packet, address, udp_port, trace)
    if isinstance(sent, Err):
        return _fail(sent, trace)

    trace.add("Done.")
    logger.info("Magic packet for %s sent to %s:%d", normalized, address, udp_port)
    return Ok(SentPacket(mac=normalized, address=address, port=udp_port, size=len(packet)))


def _fail(result: Err, trace: DebugTrace) -> Err:
    trace.add("Error: %s", result.error.message)
    logger.warning("Wake-on-LAN failed: %s", result.error.message)
    return result
