"""Server tunnels: NAT-forwarding interfaces that hand out peer configs."""

import ipaddress
import urllib.request
from collections.abc import Iterable
from ipaddress import IPv4Address

from pydantic import BaseModel, ConfigDict, Field

from ..common.exceptions import ConfigurationError
from ..common.logging import get_logger
from ..document import ConfigDocument
from ..document.draft import INTERFACE_SECTION, PEER_SECTION
from ..document.lines import KeyValueLine, SectionHeader

logger = get_logger(__name__)

DEFAULT_LISTEN_PORT = 51820
DEFAULT_SERVER_ADDRESS = "10.0.0.1/32"

PUBLIC_IP_URLS = ("https://api.ipify.org", "https://checkip.amazonaws.com")

ENDPOINT_PLACEHOLDER = "__ENDPOINT__"
DNS_BLOCK_PLACEHOLDER = "__DNS_BLOCK__"

# Keys that only wg-quick understands; ``wg syncconf`` rejects them
WG_QUICK_ONLY_KEYS = frozenset(
    key.casefold()
    for key in (
        "Address",
        "DNS",
        "MTU",
        "Table",
        "PreUp",
        "PostUp",
        "PreDown",
        "PostDown",
        "SaveConfig",
    )
)

_SERVER_MARKER_KEYS = frozenset(
    key.casefold() for key in ("PostUp", "PostDown", "SaveConfig")
)


def parse_listen_port(value: str) -> int:
    """Parse a UDP listen port.

    Raises:
        ConfigurationError: If the value is not a port number
    """
    try:
        port = int(value.strip())
    except ValueError:
        port = 0
    if not 1 <= port <= 65535:
        raise ConfigurationError("Listen port must be a valid number")
    return port


def parse_ipv4(value: str) -> IPv4Address | None:
    """IPv4 part of ``10.0.0.1/24`` style values, or None for anything else."""
    host = value.strip().split("/", 1)[0]
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return None
    return address if isinstance(address, IPv4Address) else None


class NewServerDraft(BaseModel):
    """Fields collected for a new server tunnel."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = ""
    private_key: str = ""
    address: str = ""
    listen_port: str = str(DEFAULT_LISTEN_PORT)
    egress_interface: str = Field(
        default="", description="Interface that forwarded traffic leaves through"
    )

    def missing_fields(self) -> list[str]:
        """Required fields that are still empty."""
        required = {
            "private_key": self.private_key,
            "address": self.address,
            "listen_port": self.listen_port,
            "egress_interface": self.egress_interface,
        }
        return [name for name, value in required.items() if not value]


def render_server_config(draft: NewServerDraft) -> str:
    """Render the configuration text for a new server tunnel.

    The interface forwards peer traffic and masquerades it out of
    ``egress_interface``. ``SaveConfig`` lets wg-quick keep peers added
    at runtime.
    """
    port = parse_listen_port(draft.listen_port)
    egress = draft.egress_interface
    post_up = (
        "iptables -A FORWARD -i %i -j ACCEPT; iptables -A FORWARD -o %i -j ACCEPT; "
        f"iptables -t nat -A POSTROUTING -o {egress} -j MASQUERADE"
    )
    post_down = (
        "iptables -D FORWARD -i %i -j ACCEPT; iptables -D FORWARD -o %i -j ACCEPT; "
        f"iptables -t nat -D POSTROUTING -o {egress} -j MASQUERADE"
    )
    lines = [
        "[Interface]",
        f"Address = {draft.address}",
        "SaveConfig = true",
        f"PostUp = {post_up}",
        f"PostDown = {post_down}",
        f"ListenPort = {port}",
        f"PrivateKey = {draft.private_key}",
    ]
    return "\n".join(lines) + "\n"


def interface_values(document: ConfigDocument, key: str) -> list[str]:
    """Values of ``key`` in the ``[Interface]`` section, in file order."""
    return [
        line.value
        for scoped, line in document.key_values()
        if scoped.in_section(INTERFACE_SECTION) and line.matches(key)
    ]


def interface_addresses(document: ConfigDocument) -> list[str]:
    """All ``Address`` entries of the interface, split on commas."""
    return [
        part.strip()
        for value in interface_values(document, "Address")
        for part in value.split(",")
        if part.strip()
    ]


def peer_allowed_ips(document: ConfigDocument) -> list[str]:
    """``AllowedIPs`` entries of every ``[Peer]`` section."""
    return [
        part.strip()
        for scoped, line in document.key_values()
        if scoped.in_section(PEER_SECTION) and line.matches("AllowedIPs")
        for part in line.value.split(",")
        if part.strip()
    ]


def is_server_config(document: ConfigDocument) -> bool:
    """True when the interface has PostUp, PostDown or SaveConfig lines."""
    return any(
        scoped.in_section(INTERFACE_SECTION)
        and line.key.casefold() in _SERVER_MARKER_KEYS
        for scoped, line in document.key_values()
    )


def next_peer_address(
    base: IPv4Address, used: Iterable[IPv4Address]
) -> IPv4Address | None:
    """First free host address after ``base`` within its /24.

    Candidates wrap around inside the /24 and skip ``.0`` and ``.255``.
    """
    taken = set(used)
    network_part = int(base) & 0xFFFFFF00
    last_octet = int(base) & 0xFF
    for step in range(1, 254):
        octet = (last_octet + step) % 256
        if octet in (0, 255):
            continue
        candidate = IPv4Address(network_part | octet)
        if candidate not in taken:
            return candidate
    return None


def suggest_server_address(used: Iterable[IPv4Address]) -> str:
    """First ``10.0.N.1/32`` not already used by a local tunnel."""
    taken = set(used)
    for subnet in range(256):
        candidate = IPv4Address(f"10.0.{subnet}.1")
        if candidate not in taken:
            return f"{candidate}/32"
    return DEFAULT_SERVER_ADDRESS


def parse_default_route_dev(output: str) -> str | None:
    """Device named by the first ``... dev <name> ...`` route line."""
    for line in output.splitlines():
        parts = line.split()
        if "dev" in parts:
            index = parts.index("dev")
            if index + 1 < len(parts):
                return parts[index + 1]
    return None


def strip_config(document: ConfigDocument) -> str:
    """Reduce a wg-quick config to what ``wg syncconf`` accepts.

    Comments, blank lines and wg-quick-only interface keys are dropped.
    """
    lines: list[str] = []
    section: str | None = None
    for line in document.lines:
        if isinstance(line, SectionHeader):
            section = line.name
            lines.append(f"[{line.name}]")
        elif isinstance(line, KeyValueLine):
            in_interface = (
                section is not None
                and section.casefold() == INTERFACE_SECTION.casefold()
            )
            if in_interface and line.key.casefold() in WG_QUICK_ONLY_KEYS:
                continue
            lines.append(f"{line.key} = {line.value}")
    return "\n".join(lines) + "\n"


def detect_public_ip(
    urls: Iterable[str] = PUBLIC_IP_URLS, timeout: float = 4.0
) -> str | None:
    """Ask public echo services for this host's address.

    Returns:
        The first valid IP address reported, or None when every service
        fails or answers with something that is not an address
    """
    for url in urls:
        try:
            with urllib.request.urlopen(url, timeout=timeout) as response:
                answer = response.read().decode("utf-8", "replace").strip()
        except OSError as e:
            logger.debug("Public IP lookup failed", url=url, error=str(e))
            continue
        try:
            return str(ipaddress.ip_address(answer))
        except ValueError:
            logger.debug("Public IP lookup returned garbage", url=url)
    return None


class ServerPeerConfig(BaseModel):
    """A peer just added to a server tunnel, with its client config template."""

    model_config = ConfigDict(frozen=True)

    tunnel: str
    peer_address: str
    peer_public_key: str
    listen_port: int
    client_config_template: str
    suggested_filename: str

    def render_client_config(self, endpoint_host: str, dns: str = "") -> str:
        """Fill the template with the server's reachable host and optional DNS."""
        host = endpoint_host.strip()
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        dns_block = f"DNS = {dns.strip()}\n" if dns.strip() else ""
        return self.client_config_template.replace(
            ENDPOINT_PLACEHOLDER, f"{host}:{self.listen_port}"
        ).replace(DNS_BLOCK_PLACEHOLDER, dns_block)


def client_config_template(
    peer_private_key: str, peer_address: str, server_public_key: str
) -> str:
    return (
        "[Interface]\n"
        f"PrivateKey = {peer_private_key}\n"
        f"Address = {peer_address}\n"
        f"{DNS_BLOCK_PLACEHOLDER}\n"
        "[Peer]\n"
        f"PublicKey = {server_public_key}\n"
        "AllowedIPs = 0.0.0.0/0, ::/0\n"
        f"Endpoint = {ENDPOINT_PLACEHOLDER}\n"
    )
