"""Live interface state queried from the OS tools."""

from ..common.logging import get_logger
from ..common.process import run_command
from ..common.utils import parse_bytes
from ..settings import ManagerSettings
from .models import InterfaceSnapshot, PeerSnapshot
from .server import parse_default_route_dev

logger = get_logger(__name__)


def parse_wg_show(output: str) -> InterfaceSnapshot:
    """Parse ``wg show <name>`` output.

    Lines are ``key: value``. ``public key`` and ``listening port`` before
    the first ``peer:`` line describe the interface; every ``peer:`` line
    opens a new peer entry.
    """
    public_key = ""
    listen_port: int | None = None
    peers: list[dict] = []

    for raw_line in output.splitlines():
        key, sep, value = raw_line.strip().partition(":")
        if not sep:
            continue
        value = value.strip()
        current = peers[-1] if peers else None

        if key == "peer":
            peers.append({"public_key": value})
        elif key == "public key" and current is None:
            public_key = value
        elif key == "listening port":
            try:
                listen_port = int(value)
            except ValueError:
                listen_port = None
        elif current is None:
            continue
        elif key == "endpoint":
            current["endpoint"] = value
        elif key == "allowed ips":
            current["allowed_ips"] = [ip for ip in value.split(", ") if ip]
        elif key == "latest handshake":
            current["latest_handshake"] = value
        elif key == "transfer":
            received, _, sent = value.partition(", ")
            current["transfer_rx"] = parse_bytes(received)
            current["transfer_tx"] = parse_bytes(sent)

    return InterfaceSnapshot(
        public_key=public_key,
        listen_port=listen_port,
        peers=[PeerSnapshot(**peer) for peer in peers],
    )


def parse_ip_addresses(output: str) -> list[str]:
    """Extract ``inet``/``inet6`` addresses from ``ip -o address show`` output."""
    addresses = []
    for line in output.splitlines():
        tokens = line.split()
        for position, token in enumerate(tokens[:-1]):
            if token in ("inet", "inet6"):
                addresses.append(tokens[position + 1])
    return addresses


class InterfaceStateProbe:
    """Queries link presence and live WireGuard state for an interface."""

    def __init__(self, settings: ManagerSettings | None = None):
        self.settings = settings or ManagerSettings()

    def is_active(self, name: str) -> bool:
        """True iff the OS reports a live link named ``name``."""
        result = run_command([self.settings.ip_binary, "link", "show", name])
        return result.ok

    def snapshot(self, name: str) -> InterfaceSnapshot:
        """Live snapshot of ``name``; empty when the interface is not up."""
        result = run_command([self.settings.wg_binary, "show", name])
        if not result.ok:
            logger.debug("No live data for interface", tunnel=name)
            return InterfaceSnapshot()

        snapshot = parse_wg_show(result.stdout)
        addr_result = run_command(
            [self.settings.ip_binary, "-o", "address", "show", "dev", name]
        )
        if addr_result.ok:
            snapshot = snapshot.model_copy(
                update={"addresses": parse_ip_addresses(addr_result.stdout)}
            )
        return snapshot

    def default_egress_interface(self) -> str | None:
        """Device carrying the default route, preferring the IPv4 table."""
        for args in (["-4", "route", "show", "default"], ["route", "show", "default"]):
            result = run_command([self.settings.ip_binary, *args])
            if not result.ok:
                continue
            device = parse_default_route_dev(result.stdout)
            if device:
                return device
        return None
