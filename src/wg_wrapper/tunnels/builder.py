"""Creating, importing and deleting tunnel configuration files.

Besides client tunnels this covers server tunnels, which forward peer
traffic through NAT, and adding peers to them.
"""

from ipaddress import IPv4Address
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from ..common.exceptions import (
    ConfigurationError,
    ControlError,
    DiscoveryError,
    ParseError,
    TunnelNotFoundError,
    WriteError,
)
from ..common.logging import get_logger
from ..common.process import run_checked
from ..common.utils import (
    expand_path,
    normalize_list,
    validate_interface_name,
    write_atomic,
)
from ..document import ConfigDocument
from ..settings import ManagerSettings
from .controller import TunnelController
from .registry import TunnelRegistry
from .server import (
    NewServerDraft,
    ServerPeerConfig,
    client_config_template,
    interface_addresses,
    interface_values,
    is_server_config,
    next_peer_address,
    parse_ipv4,
    parse_listen_port,
    peer_allowed_ips,
    render_server_config,
    suggest_server_address,
)

logger = get_logger(__name__)


class NewTunnelDraft(BaseModel):
    """Fields collected for a new client tunnel."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = ""
    private_key: str = ""
    address: str = ""
    dns: str = ""
    peer_public_key: str = ""
    allowed_ips: str = ""
    endpoint: str = ""

    def missing_fields(self) -> list[str]:
        """Required fields that are still empty."""
        required = {
            "private_key": self.private_key,
            "address": self.address,
            "peer_public_key": self.peer_public_key,
            "allowed_ips": normalize_list(self.allowed_ips),
            "endpoint": self.endpoint,
        }
        return [name for name, value in required.items() if not value]


def render_tunnel_config(draft: NewTunnelDraft) -> str:
    """Render the configuration text for a new client tunnel."""
    lines = [
        "[Interface]",
        f"PrivateKey = {draft.private_key}",
        f"Address = {draft.address}",
    ]
    dns = normalize_list(draft.dns)
    if dns:
        lines.append(f"DNS = {dns}")
    lines += [
        "",
        "[Peer]",
        f"PublicKey = {draft.peer_public_key}",
        f"AllowedIPs = {normalize_list(draft.allowed_ips)}",
        f"Endpoint = {draft.endpoint}",
    ]
    return "\n".join(lines) + "\n"


class TunnelBuilder:
    """Adds and removes tunnel configuration files."""

    def __init__(
        self,
        settings: ManagerSettings | None = None,
        controller: TunnelController | None = None,
    ):
        self.settings = settings or ManagerSettings()
        self.controller = controller or TunnelController(self.settings)

    def generate_keypair(self) -> tuple[str, str]:
        """Return ``(private_key, public_key)`` generated by the status tool."""
        private_key = run_checked(
            [self.settings.wg_binary, "genkey"], "wg genkey failed"
        ).stdout.strip()
        if not private_key:
            raise ControlError("wg genkey returned an empty key")
        return private_key, self.derive_public_key(private_key)

    def derive_public_key(self, private_key: str) -> str:
        public_key = run_checked(
            [self.settings.wg_binary, "pubkey"],
            "wg pubkey failed",
            input_text=private_key + "\n",
        ).stdout.strip()
        if not public_key:
            raise ControlError("wg pubkey returned an empty key")
        return public_key

    def create_tunnel(self, draft: NewTunnelDraft) -> str:
        """Write a new tunnel configuration.

        Returns:
            Name of the created tunnel

        Raises:
            ConfigurationError: If the name is invalid, fields are missing or
                the tunnel already exists
            WriteError: If the file cannot be written
        """
        name = validate_interface_name(draft.name)
        missing = draft.missing_fields()
        if missing:
            raise ConfigurationError(f"Missing required fields: {', '.join(missing)}")

        path = self._prepare_destination(name)
        write_atomic(path, render_tunnel_config(draft), self.settings.file_mode)
        logger.info("Tunnel created", tunnel=name, path=str(path))
        return name

    def import_tunnel(self, source_path: str) -> str:
        """Copy an existing configuration file into the configuration directory.

        Returns:
            Name of the imported tunnel

        Raises:
            ConfigurationError: If the source is missing, has the wrong
                extension or the tunnel already exists
            WriteError: If the copy fails
        """
        source = expand_path(source_path)
        if not source.is_file():
            raise ConfigurationError("Source file does not exist")
        if source.suffix != self.settings.extension:
            raise ConfigurationError(
                f"File must have {self.settings.extension} extension"
            )

        name = validate_interface_name(source.stem)
        dest = self._prepare_destination(name)
        try:
            with open(source, encoding="utf-8", newline="") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Cannot read {source}: {e}") from e
        write_atomic(dest, text, self.settings.file_mode)
        logger.info("Tunnel imported", tunnel=name, source=str(source))
        return name

    def create_server_tunnel(self, draft: NewServerDraft) -> str:
        """Write a new server tunnel configuration.

        Returns:
            Name of the created tunnel

        Raises:
            ConfigurationError: If the name or port is invalid, fields are
                missing or the tunnel already exists
            WriteError: If the file cannot be written
        """
        name = validate_interface_name(draft.name)
        missing = draft.missing_fields()
        if missing:
            raise ConfigurationError(f"Missing required fields: {', '.join(missing)}")

        content = render_server_config(draft)
        path = self._prepare_destination(name)
        write_atomic(path, content, self.settings.file_mode)
        logger.info("Server tunnel created", tunnel=name, path=str(path))
        return name

    def suggest_server_address(self) -> str:
        """Server address on a 10.0.N.0 subnet no local tunnel uses yet."""
        used: list[IPv4Address] = []
        registry = TunnelRegistry(self.settings, self.controller.probe)
        try:
            records = registry.discover()
        except DiscoveryError:
            records = []
        for record in records:
            try:
                document = ConfigDocument.from_file(record.config_path)
            except ParseError:
                continue
            for address in interface_addresses(document):
                ip = parse_ipv4(address)
                if ip is not None:
                    used.append(ip)
        return suggest_server_address(used)

    def add_server_peer(self, name: str) -> ServerPeerConfig:
        """Append a new ``[Peer]`` to a server tunnel.

        The peer gets the next free address in the server's /24 and a
        fresh key pair. The file is written first; a running interface is
        then updated in place with ``wg syncconf``.

        Returns:
            The new peer and its client config template

        Raises:
            TunnelNotFoundError: If the tunnel does not exist
            ConfigurationError: If the tunnel is not a usable server config
            ControlError: If key generation or the live update fails
            ParseError, WriteError: If the file cannot be read or written
        """
        path = self.settings.config_path_for(name)
        if not path.is_file():
            raise TunnelNotFoundError(f"Tunnel '{name}' not found")
        document = ConfigDocument.from_file(path)
        if not is_server_config(document):
            raise ConfigurationError(f"Tunnel '{name}' is not a server config")

        base = next(
            (ip for ip in map(parse_ipv4, interface_addresses(document)) if ip),
            None,
        )
        if base is None:
            raise ConfigurationError("Server config has no IPv4 address")
        private_keys = interface_values(document, "PrivateKey")
        if not private_keys or not private_keys[0]:
            raise ConfigurationError("Server config missing PrivateKey")
        ports = interface_values(document, "ListenPort")
        if not ports:
            raise ConfigurationError("Server config missing ListenPort")
        listen_port = parse_listen_port(ports[0])

        used = {base}
        for allowed in peer_allowed_ips(document):
            ip = parse_ipv4(allowed)
            if ip is not None:
                used.add(ip)
        peer_ip = next_peer_address(base, used)
        if peer_ip is None:
            raise ConfigurationError("No available peer address in the server /24")
        peer_address = f"{peer_ip}/32"

        peer_private_key, peer_public_key = self.generate_keypair()
        server_public_key = self.derive_public_key(private_keys[0])

        eol = document.newline
        text = document.render()
        if text and not text.endswith(("\n", "\r")):
            text += eol
        peer_block = [
            "",
            "[Peer]",
            f"PublicKey = {peer_public_key}",
            f"AllowedIPs = {peer_address}",
            "",
        ]
        text += eol.join(peer_block)
        write_atomic(path, text, self.settings.file_mode)
        logger.info("Server peer added", tunnel=name, peer_address=peer_address)

        if self.controller.probe.is_active(name):
            self.controller.sync(name, ConfigDocument.parse(text))

        return ServerPeerConfig(
            tunnel=name,
            peer_address=peer_address,
            peer_public_key=peer_public_key,
            listen_port=listen_port,
            client_config_template=client_config_template(
                peer_private_key, peer_address, server_public_key
            ),
            suggested_filename=f"{name}-peer-{peer_ip}{self.settings.extension}",
        )

    def delete_tunnel(self, name: str, active: bool) -> None:
        """Remove a tunnel, stopping it first if it is up.

        Raises:
            ControlError: If stopping fails; the file is then kept
            WriteError: If the file cannot be removed
        """
        if active:
            self.controller.deactivate(name)
        path = self.settings.config_path_for(name)
        try:
            path.unlink()
        except OSError as e:
            raise WriteError(f"Cannot remove {path}: {e}") from e
        logger.info("Tunnel deleted", tunnel=name)

    def _prepare_destination(self, name: str) -> Path:
        try:
            self.settings.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(f"Cannot create {self.settings.config_dir}: {e}") from e
        path = self.settings.config_path_for(name)
        if path.exists():
            raise ConfigurationError(f"Tunnel '{name}' already exists")
        return path

