"""Tunnel registry backed by the configuration directory."""

from ..common.exceptions import DiscoveryError, ParseError, TunnelNotFoundError
from ..common.logging import get_logger
from ..document import ConfigDocument, extract_draft
from ..settings import ManagerSettings
from .models import InterfaceSnapshot, TunnelRecord
from .probe import InterfaceStateProbe

logger = get_logger(__name__)

FULL_TUNNEL_ROUTES = ("0.0.0.0/0", "::/0")


class TunnelRegistry:
    """Discovers tunnels and attaches their live state.

    Nothing is cached between calls: every ``refresh`` rebuilds the record
    list from the directory and the kernel.
    """

    def __init__(
        self,
        settings: ManagerSettings | None = None,
        probe: InterfaceStateProbe | None = None,
    ):
        """Initialize tunnel registry.

        Args:
            settings: Directory and tool locations
            probe: Live state probe (built from settings if None)
        """
        self.settings = settings or ManagerSettings()
        self.probe = probe or InterfaceStateProbe(self.settings)

    def discover(self) -> list[TunnelRecord]:
        """Scan the configuration directory for tunnel files.

        Returns:
            Records sorted by name, all marked inactive

        Raises:
            DiscoveryError: If the directory cannot be read
        """
        config_dir = self.settings.config_dir
        try:
            entries = list(config_dir.iterdir())
        except OSError as e:
            logger.error(
                "Cannot scan config directory", path=str(config_dir), error=str(e)
            )
            raise DiscoveryError(f"Cannot read {config_dir}: {e}") from e

        records = [
            TunnelRecord(name=entry.stem, config_path=entry)
            for entry in entries
            if entry.suffix == self.settings.extension and entry.is_file()
        ]
        records.sort(key=lambda record: record.name)
        logger.debug("Discovered tunnels", count=len(records))
        return records

    def refresh_status(
        self, record: TunnelRecord, with_snapshot: bool = False
    ) -> TunnelRecord:
        """Return ``record`` with ``active`` and optionally its snapshot refreshed."""
        active = self.probe.is_active(record.name)
        snapshot = None
        if active and with_snapshot:
            snapshot = self._with_configured_dns(
                record, self.probe.snapshot(record.name)
            )
        return record.with_status(active, snapshot)

    def refresh(self, with_snapshot: bool = True) -> list[TunnelRecord]:
        """Discover all tunnels and query each one's live state."""
        return [
            self.refresh_status(record, with_snapshot=with_snapshot)
            for record in self.discover()
        ]

    def get(self, name: str, with_snapshot: bool = False) -> TunnelRecord:
        """Look up a single tunnel by name.

        Raises:
            TunnelNotFoundError: If no configuration file backs ``name``
        """
        path = self.settings.config_path_for(name)
        if not path.is_file():
            raise TunnelNotFoundError(f"Tunnel '{name}' not found")
        record = TunnelRecord(name=name, config_path=path)
        return self.refresh_status(record, with_snapshot=with_snapshot)

    def is_full_tunnel(self, record: TunnelRecord) -> bool:
        """True when the tunnel routes all traffic (a default route in AllowedIPs)."""
        try:
            document = ConfigDocument.from_file(record.config_path)
        except ParseError:
            return False
        for _, line in document.key_values():
            if line.matches("AllowedIPs"):
                routes = [part.strip() for part in line.value.split(",")]
                if any(route in FULL_TUNNEL_ROUTES for route in routes):
                    return True
        return False

    def _with_configured_dns(
        self, record: TunnelRecord, snapshot: InterfaceSnapshot
    ) -> InterfaceSnapshot:
        # The kernel does not know about DNS; it only lives in the file
        try:
            draft = extract_draft(ConfigDocument.from_file(record.config_path))
        except ParseError:
            return snapshot
        dns = [server.strip() for server in draft.dns.split(",") if server.strip()]
        return snapshot.model_copy(update={"dns": dns})
