"""High-level session API for interactive front ends.

A ``TunnelSession`` holds the current tunnel list and the last status
message. Front ends render both and call the operations below; every
failure ends up in ``message`` instead of propagating.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from .common.exceptions import (
    DiscoveryError,
    TunnelNotFoundError,
    WGWrapperError,
)
from .common.logging import get_logger
from .document import ConfigDocument, EditableDraft, extract_draft
from .settings import ManagerSettings
from .tunnels import (
    InterfaceStateProbe,
    NewServerDraft,
    NewTunnelDraft,
    ServerPeerConfig,
    TunnelBuilder,
    TunnelController,
    TunnelRecord,
    TunnelRegistry,
    export_tunnels,
)

logger = get_logger(__name__)


class MessageLevel(str, Enum):
    """Status message severity."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class StatusMessage(BaseModel):
    """One-line feedback for the operator."""

    model_config = ConfigDict(frozen=True)

    level: MessageLevel
    text: str

    @classmethod
    def info(cls, text: str) -> "StatusMessage":
        return cls(level=MessageLevel.INFO, text=text)

    @classmethod
    def success(cls, text: str) -> "StatusMessage":
        return cls(level=MessageLevel.SUCCESS, text=text)

    @classmethod
    def error(cls, text: str) -> "StatusMessage":
        return cls(level=MessageLevel.ERROR, text=text)

    @property
    def is_error(self) -> bool:
        return self.level == MessageLevel.ERROR


class TunnelSession:
    """Single-operator session over the configuration directory.

    The tunnel list is rebuilt wholesale after every mutating operation, so
    reads always follow the last completed write or toggle.
    """

    def __init__(
        self,
        settings: ManagerSettings | None = None,
        probe: InterfaceStateProbe | None = None,
    ):
        self.settings = settings or ManagerSettings()
        probe = probe or InterfaceStateProbe(self.settings)
        self.registry = TunnelRegistry(self.settings, probe)
        self.controller = TunnelController(self.settings, probe)
        self.builder = TunnelBuilder(self.settings, self.controller)
        self.tunnels: list[TunnelRecord] = []
        self.message: StatusMessage | None = None
        self.refresh()

    def refresh(self) -> list[TunnelRecord]:
        """Rebuild the tunnel list from disk and the kernel.

        A directory that cannot be read leaves an empty list and an error
        message; the session stays usable.
        """
        try:
            self.tunnels = self.registry.refresh()
        except DiscoveryError as e:
            self.tunnels = []
            self.message = StatusMessage.error(str(e))
        except WGWrapperError as e:
            self.message = StatusMessage.error(str(e))
        return self.tunnels

    def find(self, name: str) -> TunnelRecord | None:
        for record in self.tunnels:
            if record.name == name:
                return record
        return None

    def toggle(self, name: str) -> StatusMessage:
        """Start a stopped tunnel or stop a running one."""
        record = self.find(name)
        if record is None:
            return self._fail(TunnelNotFoundError(f"Tunnel '{name}' not found"))
        try:
            active = self.controller.toggle(record)
        except WGWrapperError as e:
            return self._fail(e)
        verb = "started" if active else "stopped"
        return self._done(StatusMessage.success(f"Tunnel '{name}' {verb}"))

    def begin_edit(self, name: str) -> EditableDraft | None:
        """Load a fresh draft for ``name`` from its configuration file."""
        try:
            record = self.registry.get(name)
            return extract_draft(ConfigDocument.from_file(record.config_path))
        except WGWrapperError as e:
            self._fail(e)
            return None

    def save_edit(self, name: str, draft: EditableDraft) -> StatusMessage:
        """Persist a draft, restarting the tunnel when it is currently up."""
        try:
            # Activation state is read now, not from a possibly stale record
            was_active = self.registry.probe.is_active(name)
            outcome = self.controller.apply_edit(name, draft, was_active)
        except WGWrapperError as e:
            return self._fail(e)

        text = f"Tunnel '{name}' saved"
        if outcome.restarted:
            text += " and restarted"
        if outcome.skipped_fields:
            text += (
                "; not in config, left unchanged: "
                + ", ".join(outcome.skipped_fields)
            )
        return self._done(StatusMessage.success(text))

    def delete(self, name: str) -> StatusMessage:
        record = self.find(name)
        if record is None:
            return self._fail(TunnelNotFoundError(f"Tunnel '{name}' not found"))
        try:
            self.builder.delete_tunnel(name, record.active)
        except WGWrapperError as e:
            return self._fail(e)
        return self._done(StatusMessage.success(f"Tunnel '{name}' deleted"))

    def import_config(self, source_path: str) -> StatusMessage:
        try:
            name = self.builder.import_tunnel(source_path)
        except WGWrapperError as e:
            return self._fail(e)
        return self._done(StatusMessage.success(f"Tunnel '{name}' imported"))

    def create(self, draft: NewTunnelDraft) -> StatusMessage:
        try:
            name = self.builder.create_tunnel(draft)
        except WGWrapperError as e:
            return self._fail(e)
        return self._done(StatusMessage.success(f"Tunnel '{name}' created"))

    def create_server(self, draft: NewServerDraft) -> StatusMessage:
        try:
            name = self.builder.create_server_tunnel(draft)
        except WGWrapperError as e:
            return self._fail(e)
        return self._done(StatusMessage.success(f"Server tunnel '{name}' created"))

    def add_server_peer(self, name: str) -> ServerPeerConfig | None:
        """Add a peer to server tunnel ``name``; None when that fails."""
        try:
            peer = self.builder.add_server_peer(name)
        except WGWrapperError as e:
            self._fail(e)
            return None
        self._done(
            StatusMessage.success(
                f"Peer {peer.peer_address} added to tunnel '{name}'"
            )
        )
        return peer

    def export(self, dest_path: str) -> StatusMessage:
        try:
            dest = export_tunnels(self.registry, dest_path)
        except WGWrapperError as e:
            return self._fail(e)
        self.message = StatusMessage.success(f"Exported tunnels to {dest}")
        return self.message

    def details(self, name: str) -> TunnelRecord | None:
        """Record for ``name`` with its live snapshot attached."""
        try:
            return self.registry.get(name, with_snapshot=True)
        except WGWrapperError as e:
            self._fail(e)
            return None

    def _done(self, message: StatusMessage) -> StatusMessage:
        self.refresh()
        self.message = message
        return message

    def _fail(self, error: WGWrapperError) -> StatusMessage:
        logger.warning("Operation failed", error=str(error))
        # State is left as the external tool left it; show what is there now
        self.refresh()
        self.message = StatusMessage.error(str(error))
        return self.message
