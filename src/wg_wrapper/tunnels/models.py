"""Tunnel models.

Records are immutable; status refreshes produce new instances.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PeerSnapshot(BaseModel):
    """Live state of one peer as reported by the status tool."""

    model_config = ConfigDict(frozen=True)

    public_key: str = Field(description="Peer public key")
    endpoint: str | None = Field(default=None, description="Current endpoint")
    allowed_ips: list[str] = Field(default_factory=list)
    latest_handshake: str | None = Field(
        default=None, description="Human readable time since last handshake"
    )
    transfer_rx: int = Field(default=0, ge=0, description="Bytes received")
    transfer_tx: int = Field(default=0, ge=0, description="Bytes sent")


class InterfaceSnapshot(BaseModel):
    """Live state of an interface. An inactive interface has an empty snapshot."""

    model_config = ConfigDict(frozen=True)

    public_key: str = ""
    listen_port: int | None = Field(default=None, ge=1, le=65535)
    addresses: list[str] = Field(default_factory=list)
    dns: list[str] = Field(default_factory=list)
    peers: list[PeerSnapshot] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.public_key or self.addresses or self.peers)

    @property
    def transfer_rx(self) -> int:
        return sum(peer.transfer_rx for peer in self.peers)

    @property
    def transfer_tx(self) -> int:
        return sum(peer.transfer_tx for peer in self.peers)


class TunnelRecord(BaseModel):
    """A tunnel discovered in the configuration directory."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Tunnel name (file stem)")
    config_path: Path = Field(description="Backing configuration file")
    active: bool = Field(default=False, description="Live interface present")
    snapshot: InterfaceSnapshot | None = Field(
        default=None, description="Live interface data, populated on demand"
    )

    def with_status(
        self, active: bool, snapshot: InterfaceSnapshot | None = None
    ) -> "TunnelRecord":
        """Create new record instance with updated live state (immutable pattern).

        Args:
            active: Whether the interface is live
            snapshot: Live data, dropped when the interface is inactive

        Returns:
            New record instance
        """
        update: dict[str, Any] = {
            "active": active,
            "snapshot": snapshot if active else None,
        }
        return self.model_copy(update=update)
