"""Tunnel discovery, live state and lifecycle control."""

from .archive import export_tunnels
from .builder import NewTunnelDraft, TunnelBuilder, render_tunnel_config
from .controller import EditOutcome, TunnelController
from .models import InterfaceSnapshot, PeerSnapshot, TunnelRecord
from .probe import InterfaceStateProbe, parse_ip_addresses, parse_wg_show
from .registry import TunnelRegistry
from .server import (
    NewServerDraft,
    ServerPeerConfig,
    detect_public_ip,
    is_server_config,
    render_server_config,
    strip_config,
)

__all__ = [
    # Models
    "TunnelRecord",
    "InterfaceSnapshot",
    "PeerSnapshot",
    # Discovery and live state
    "TunnelRegistry",
    "InterfaceStateProbe",
    "parse_wg_show",
    "parse_ip_addresses",
    # Control
    "TunnelController",
    "EditOutcome",
    # File management
    "TunnelBuilder",
    "NewTunnelDraft",
    "render_tunnel_config",
    "export_tunnels",
    # Server tunnels
    "NewServerDraft",
    "ServerPeerConfig",
    "render_server_config",
    "is_server_config",
    "strip_config",
    "detect_public_ip",
]
