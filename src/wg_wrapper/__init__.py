"""WireGuard Python Wrapper - tunnel discovery, activation and safe config editing."""

from . import (
    document,  # For test access to document components
    tunnels,  # For test access to tunnel components
)

# High-level API
from .api import MessageLevel, StatusMessage, TunnelSession

# Common utilities
from .common.exceptions import (
    ConfigurationError,
    ControlError,
    DiscoveryError,
    EditStep,
    ParseError,
    TunnelEditError,
    TunnelNotFoundError,
    WGWrapperError,
    WriteError,
)
from .common.logging import get_logger, setup_logging
from .common.process import check_dependencies
from .common.utils import format_bytes, truncate_key

# Configuration documents
from .document import (
    ConfigDocument,
    EditableDraft,
    apply_draft,
    extract_draft,
    skipped_fields,
)
from .settings import ManagerSettings

# Tunnel management
from .tunnels import (
    EditOutcome,
    InterfaceSnapshot,
    InterfaceStateProbe,
    NewTunnelDraft,
    PeerSnapshot,
    TunnelBuilder,
    TunnelController,
    TunnelRecord,
    TunnelRegistry,
    export_tunnels,
)

# Setup logging on package initialization
setup_logging(level="INFO")

# Package level logger
logger = get_logger(__name__)

__version__ = "0.1.0"


__all__ = [
    # High-level API
    "TunnelSession",
    "StatusMessage",
    "MessageLevel",
    "ManagerSettings",
    # Documents
    "ConfigDocument",
    "EditableDraft",
    "extract_draft",
    "apply_draft",
    "skipped_fields",
    # Tunnel management
    "TunnelRegistry",
    "TunnelRecord",
    "InterfaceSnapshot",
    "PeerSnapshot",
    "InterfaceStateProbe",
    "TunnelController",
    "EditOutcome",
    "TunnelBuilder",
    "NewTunnelDraft",
    "export_tunnels",
    # Exceptions
    "WGWrapperError",
    "ParseError",
    "DiscoveryError",
    "ControlError",
    "WriteError",
    "ConfigurationError",
    "TunnelNotFoundError",
    "TunnelEditError",
    "EditStep",
    # Utilities
    "get_logger",
    "setup_logging",
    "check_dependencies",
    "format_bytes",
    "truncate_key",
    "document",
    "tunnels",
]
