"""Common utilities and shared functionality."""

from .exceptions import (
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
from .logging import get_logger, setup_logging
from .process import CommandResult, check_dependencies, run_checked, run_command
from .utils import (
    expand_path,
    format_bytes,
    normalize_list,
    parse_bytes,
    truncate_key,
    validate_interface_name,
    validate_non_empty_string,
    write_atomic,
)

__all__ = [
    # Process management
    "CommandResult",
    "run_command",
    "run_checked",
    "check_dependencies",
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
    # Logging
    "get_logger",
    "setup_logging",
    # Utils
    "validate_non_empty_string",
    "validate_interface_name",
    "normalize_list",
    "expand_path",
    "parse_bytes",
    "format_bytes",
    "truncate_key",
    "write_atomic",
]
