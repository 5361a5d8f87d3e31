"""Custom exceptions for WireGuard wrapper."""

from enum import Enum


class WGWrapperError(Exception):
    """Base exception for all WireGuard wrapper errors."""

    pass


class ParseError(WGWrapperError):
    """Raised when a tunnel configuration file cannot be read."""

    pass


class DiscoveryError(WGWrapperError):
    """Raised when the configuration directory cannot be scanned."""

    pass


class WriteError(WGWrapperError):
    """Raised when a configuration file cannot be persisted."""

    pass


class ConfigurationError(WGWrapperError):
    """Raised when a tunnel name, path or draft is invalid."""

    pass


class TunnelNotFoundError(WGWrapperError):
    """Raised when a tunnel name has no backing configuration file."""

    pass


class ControlError(WGWrapperError):
    """Raised when an external WireGuard tool exits with a non-zero status.

    The tool's stderr is kept verbatim in ``stderr``.
    """

    def __init__(
        self, message: str, stderr: str = "", command: list[str] | None = None
    ) -> None:
        super().__init__(message)
        self.stderr = stderr
        self.command = command or []


class EditStep(str, Enum):
    """Steps of the persist-then-restart edit sequence."""

    WRITE = "write"
    STOP = "stop"
    START = "start"


class TunnelEditError(WGWrapperError):
    """Raised when applying an edit fails part way through."""

    def __init__(
        self,
        name: str,
        step: EditStep,
        cause: WGWrapperError,
        active: bool | None,
    ) -> None:
        if active is None:
            state = "in an unknown state"
        else:
            state = "active" if active else "inactive"
        super().__init__(
            f"Editing tunnel '{name}' failed at {step.value} step: {cause} "
            f"(tunnel is now {state})"
        )
        self.name = name
        self.step = step
        self.cause = cause
        self.active = active
