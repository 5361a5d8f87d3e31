"""Settings for locating tunnel configurations and WireGuard tools."""

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "WG_WRAPPER_"

_ENV_FIELDS = {
    "CONFIG_DIR": "config_dir",
    "WG": "wg_binary",
    "WG_QUICK": "wg_quick_binary",
    "IP": "ip_binary",
}


class ManagerSettings(BaseModel):
    """Pydantic model for the tunnel manager's environment."""

    model_config = ConfigDict(
        str_strip_whitespace=True, validate_assignment=True, extra="forbid"
    )

    config_dir: Path = Field(
        default=Path("/etc/wireguard"), description="Directory of tunnel configs"
    )
    extension: str = Field(default=".conf", description="Tunnel config extension")
    wg_binary: str = Field(default="wg", min_length=1, description="Status tool")
    wg_quick_binary: str = Field(
        default="wg-quick", min_length=1, description="Activation tool"
    )
    ip_binary: str = Field(default="ip", min_length=1, description="Link query tool")
    file_mode: int = Field(
        default=0o600, ge=0, le=0o777, description="Mode for written config files"
    )

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        """Extension must look like a file suffix."""
        if not v.startswith(".") or len(v) < 2:
            raise ValueError("Extension must start with '.' followed by a suffix")
        return v

    @property
    def required_binaries(self) -> list[str]:
        return [self.wg_binary, self.wg_quick_binary, self.ip_binary]

    def config_path_for(self, name: str) -> Path:
        """Path of the configuration file backing tunnel ``name``."""
        return self.config_dir / f"{name}{self.extension}"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ManagerSettings":
        """Build settings, applying ``WG_WRAPPER_*`` environment overrides."""
        environ = dict(os.environ) if environ is None else environ
        overrides: dict[str, Any] = {}
        for suffix, field_name in _ENV_FIELDS.items():
            value = environ.get(ENV_PREFIX + suffix)
            if value:
                overrides[field_name] = value
        return cls(**overrides)
