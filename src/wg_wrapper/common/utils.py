"""Utility functions for WireGuard wrapper."""

import os
import stat
import tempfile
from pathlib import Path

from .exceptions import ConfigurationError, WriteError

KIB = 1024
MIB = KIB * 1024
GIB = MIB * 1024
TIB = GIB * 1024

_UNITS = {"B": 1, "KIB": KIB, "MIB": MIB, "GIB": GIB, "TIB": TIB}


def validate_non_empty_string(value: str, field_name: str) -> str:
    """Validate that a string is not empty or only whitespace.

    Args:
        value: String value to validate
        field_name: Name of the field for error messages

    Returns:
        Stripped string value

    Raises:
        ConfigurationError: If string is empty or only whitespace
    """
    if not value or not value.strip():
        raise ConfigurationError(f"{field_name} cannot be empty")
    return value.strip()


def validate_interface_name(name: str) -> str:
    """Validate a tunnel (interface) name and return it stripped.

    Raises:
        ConfigurationError: If the name is empty or contains whitespace or '/'
    """
    name = name.strip()
    if not name:
        raise ConfigurationError("Interface name is required")
    if any(c.isspace() or c == "/" for c in name):
        raise ConfigurationError("Interface name cannot contain spaces or '/'")
    return name


def normalize_list(value: str) -> str:
    """Normalize a comma separated list to ``a, b, c`` form, dropping blanks."""
    return ", ".join(part.strip() for part in value.split(",") if part.strip())


def expand_path(path: str) -> Path:
    """Expand ``~`` in a user supplied path."""
    return Path(path.strip()).expanduser()


def parse_bytes(text: str) -> int:
    """Convert a ``wg show`` transfer figure such as ``1.50 MiB received`` to bytes.

    Unknown or missing units yield 0.
    """
    parts = text.replace(" received", "").replace(" sent", "").split()
    if len(parts) < 2:
        return 0
    try:
        amount = float(parts[0])
    except ValueError:
        return 0
    multiplier = _UNITS.get(parts[1].upper())
    if multiplier is None:
        return 0
    return int(amount * multiplier)


def format_bytes(num_bytes: int) -> str:
    """Render a byte count using binary units."""
    if num_bytes >= GIB:
        return f"{num_bytes / GIB:.2f} GiB"
    if num_bytes >= MIB:
        return f"{num_bytes / MIB:.2f} MiB"
    if num_bytes >= KIB:
        return f"{num_bytes / KIB:.2f} KiB"
    return f"{num_bytes} B"


def truncate_key(key: str) -> str:
    """Shorten a base64 key for display as ``first8…last8``."""
    if len(key) > 20:
        return f"{key[:8]}…{key[-8:]}"
    return key


def write_atomic(path: Path, content: str, mode: int = 0o600) -> None:
    """Write ``content`` to ``path`` through a temporary file and a rename.

    The temporary file lives in the target directory so the final
    ``os.replace`` never crosses filesystems. Readers see either the old
    file or the complete new one. When ``path`` already exists its
    permission bits and, where permitted, its owner are carried over and
    ``mode`` only applies to new files.

    Raises:
        WriteError: If any step of the write fails
    """
    try:
        existing = os.stat(path)
    except FileNotFoundError:
        existing = None
    except OSError as e:
        raise WriteError(f"Cannot write {path}: {e}") from e
    if existing is not None:
        mode = stat.S_IMODE(existing.st_mode)

    try:
        fd, temp_path = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
    except OSError as e:
        raise WriteError(f"Cannot write {path}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(temp_path, mode)
        if existing is not None and os.geteuid() == 0:
            os.chown(temp_path, existing.st_uid, existing.st_gid)
        os.replace(temp_path, path)
    except OSError as e:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise WriteError(f"Cannot write {path}: {e}") from e
