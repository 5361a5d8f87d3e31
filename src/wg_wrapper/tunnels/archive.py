"""Export of all tunnel configurations into a zip archive."""

import zipfile
from pathlib import Path

from ..common.exceptions import ConfigurationError, WriteError
from ..common.logging import get_logger
from ..common.utils import expand_path
from ..document import ConfigDocument
from .registry import TunnelRegistry

logger = get_logger(__name__)


def export_tunnels(registry: TunnelRegistry, dest_path: str) -> Path:
    """Write every discovered tunnel config into a deflated zip at ``dest_path``.

    Returns:
        Path of the written archive

    Raises:
        DiscoveryError: If the configuration directory cannot be read
        ParseError: If a configuration file cannot be read
        ConfigurationError: If there is nothing to export
        WriteError: If the archive cannot be written
    """
    dest = expand_path(dest_path)
    records = registry.discover()
    if not records:
        raise ConfigurationError("No tunnels to export")

    contents = [
        (record, ConfigDocument.from_file(record.config_path).render())
        for record in records
    ]
    extension = registry.settings.extension

    try:
        with zipfile.ZipFile(dest, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for record, text in contents:
                archive.writestr(f"{record.name}{extension}", text)
    except OSError as e:
        raise WriteError(f"Cannot write {dest}: {e}") from e

    logger.info("Tunnels exported", path=str(dest), count=len(records))
    return dest
