"""Activation, deactivation and edit sequencing for tunnels."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..common.exceptions import (
    ControlError,
    EditStep,
    ParseError,
    TunnelEditError,
    WriteError,
)
from ..common.logging import get_logger
from ..common.process import run_checked
from ..common.utils import write_atomic
from ..document import ConfigDocument, EditableDraft, apply_draft, skipped_fields
from ..settings import ManagerSettings
from .models import TunnelRecord
from .probe import InterfaceStateProbe
from .server import strip_config

logger = get_logger(__name__)


class EditOutcome(BaseModel):
    """Result of a successful ``apply_edit``."""

    model_config = ConfigDict(frozen=True)

    name: str
    config_path: Path
    restarted: bool = False
    skipped_fields: list[str] = Field(
        default_factory=list,
        description="Draft fields with a value but no line in the file",
    )


class TunnelController:
    """Drives the activation tool for toggles and edits."""

    def __init__(
        self,
        settings: ManagerSettings | None = None,
        probe: InterfaceStateProbe | None = None,
    ):
        self.settings = settings or ManagerSettings()
        self.probe = probe or InterfaceStateProbe(self.settings)

    def activate(self, config_path: Path) -> None:
        """Bring a tunnel up from its configuration file.

        Raises:
            ControlError: If the activation tool fails
        """
        logger.info("Activating tunnel", path=str(config_path))
        run_checked(
            [self.settings.wg_quick_binary, "up", str(config_path)],
            "wg-quick up failed",
        )

    def deactivate(self, name: str) -> None:
        """Tear a tunnel's interface down.

        Raises:
            ControlError: If the deactivation tool fails
        """
        logger.info("Deactivating tunnel", tunnel=name)
        run_checked(
            [self.settings.wg_quick_binary, "down", name],
            "wg-quick down failed",
        )

    def sync(self, name: str, document: ConfigDocument) -> None:
        """Apply ``document`` to a running interface without restarting it.

        Raises:
            ControlError: If the status tool rejects the configuration
        """
        logger.info("Syncing running tunnel", tunnel=name)
        run_checked(
            [self.settings.wg_binary, "syncconf", name, "/dev/stdin"],
            "wg syncconf failed",
            input_text=strip_config(document),
        )

    def toggle(self, record: TunnelRecord) -> bool:
        """Flip a tunnel's state.

        Returns:
            The new activation state

        Raises:
            ControlError: If the external tool fails
        """
        if record.active:
            self.deactivate(record.name)
            return False
        self.activate(record.config_path)
        return True

    def apply_edit(
        self, name: str, draft: EditableDraft, was_active: bool
    ) -> EditOutcome:
        """Persist a draft and restart the tunnel if it was running.

        The edited file is written before the interface is stopped. Stopping
        may save the running peer state back into the file; since the edit is
        already on disk and nothing is re-derived from the kernel afterwards,
        the restart comes up from the user's edit. Order: persist, then (if
        active) stop, then start from the written file.

        Args:
            name: Tunnel name
            draft: Edited field values
            was_active: Whether the interface was up when editing began

        Returns:
            EditOutcome describing what was done

        Raises:
            TunnelEditError: With the failed step; no rollback is attempted
        """
        config_path = self.settings.config_path_for(name)
        log = get_logger(__name__, tunnel=name)

        try:
            document = ConfigDocument.from_file(config_path)
            updated = apply_draft(document, draft)
            write_atomic(config_path, updated.render(), self.settings.file_mode)
        except (ParseError, WriteError) as e:
            raise self._edit_error(name, EditStep.WRITE, e) from e

        skipped = skipped_fields(document, draft)
        if skipped:
            log.warning("Fields not present in config were not written", fields=skipped)
        log.info("Tunnel config written", path=str(config_path))

        if not was_active:
            return EditOutcome(
                name=name, config_path=config_path, skipped_fields=skipped
            )

        try:
            self.deactivate(name)
        except ControlError as e:
            raise self._edit_error(name, EditStep.STOP, e) from e

        try:
            self.activate(config_path)
        except ControlError as e:
            raise self._edit_error(name, EditStep.START, e) from e

        log.info("Tunnel restarted with edited config")
        return EditOutcome(
            name=name, config_path=config_path, restarted=True, skipped_fields=skipped
        )

    def _edit_error(
        self, name: str, step: EditStep, cause: ParseError | WriteError | ControlError
    ) -> TunnelEditError:
        active: bool | None
        try:
            active = self.probe.is_active(name)
        except ControlError as e:
            logger.warning("Cannot observe tunnel state", tunnel=name, error=str(e))
            active = None
        logger.error(
            "Tunnel edit failed", tunnel=name, step=step.value, active=active
        )
        return TunnelEditError(name, step, cause, active)
