"""Write path: re-apply an editable draft into a document in place."""

from ..common.logging import get_logger
from .document import ConfigDocument
from .draft import EditableDraft, field_for
from .lines import ConfigLine

logger = get_logger(__name__)


def apply_draft(document: ConfigDocument, draft: EditableDraft) -> ConfigDocument:
    """Return a new document with the draft's non-empty values substituted.

    Only the value slice of the first in-scope line for each field changes.
    Empty draft values leave their line untouched, fields missing from the
    document are never inserted, and every other line passes through as is.
    """
    values = draft.filled()
    seen: set[str] = set()
    lines: list[ConfigLine] = list(document.lines)

    for scoped, line in document.key_values():
        name = field_for(scoped.section, scoped.peer_index, line.key)
        if name is None or name in seen:
            continue
        seen.add(name)
        new_value = values.get(name)
        if new_value and new_value != line.value:
            lines[scoped.index] = line.with_value(new_value)
            logger.debug("Field updated", field=name, key=line.key)

    return document.with_lines(lines)


def skipped_fields(document: ConfigDocument, draft: EditableDraft) -> list[str]:
    """Draft fields with a value that ``apply_draft`` will not write.

    These have no line in the document, and lines are never inserted.
    """
    present: set[str] = set()
    for scoped, line in document.key_values():
        name = field_for(scoped.section, scoped.peer_index, line.key)
        if name is not None:
            present.add(name)
    return [name for name in draft.filled() if name not in present]
