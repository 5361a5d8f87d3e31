"""Read path: project a configuration document into an editable draft."""

from .document import ConfigDocument
from .draft import EditableDraft, field_for


def extract_draft(document: ConfigDocument) -> EditableDraft:
    """Build a draft from the editable fields present in ``document``.

    Only the first ``[Peer]`` block contributes peer fields. When a key
    occurs more than once in scope the first occurrence wins, matching the
    line the writer updates. Missing fields stay empty.
    """
    values: dict[str, str] = {}
    for scoped, line in document.key_values():
        name = field_for(scoped.section, scoped.peer_index, line.key)
        if name is not None and name not in values:
            values[name] = line.value
    return EditableDraft(**values)
