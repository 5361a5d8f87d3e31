"""Format-preserving tunnel configuration documents and editable drafts."""

from .document import ConfigDocument, ScopedLine
from .draft import (
    INTERFACE_FIELDS,
    PEER_FIELDS,
    PROTECTED_KEYS,
    EditableDraft,
    field_for,
    is_protected,
)
from .extractor import extract_draft
from .lines import (
    BlankLine,
    CommentLine,
    ConfigLine,
    KeyValueLine,
    LineKind,
    SectionHeader,
    UnrecognizedLine,
    classify_line,
)
from .writer import apply_draft, skipped_fields

__all__ = [
    # Document
    "ConfigDocument",
    "ScopedLine",
    # Lines
    "ConfigLine",
    "LineKind",
    "BlankLine",
    "CommentLine",
    "SectionHeader",
    "KeyValueLine",
    "UnrecognizedLine",
    "classify_line",
    # Draft
    "EditableDraft",
    "INTERFACE_FIELDS",
    "PEER_FIELDS",
    "PROTECTED_KEYS",
    "field_for",
    "is_protected",
    # Read/write paths
    "extract_draft",
    "apply_draft",
    "skipped_fields",
]
