"""Line models for tunnel configuration files.

Every physical line of a configuration file is parsed into exactly one of
the variants below. Each variant renders back to the exact text it was
parsed from; a ``KeyValueLine`` only differs once its value is replaced.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

COMMENT_CHARS = ("#", ";")


class LineKind(str, Enum):
    """Line classification."""

    BLANK = "blank"
    COMMENT = "comment"
    SECTION = "section"
    KEY_VALUE = "key_value"
    UNRECOGNIZED = "unrecognized"


class _Line(BaseModel):
    model_config = ConfigDict(frozen=True)

    eol: str = Field(default="", description="Original line terminator")


class BlankLine(_Line):
    kind: Literal[LineKind.BLANK] = LineKind.BLANK
    raw: str = ""

    def render(self) -> str:
        return self.raw + self.eol


class CommentLine(_Line):
    kind: Literal[LineKind.COMMENT] = LineKind.COMMENT
    raw: str

    def render(self) -> str:
        return self.raw + self.eol


class SectionHeader(_Line):
    kind: Literal[LineKind.SECTION] = LineKind.SECTION
    raw: str
    name: str

    def render(self) -> str:
        return self.raw + self.eol

    def is_named(self, name: str) -> bool:
        return self.name.casefold() == name.casefold()


class KeyValueLine(_Line):
    """``Key = value  # comment`` split into its reusable pieces.

    ``raw_prefix`` holds everything up to the first character of the value
    (key text, its casing and all whitespace around ``=``); ``trailing``
    holds whitespace after the value plus any inline comment.
    """

    kind: Literal[LineKind.KEY_VALUE] = LineKind.KEY_VALUE
    raw_prefix: str
    key: str
    value: str
    trailing: str = ""

    def render(self) -> str:
        return self.raw_prefix + self.value + self.trailing + self.eol

    def matches(self, key: str) -> bool:
        return self.key.casefold() == key.casefold()

    def with_value(self, value: str) -> "KeyValueLine":
        """Return a copy with only the value slice substituted."""
        return self.model_copy(update={"value": value})


class UnrecognizedLine(_Line):
    kind: Literal[LineKind.UNRECOGNIZED] = LineKind.UNRECOGNIZED
    raw: str

    def render(self) -> str:
        return self.raw + self.eol


ConfigLine = Annotated[
    Union[BlankLine, CommentLine, SectionHeader, KeyValueLine, UnrecognizedLine],
    Field(discriminator="kind"),
]


def find_comment(body: str) -> int:
    """Index of the first ``#``/``;`` not escaped by a backslash, or -1."""
    for index, char in enumerate(body):
        if char in COMMENT_CHARS and (index == 0 or body[index - 1] != "\\"):
            return index
    return -1


def classify_line(content: str, eol: str = "") -> ConfigLine:
    """Parse one physical line (without its terminator) into a line model."""
    stripped = content.strip()

    if not stripped:
        return BlankLine(raw=content, eol=eol)

    if stripped.startswith(COMMENT_CHARS):
        return CommentLine(raw=content, eol=eol)

    # wg-quick drops a trailing comment before matching the header
    header = stripped
    comment_at = find_comment(stripped)
    if comment_at > 0:
        header = stripped[:comment_at].rstrip()
    if header.startswith("[") and header.endswith("]"):
        return SectionHeader(raw=content, name=header[1:-1].strip(), eol=eol)

    key_part, sep, rest = content.partition("=")
    key = key_part.strip()
    if not sep or not key:
        return UnrecognizedLine(raw=content, eol=eol)

    body = rest.lstrip()
    raw_prefix = content[: len(key_part) + 1 + len(rest) - len(body)]

    comment_at = find_comment(body)
    value_part = body if comment_at < 0 else body[:comment_at]
    value = value_part.rstrip()
    trailing = body[len(value) :]

    return KeyValueLine(
        raw_prefix=raw_prefix, key=key, value=value, trailing=trailing, eol=eol
    )
