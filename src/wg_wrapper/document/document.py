"""Format-preserving representation of a tunnel configuration file."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..common.exceptions import ParseError
from ..common.logging import get_logger
from .draft import PEER_SECTION
from .lines import ConfigLine, KeyValueLine, SectionHeader, classify_line

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScopedLine:
    """A line together with the scope it was found in.

    ``section`` is the name of the enclosing section (``None`` before the
    first header) and ``peer_index`` counts the ``[Peer]`` headers seen so
    far, so the first peer block has ``peer_index == 1``.
    """

    index: int
    line: ConfigLine
    section: str | None
    peer_index: int

    def in_section(self, name: str) -> bool:
        return self.section is not None and self.section.casefold() == name.casefold()


def _split_physical_lines(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(content, terminator)`` pairs that concatenate back to ``text``."""
    pieces = text.split("\n")
    last = len(pieces) - 1
    for position, piece in enumerate(pieces):
        if position == last:
            if piece:
                yield piece, ""
            return
        eol = "\n"
        if piece.endswith("\r"):
            piece, eol = piece[:-1], "\r\n"
        yield piece, eol


class ConfigDocument(BaseModel):
    """Ordered, immutable sequence of parsed configuration lines."""

    model_config = ConfigDict(frozen=True)

    lines: tuple[ConfigLine, ...] = Field(default_factory=tuple)

    @classmethod
    def parse(cls, text: str) -> "ConfigDocument":
        """Parse configuration text. Malformed lines are kept, never rejected."""
        return cls(
            lines=tuple(
                classify_line(content, eol)
                for content, eol in _split_physical_lines(text)
            )
        )

    @classmethod
    def from_file(cls, path: Path) -> "ConfigDocument":
        """Read and parse a configuration file.

        Raises:
            ParseError: If the file cannot be read
        """
        try:
            # newline="" keeps \r\n and lone \r exactly as stored
            with open(path, encoding="utf-8", newline="") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to read tunnel config", path=str(path), error=str(e))
            raise ParseError(f"Cannot read {path}: {e}") from e
        return cls.parse(text)

    def render(self) -> str:
        return "".join(line.render() for line in self.lines)

    @property
    def newline(self) -> str:
        """Line terminator used by the document, ``\\n`` when it has none."""
        for line in self.lines:
            if line.eol:
                return line.eol
        return "\n"

    def with_lines(self, lines: Iterable[ConfigLine]) -> "ConfigDocument":
        return ConfigDocument(lines=tuple(lines))

    def scoped_lines(self) -> Iterator[ScopedLine]:
        """Walk the document, tracking the current section and peer counter."""
        section: str | None = None
        peer_index = 0
        for index, line in enumerate(self.lines):
            if isinstance(line, SectionHeader):
                section = line.name
                if line.is_named(PEER_SECTION):
                    peer_index += 1
            yield ScopedLine(index, line, section, peer_index)

    def key_values(self) -> Iterator[tuple[ScopedLine, KeyValueLine]]:
        for scoped in self.scoped_lines():
            if isinstance(scoped.line, KeyValueLine):
                yield scoped, scoped.line

    def section_names(self) -> list[str]:
        return [line.name for line in self.lines if isinstance(line, SectionHeader)]
