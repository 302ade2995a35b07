"""
Parsed configuration source.

A ``SourceUnit`` bundles the exact text of a file with its syntax tree so
that every rule reports positions and fix offsets against the same string
the fixer later splices.
"""

from bisect import bisect_right
from dataclasses import dataclass, field
from pathlib import Path

from ...kit_logging import get_logger
from ..errors import ParseError
from .nodes import Node, Program
from .parser import parse_text

logger = get_logger()


@dataclass(frozen=True)
class SourceUnit:
    """Source text plus its syntax tree.

    Offsets used anywhere in pattern detection are ``str`` indices into
    ``text``. Lines and columns are 1-indexed.
    """

    path: Path
    text: str
    tree: Program
    line_starts: tuple[int, ...] = field(repr=False)

    @classmethod
    def from_text(cls, text: str, path: Path | str = "sst.config.ts") -> "SourceUnit":
        """Build a unit from in-memory text. Never raises."""
        tree = parse_text(text)
        if tree.errors:
            logger.debug(f"Recovered from {len(tree.errors)} syntax issue(s) in {path}")
        return cls(path=Path(path), text=text, tree=tree, line_starts=_line_starts(text))

    def position(self, offset: int) -> tuple[int, int]:
        """Convert a text offset to a (line, column) pair."""
        offset = max(0, min(offset, len(self.text)))
        index = bisect_right(self.line_starts, offset) - 1
        return index + 1, offset - self.line_starts[index] + 1

    def line_and_column(self, node: Node) -> tuple[int, int]:
        return self.position(node.start)

    def line_of(self, node: Node) -> int:
        return self.position(node.start)[0]

    def text_of(self, node: Node) -> str:
        return self.text[node.start : node.end]

    def line_indent(self, offset: int) -> str:
        """Leading whitespace of the line containing offset."""
        line_start = self.line_starts[self.position(offset)[0] - 1]
        end = line_start
        while end < len(self.text) and self.text[end] in " \t":
            end += 1
        return self.text[line_start:end]


def _line_starts(text: str) -> tuple[int, ...]:
    starts = [0]
    for index, char in enumerate(text):
        if char == "\n":
            starts.append(index + 1)
    return tuple(starts)


def parse(path: Path | str) -> SourceUnit:
    """Read and parse a configuration file.

    Args:
        path: Path to the file to parse

    Returns:
        SourceUnit for the file's current content

    Raises:
        ParseError: If the file is missing, unreadable or not UTF-8
    """
    path = Path(path)
    try:
        # newline="" keeps \r\n so offsets match the bytes on disk
        with open(path, encoding="utf-8", newline="") as f:
            text = f.read()
    except FileNotFoundError as e:
        raise ParseError("file not found", path) from e
    except UnicodeDecodeError as e:
        raise ParseError(f"file is not valid UTF-8: {e.reason}", path) from e
    except OSError as e:
        raise ParseError(f"cannot read file: {e.strerror or e}", path) from e
    return SourceUnit.from_text(text, path)


__all__ = ["SourceUnit", "ParseError", "parse"]
