"""Script source normalization and indentation-based block parsing.

A script is plain text. Blank lines and lines starting with ``#`` are
ignored, a trailing backslash continues a line, and indentation (tabs or
blanks, never both on one line) nests instructions: a block that is one
level deeper than a command's line is that command's body.

Blocks live in an arena (:class:`InstructionTree.blocks`) and refer to their
parent by index, so the tree holds no back-references.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from core.exceptions import InvalidIndentationError

logger = logging.getLogger("launchenv")

COMMENT = "#"
CONTINUATION = "\\"


@dataclass
class Line:
    text: str

    def __post_init__(self) -> None:
        self.text = self.text.strip()

    def __str__(self) -> str:
        return self.text


@dataclass
class Block:
    index: int
    parent: Optional[int]
    indentation: int
    items: List["Instruction"] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __getitem__(self, i):
        return self.items[i]


Instruction = Union[Line, Block]


@dataclass
class InstructionTree:
    """All blocks of one parse; ``blocks[0]`` is the root."""

    blocks: List[Block] = field(default_factory=list)

    @property
    def root(self) -> Block:
        return self.blocks[0]

    def new_block(self, parent: Optional[Block], indentation: int) -> Block:
        block = Block(
            index=len(self.blocks),
            parent=None if parent is None else parent.index,
            indentation=indentation,
        )
        self.blocks.append(block)
        return block

    def parent_of(self, block: Block) -> Optional[Block]:
        if block.parent is None:
            return None
        return self.blocks[block.parent]

    def level(self, block: Block) -> int:
        """Nesting level of ``block``, 0 for the root."""
        level = 0
        parent = self.parent_of(block)
        while parent is not None:
            parent = self.parent_of(parent)
            level += 1
        return level


def normalize_lines(lines: Iterable[str]) -> List[Tuple[int, str]]:
    """Drop blank and comment lines, then join backslash continuations.

    Each logical line is paired with the 1-based source line number it
    starts on.
    """
    cleaned = [
        (line_no, line.rstrip("\r\n"))
        for line_no, line in enumerate(lines, start=1)
        if line.strip() and not line.strip().startswith(COMMENT)
    ]

    result: List[Tuple[int, str]] = []
    i = 0
    while i < len(cleaned):
        line_no, current = cleaned[i]
        while current.rstrip().endswith(CONTINUATION) and i < len(cleaned) - 1:
            i += 1
            current = current.rstrip()[:-1] + cleaned[i][1]
        result.append((line_no, current))
        i += 1
    return result


def indentation_of(line_no: int, line: str) -> int:
    """Count the leading whitespace of ``line``.

    Either tabs or blanks may be used, but not both on the same line.
    ``line_no`` is 1-based and only used for the error message.
    """
    count = 0
    tabs = None
    for c in line:
        if c not in (" ", "\t"):
            break
        if tabs is None:
            tabs = c == "\t"
        elif tabs != (c == "\t"):
            raise InvalidIndentationError(line_no, line)
        count += 1
    return count


def parse_lines(lines: Iterable[str]) -> InstructionTree:
    """Build the nested instruction tree for raw script lines."""
    tree = InstructionTree()
    nesting = [tree.new_block(None, 0)]

    for line_no, line in normalize_lines(lines):
        indentation = indentation_of(line_no, line)
        if indentation < nesting[-1].indentation:
            while len(nesting) > 1 and indentation < nesting[-1].indentation:
                nesting.pop()
            if indentation != nesting[-1].indentation:
                raise InvalidIndentationError(
                    line_no,
                    line,
                    f"Line {line_no} does not match any enclosing indentation level: {line}",
                )
        elif indentation > nesting[-1].indentation:
            inner = tree.new_block(nesting[-1], indentation)
            nesting[-1].items.append(inner)
            nesting.append(inner)
        nesting[-1].items.append(Line(line))

    logger.debug(
        f"Parsed {sum(len(b) for b in tree.blocks)} instructions in {len(tree.blocks)} blocks"
    )
    return tree


def parse_script(text: str) -> InstructionTree:
    return parse_lines(text.splitlines())


def load_script(path) -> InstructionTree:
    with open(Path(path), "r") as f:
        return parse_lines(f.read().splitlines())


def render(tree: InstructionTree, block: Optional[Block] = None, indent: str = "  ") -> str:
    """Print the instructions with indentation proportional to nesting."""
    block = tree.root if block is None else block
    prefix = indent * tree.level(block)
    out = []
    for item in block.items:
        if isinstance(item, Block):
            out.append(render(tree, item, indent))
        else:
            out.append(f"{prefix}{item.text}\n")
    return "".join(out)
