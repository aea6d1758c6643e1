from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Alignment = Literal["left", "center", "justified"]

# Sizes are half-points and spacing is twentieths of a point (twips),
# the units Word stores natively.
NAME_SIZE = 32
HEADER_SIZE = 24
BODY_SIZE = 22
PAGE_MARGIN = 1440
BULLET_LIST_REFERENCE = "bullet-list"


@dataclass(frozen=True)
class TextRun:
    text: str
    bold: bool = False
    size: int = BODY_SIZE
    underline: bool = False


@dataclass(frozen=True)
class Block:
    runs: tuple[TextRun, ...]
    alignment: Alignment | None = None
    space_before: int | None = None
    space_after: int | None = None
    bulleted: bool = False

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)


@dataclass(frozen=True)
class RenderedDocument:
    blocks: tuple[Block, ...] = field(default_factory=tuple)
    page_margin: int = PAGE_MARGIN
    bullet_list_reference: str = BULLET_LIST_REFERENCE

    def texts(self) -> list[str]:
        return [block.text for block in self.blocks]
