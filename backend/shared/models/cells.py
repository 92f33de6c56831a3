"""
Cell model for mirrored spreadsheet data.

A spreadsheet cell arrives with a value plus optional formatting (whole-cell
hyperlink, rich-text runs, reviewer note). It is stored as exactly one variant
of a closed tagged union:

- PlainCell      - text only
- LinkCell       - text with a whole-cell hyperlink (and optional note)
- RichTextCell   - ordered runs, at least one carrying a link (and optional note)
- AnnotatedCell  - text carrying a reviewer note, no link

Search, filter and classification work on the canonical text of a cell; the
structured parts (link targets, notes) are kept for display.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class TextRun(BaseModel):
    """One contiguous span of a rich-text cell."""

    text: str = ""
    url: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class PlainCell(BaseModel):
    kind: Literal["plain"] = "plain"
    text: str = ""

    model_config = ConfigDict(frozen=True)

    def canonical_text(self) -> str:
        return self.text

    def link_targets(self) -> List[str]:
        return []


class LinkCell(BaseModel):
    kind: Literal["link"] = "link"
    text: str
    url: str
    comment: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def canonical_text(self) -> str:
        return self.text

    def link_targets(self) -> List[str]:
        return [self.url]


class RichTextCell(BaseModel):
    kind: Literal["rich_text"] = "rich_text"
    runs: List[TextRun] = Field(default_factory=list)
    comment: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def canonical_text(self) -> str:
        return "".join(run.text for run in self.runs)

    def link_targets(self) -> List[str]:
        return [run.url for run in self.runs if run.url]


class AnnotatedCell(BaseModel):
    kind: Literal["annotated"] = "annotated"
    text: str
    comment: str

    model_config = ConfigDict(frozen=True)

    def canonical_text(self) -> str:
        return self.text

    def link_targets(self) -> List[str]:
        return []


Cell = Annotated[
    Union[PlainCell, LinkCell, RichTextCell, AnnotatedCell],
    Field(discriminator="kind"),
]

_CELL_TYPES = (PlainCell, LinkCell, RichTextCell, AnnotatedCell)


def canonical_text(cell: object) -> str:
    """Single display string of any cell variant."""
    if isinstance(cell, _CELL_TYPES):
        return cell.canonical_text()
    raise TypeError(f"Not a cell: {type(cell).__name__}")


def link_targets(cell: object) -> List[str]:
    """Link URLs carried by a cell (empty for Plain/Annotated)."""
    if isinstance(cell, _CELL_TYPES):
        return cell.link_targets()
    raise TypeError(f"Not a cell: {type(cell).__name__}")
