"""Turns a proposed change into something a person can review."""

import difflib
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field
from rich.console import Group, RenderableType
from rich.text import Text

from ..schemas import ChangeAction, ProposedChange


class BlockKind(str, Enum):
    PREVIEW = "preview"  # new file
    DIFF = "diff"  # modified file
    DELETE = "delete"  # removed file
    NOOP = "noop"  # modification identical to the original


class SegmentTag(str, Enum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"


class DiffSegment(BaseModel):
    tag: SegmentTag
    lines: List[str]


class DisplayBlock(BaseModel):
    kind: BlockKind
    segments: List[DiffSegment] = Field(default_factory=list)
    preview_lines: List[str] = Field(default_factory=list)
    truncated: bool = False

    @property
    def is_noop(self) -> bool:
        return self.kind == BlockKind.NOOP


_STYLES = {
    SegmentTag.ADDED: ("+ ", "green"),
    SegmentTag.REMOVED: ("- ", "red"),
    SegmentTag.UNCHANGED: ("  ", "grey50"),
}


def diff_lines(original: str, new: str) -> List[DiffSegment]:
    """Line-level diff as ordered segments tagged unchanged/added/removed."""
    # Line endings take part in the comparison so that CRLF or trailing
    # newline changes still show up as edited lines
    old_lines = original.splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)

    def _strip(lines: List[str]) -> List[str]:
        return [line.rstrip("\r\n") for line in lines]

    segments: List[DiffSegment] = []
    for opcode, i1, i2, j1, j2 in matcher.get_opcodes():
        if opcode == "equal":
            segments.append(
                DiffSegment(tag=SegmentTag.UNCHANGED, lines=_strip(old_lines[i1:i2]))
            )
            continue
        if i2 > i1:
            segments.append(
                DiffSegment(tag=SegmentTag.REMOVED, lines=_strip(old_lines[i1:i2]))
            )
        if j2 > j1:
            segments.append(
                DiffSegment(tag=SegmentTag.ADDED, lines=_strip(new_lines[j1:j2]))
            )
    return segments


class DiffPresenter:
    """Builds review blocks for proposed changes and renders them with rich."""

    def __init__(self, preview_lines: int = 20):
        self.preview_lines = preview_lines

    def present(
        self, change: ProposedChange, original_content: Optional[str]
    ) -> DisplayBlock:
        if change.action == ChangeAction.DELETE:
            return DisplayBlock(kind=BlockKind.DELETE)

        new_content = change.new_content or ""
        if change.action == ChangeAction.ADD:
            lines = new_content.split("\n")
            return DisplayBlock(
                kind=BlockKind.PREVIEW,
                preview_lines=lines[: self.preview_lines],
                truncated=len(lines) > self.preview_lines,
            )

        original = original_content or ""
        if original == new_content:
            return DisplayBlock(kind=BlockKind.NOOP)

        return DisplayBlock(kind=BlockKind.DIFF, segments=diff_lines(original, new_content))

    def render(self, block: DisplayBlock) -> RenderableType:
        if block.kind == BlockKind.DELETE:
            return Text("This will DELETE the file.", style="bold red")

        if block.kind == BlockKind.NOOP:
            return Text(
                "No effective changes detected (content is identical). "
                "Skipping this modification.",
                style="yellow",
            )

        if block.kind == BlockKind.PREVIEW:
            body = "\n".join(block.preview_lines)
            if block.truncated:
                body += "\n..."
            return Group(
                Text("This will create a NEW file.", style="bold green"),
                Text(f"New Content Preview (first {self.preview_lines} lines):"),
                Text("```"),
                Text(body),
                Text("```"),
            )

        text = Text()
        for segment in block.segments:
            prefix, style = _STYLES[segment.tag]
            for line in segment.lines:
                text.append(f"{prefix}{line}\n", style=style)
        return Group(Text("Changes (diff):"), text)
