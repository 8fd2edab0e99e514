"""
Layout of a shell story line.

A story line is the first paragraph of a shell story bullet:

    `st001` **Title** ⟩ Description *(2025-01-15T10:30:00.000Z)*

The parser and the completion marker both locate the id, title, separator
and timestamp trailer through analyze_story_line so they always agree on
which nodes make up the title.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Pattern

from storysmith.models.adf import MarkKind, Node, NodeKind

TIMESTAMP_PATTERN = re.compile(r"^\(\d{4}-\d{2}-\d{2}T[^()]*\)$")


@dataclass
class StoryLineLayout:
    """Indices into paragraph.content for each part of a story line."""

    paragraph: Node
    id_index: Optional[int] = None
    story_id: Optional[str] = None
    title_indices: List[int] = field(default_factory=list)
    separator_index: Optional[int] = None
    timestamp_index: Optional[int] = None

    @property
    def nodes(self) -> List[Node]:
        return self.paragraph.content or []

    @property
    def title_nodes(self) -> List[Node]:
        return [self.nodes[i] for i in self.title_indices]

    @property
    def separator_node(self) -> Optional[Node]:
        if self.separator_index is None:
            return None
        return self.nodes[self.separator_index]

    def description_nodes(self) -> List[Node]:
        """Inline nodes after the separator, minus the timestamp trailer."""
        if self.separator_index is None:
            return []
        return [
            node
            for i, node in enumerate(self.nodes)
            if i > self.separator_index and i != self.timestamp_index
        ]


def is_timestamp_node(node: Node) -> bool:
    return (
        node.is_text()
        and node.has_mark(MarkKind.EM)
        and bool(TIMESTAMP_PATTERN.match((node.text or "").strip()))
    )


def analyze_story_line(paragraph: Node, separator: str, id_pattern: Pattern) -> StoryLineLayout:
    """
    Locate id, title, separator and timestamp nodes in a story line.

    Args:
        paragraph: First paragraph of the shell story list item
        separator: Glyph between title and description
        id_pattern: Compiled pattern a code-marked id must match

    Returns:
        StoryLineLayout; fields stay None/empty for parts that are absent
    """
    layout = StoryLineLayout(paragraph=paragraph)
    content = paragraph.content or []

    for index, node in enumerate(content):
        if layout.id_index is None:
            candidate = (node.text or "").strip()
            if node.is_text() and node.has_mark(MarkKind.CODE) and id_pattern.match(candidate):
                layout.id_index = index
                layout.story_id = candidate
            continue

        if layout.separator_index is not None:
            break
        if not node.is_text():
            continue
        if separator in (node.text or ""):
            layout.separator_index = index
        else:
            layout.title_indices.append(index)

    if layout.separator_index is not None:
        layout.timestamp_index = _trailing_timestamp_index(content, layout.separator_index)

    return layout


def _trailing_timestamp_index(content: List[Node], separator_index: int) -> Optional[int]:
    """Index of the timestamp run ending the line, skipping trailing whitespace runs."""
    for index in range(len(content) - 1, separator_index, -1):
        node = content[index]
        if node.is_text() and not (node.text or "").strip():
            continue
        return index if is_timestamp_node(node) else None
    return None


def first_paragraph(item: Node) -> Optional[Node]:
    for child in item.content or []:
        if child.type == NodeKind.PARAGRAPH.value:
            return child
    return None


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def format_completion_timestamp(now: Optional[datetime] = None) -> str:
    """Timestamp trailer text, e.g. "(2025-01-15T10:30:00.000Z)"."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return f"({now.strftime('%Y-%m-%dT%H:%M:%S')}.{now.microsecond // 1000:03d}Z)"
