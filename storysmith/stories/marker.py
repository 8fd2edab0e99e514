"""
Completion marker for shell stories.

Marks a story as written by linking its title to the created issue and
stamping a timestamp at the end of the story line:

    `st001` **[Title](https://.../browse/PROJ-123)** ⟩ Description *(2025-01-15T10:30:00.000Z)*

The input section is never modified; the marker works on a deep copy and
returns it.
"""

from datetime import datetime
from typing import List, Optional

from loguru import logger

from storysmith.adf.tree import clone_nodes
from storysmith.core.errors import StoryNotFoundError
from storysmith.models.adf import Mark, MarkKind, Node
from storysmith.stories.parser import ShellStoryParser
from storysmith.stories.syntax import StoryLineLayout, format_completion_timestamp


def add_completion_marker(
    section_nodes: List[Node],
    story_id: str,
    reference_url: str,
    now: Optional[datetime] = None,
    parser: Optional[ShellStoryParser] = None,
) -> List[Node]:
    """
    Return a copy of the section with the story marked as completed.

    An existing link on the title is kept (first write wins), and an existing
    timestamp trailer is overwritten instead of appending a second one, so
    repeating the call with the same arguments yields the same tree.

    Args:
        section_nodes: Shell Stories section nodes
        story_id: Story id to mark (e.g., "st001")
        reference_url: URL of the created issue
        now: Timestamp to stamp (defaults to current UTC time)
        parser: Parser whose micro-syntax settings to use

    Returns:
        New section nodes with the marker applied

    Raises:
        StoryNotFoundError: If no bullet carries story_id
    """
    parser = parser or ShellStoryParser()
    new_section = clone_nodes(section_nodes)

    available = []
    for item in parser.iter_story_items(new_section):
        layout = parser.story_line(item)
        if layout is None or layout.story_id is None:
            continue
        available.append(layout.story_id)
        if layout.story_id != story_id:
            continue

        # Stamp first: linking may split the separator node and shift indices
        _stamp(layout, format_completion_timestamp(now))
        _link_title(layout, reference_url, parser.separator)
        logger.info(f"Added completion marker to story {story_id}: {reference_url}")
        return new_section

    raise StoryNotFoundError(story_id, available)


def _stamp(layout: StoryLineLayout, stamp: str) -> None:
    content = layout.paragraph.content
    if layout.timestamp_index is not None:
        content[layout.timestamp_index].text = stamp
        return
    content.append(Node(type="text", text=" "))
    content.append(Node(type="text", text=stamp, marks=[Mark(type=MarkKind.EM.value)]))


def _link_title(layout: StoryLineLayout, url: str, separator: str) -> None:
    title_nodes = [node for node in layout.title_nodes if (node.text or "").strip()]
    if title_nodes:
        for node in title_nodes:
            _add_link(node, url)
        return

    # Title only exists as text before the glyph: give it its own node
    separator_node = layout.separator_node
    if separator_node is None:
        return
    text = separator_node.text or ""
    title_text = text.partition(separator)[0].rstrip()
    if not title_text.strip():
        return

    title_node = separator_node.model_copy(deep=True, update={"text": title_text})
    rest_node = separator_node.model_copy(deep=True, update={"text": text[len(title_text):]})
    _add_link(title_node, url)
    index = layout.separator_index
    layout.paragraph.content[index:index + 1] = [title_node, rest_node]


def _add_link(node: Node, url: str) -> None:
    existing = node.get_mark(MarkKind.LINK)
    if existing is not None:
        current = (existing.attrs or {}).get("href")
        if current != url:
            logger.warning(f"Title already links to {current}; keeping it instead of {url}")
        return
    node.marks = list(node.marks or []) + [Mark(type=MarkKind.LINK.value, attrs={"href": url})]
