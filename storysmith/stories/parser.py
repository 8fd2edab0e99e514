"""
Shell story parser.

Turns the Shell Stories section of an epic into ShellStory records:

    - `st001` **Login** ⟩ User can sign in with email
        - SCREENS: [Login](https://figma.com/...)
        - DEPENDENCIES: none

Parsing is fail-fast. A bullet that does not follow the syntax raises
ShellStoryParseError instead of being skipped, because downstream steps
rely on a complete roster.
"""

import re
from typing import Iterator, List, Optional

from loguru import logger

from storysmith.adf.tree import children_of_type, plain_text
from storysmith.config.settings import settings
from storysmith.core.errors import ParseErrorKind, ShellStoryParseError
from storysmith.models.adf import MarkKind, Node, NodeKind
from storysmith.models.shell_story import ShellStory
from storysmith.stories.syntax import (
    StoryLineLayout,
    analyze_story_line,
    collapse_whitespace,
    first_paragraph,
)


class ShellStoryParser:
    """
    Parses shell story bullets out of a section's ADF nodes.
    Features:
    - Code-marked story ids
    - Title/description split on a separator glyph
    - Completion detection via a link on the title
    - Nested SCREENS / DEPENDENCIES items
    """

    def __init__(
        self,
        separator: Optional[str] = None,
        id_pattern: Optional[str] = None,
        screens_label: Optional[str] = None,
        dependencies_label: Optional[str] = None,
    ):
        """
        Initialize parser.

        Args:
            separator: Title/description separator (defaults to settings)
            id_pattern: Story id regex (defaults to settings)
            screens_label: Label of the nested screens item (defaults to settings)
            dependencies_label: Label of the nested dependencies item (defaults to settings)
        """
        self.separator = separator or settings.story_separator
        self.id_pattern = re.compile(id_pattern or settings.story_id_pattern)
        self.screens_label = screens_label or settings.screens_label
        self.dependencies_label = dependencies_label or settings.dependencies_label

    def iter_story_items(self, section_nodes: List[Node]) -> Iterator[Node]:
        """List items of the section's top-level bullet lists, in document order."""
        for bullet_list in children_of_type(section_nodes, NodeKind.BULLET_LIST):
            yield from children_of_type(bullet_list.content, NodeKind.LIST_ITEM)

    def story_line(self, item: Node) -> Optional[StoryLineLayout]:
        paragraph = first_paragraph(item)
        if paragraph is None or not paragraph.content:
            return None
        return analyze_story_line(paragraph, self.separator, self.id_pattern)

    def parse(self, section_nodes: List[Node]) -> List[ShellStory]:
        """
        Parse every shell story in the section.

        Args:
            section_nodes: Section nodes (heading included or not)

        Returns:
            Stories in document order

        Raises:
            ShellStoryParseError: If any bullet is malformed or ids repeat
        """
        stories: List[ShellStory] = []
        seen_ids = set()

        for position, item in enumerate(self.iter_story_items(section_nodes)):
            story = self.parse_item(item, position)
            if story.id in seen_ids:
                raise ShellStoryParseError(ParseErrorKind.DUPLICATE_ID, story.id, position)
            seen_ids.add(story.id)
            stories.append(story)

        logger.info(
            f"Parsed {len(stories)} shell stories "
            f"({sum(1 for s in stories if s.is_completed)} completed)"
        )
        return stories

    def parse_item(self, item: Node, position: int = 0) -> ShellStory:
        """Parse a single shell story list item."""
        layout = self.story_line(item)
        if layout is None or layout.story_id is None:
            raise ShellStoryParseError(ParseErrorKind.MISSING_ID, position=position)
        story_id = layout.story_id

        separator_node = layout.separator_node
        if separator_node is None:
            raise ShellStoryParseError(
                ParseErrorKind.MISSING_SEPARATOR,
                story_id,
                position,
                f"expected `{story_id}` **Title** {self.separator} Description",
            )

        before_separator, _, after_separator = (separator_node.text or "").partition(self.separator)

        title_text = "".join(node.text or "" for node in layout.title_nodes) + before_separator
        title = collapse_whitespace(title_text)
        if not title:
            raise ShellStoryParseError(ParseErrorKind.MISSING_TITLE, story_id, position)

        description = self._description(after_separator, layout.description_nodes())
        if not description:
            raise ShellStoryParseError(ParseErrorKind.MISSING_DESCRIPTION, story_id, position)

        return ShellStory(
            id=story_id,
            title=title,
            description=description,
            reference_url=self._reference_url(layout),
            screens=self._screens(item),
            dependencies=self._dependencies(item),
            position=position,
            source=item,
        )

    def _reference_url(self, layout: StoryLineLayout) -> Optional[str]:
        for node in layout.title_nodes:
            href = node.mark_attr(MarkKind.LINK, "href")
            if href:
                return href
        return None

    def _description(self, head: str, nodes: List[Node]) -> str:
        parts = [head]
        for node in nodes:
            if node.is_text():
                parts.append(node.text or "")
            elif node.type == NodeKind.HARD_BREAK.value:
                parts.append("\n")
            else:
                parts.append(plain_text([node]))
        lines = "".join(parts).split("\n")
        return "\n".join(collapse_whitespace(line) for line in lines).strip()

    def _labelled_paragraphs(self, item: Node, label: str) -> Iterator[Node]:
        """Paragraphs of nested list items whose first text starts with label."""
        for nested_list in children_of_type(item.content, NodeKind.BULLET_LIST):
            for nested_item in children_of_type(nested_list.content, NodeKind.LIST_ITEM):
                for paragraph in children_of_type(nested_item.content, NodeKind.PARAGRAPH):
                    first = paragraph.content[0] if paragraph.content else None
                    if first is not None and first.is_text() and (first.text or "").lstrip().upper().startswith(label.upper()):
                        yield paragraph

    def _screens(self, item: Node) -> List[str]:
        urls: List[str] = []
        for paragraph in self._labelled_paragraphs(item, self.screens_label):
            previous_url = None
            for node in paragraph.content or []:
                if node.is_text():
                    url = node.mark_attr(MarkKind.LINK, "href")
                elif node.type == NodeKind.INLINE_CARD.value:
                    url = (node.attrs or {}).get("url")
                else:
                    url = None
                # Adjacent runs with one href are a single link split by marks
                if url and url != previous_url:
                    urls.append(url)
                previous_url = url
        return urls

    def _dependencies(self, item: Node) -> List[str]:
        dependency_ids: List[str] = []
        for paragraph in self._labelled_paragraphs(item, self.dependencies_label):
            text = plain_text(paragraph.content).lstrip()
            deps_text = text[len(self.dependencies_label):].strip()
            if deps_text.lower() == "none":
                continue
            for value in re.split(r"[,\n]", deps_text):
                value = value.strip()
                if value and value.lower() != "none":
                    dependency_ids.append(value)
        return dependency_ids


def parse_shell_stories(section_nodes: List[Node]) -> List[ShellStory]:
    """Parse shell stories with the configured micro-syntax."""
    return ShellStoryParser().parse(section_nodes)
