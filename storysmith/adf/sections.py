"""
Heading-delimited sections of an ADF content array.

A section starts at the first top-level heading whose text contains the
label (case-insensitive) and runs until the next heading of the same or a
higher level (numerically lower or equal), or the end of the array.
"""

from typing import List, NamedTuple, Optional, Tuple

from loguru import logger

from storysmith.adf.tree import plain_text
from storysmith.models.adf import Node, NodeKind

DEFAULT_HEADING_LEVEL = 2


class SectionSplit(NamedTuple):
    """Section nodes and everything else; both reference the input nodes."""

    section: List[Node]
    remainder: List[Node]


def heading_text(node: Node) -> str:
    return plain_text(node.content)


def heading_level(node: Node) -> int:
    level = (node.attrs or {}).get("level")
    return level if isinstance(level, int) else DEFAULT_HEADING_LEVEL


def _is_matching_heading(node: Node, heading_label: str) -> bool:
    return (
        node.type == NodeKind.HEADING.value
        and heading_label.lower() in heading_text(node).lower()
    )


def find_section_bounds(content: List[Node], heading_label: str) -> Optional[Tuple[int, int]]:
    """
    Locate the first matching section.

    Args:
        content: Top-level ADF nodes
        heading_label: Text to search for in headings (case-insensitive)

    Returns:
        (start, end) slice bounds, or None if no heading matches
    """
    start = next(
        (i for i, node in enumerate(content) if _is_matching_heading(node, heading_label)),
        None,
    )
    if start is None:
        return None

    level = heading_level(content[start])
    end = len(content)
    for i in range(start + 1, len(content)):
        node = content[i]
        if node.type == NodeKind.HEADING.value and heading_level(node) <= level:
            end = i
            break

    logger.debug(f'"{heading_label}" section spans [{start}, {end}) at level {level}')
    return start, end


def extract_section(content: List[Node], heading_label: str) -> SectionSplit:
    """
    Split content into the labelled section and the remaining nodes.

    A missing section is not an error: the section comes back empty and the
    remainder is the full content.
    """
    bounds = find_section_bounds(content, heading_label)
    if bounds is None:
        logger.info(f'Section "{heading_label}" not found, returning all as remaining content')
        return SectionSplit(section=[], remainder=list(content))

    start, end = bounds
    split = SectionSplit(
        section=content[start:end],
        remainder=content[:start] + content[end:],
    )
    logger.info(
        f'Extracted "{heading_label}" section: {len(split.section)} node(s), '
        f"{len(split.remainder)} remaining"
    )
    return split


def count_sections(content: List[Node], heading_label: str) -> int:
    """Number of top-level headings matching the label."""
    count = sum(1 for node in content if _is_matching_heading(node, heading_label))
    logger.info(f'Found {count} section(s) with heading "{heading_label}"')
    return count


def remove_section(content: List[Node], heading_label: str) -> List[Node]:
    """Content without the first matching section."""
    return extract_section(content, heading_label).remainder


def replace_section(content: List[Node], heading_label: str, new_section: List[Node]) -> List[Node]:
    """
    Drop the first matching section and append new_section at the end.

    Other content keeps its relative order; the section always lands last,
    which is where generated sections are kept in an epic.
    """
    return remove_section(content, heading_label) + list(new_section)
