"""
ADF tree utilities: traversal, section extraction and markdown rendering.
"""

from .markdown import document_to_markdown, render_markdown
from .sections import (
    SectionSplit,
    count_sections,
    extract_section,
    remove_section,
    replace_section,
)
from .tree import clone_nodes, dump_nodes, load_nodes, plain_text, walk

__all__ = [
    'SectionSplit',
    'clone_nodes',
    'count_sections',
    'document_to_markdown',
    'dump_nodes',
    'extract_section',
    'load_nodes',
    'plain_text',
    'remove_section',
    'render_markdown',
    'replace_section',
    'walk',
]
