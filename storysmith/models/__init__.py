"""
Data models: ADF document tree and parsed shell stories.
"""

from .adf import Document, Mark, MarkKind, Node, NodeKind, validate_adf
from .shell_story import ShellStory

__all__ = [
    'Document',
    'Mark',
    'MarkKind',
    'Node',
    'NodeKind',
    'ShellStory',
    'validate_adf',
]
