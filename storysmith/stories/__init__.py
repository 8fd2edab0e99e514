"""
Shell story micro-syntax: parsing, completion marking and planning.
"""

from .marker import add_completion_marker
from .parser import ShellStoryParser, parse_shell_stories
from .planner import dependency_order, find_next_unwritten_story, validate_dependencies
from .syntax import format_completion_timestamp

__all__ = [
    'ShellStoryParser',
    'add_completion_marker',
    'dependency_order',
    'find_next_unwritten_story',
    'format_completion_timestamp',
    'parse_shell_stories',
    'validate_dependencies',
]
