"""
Story selection and dependency checks over a parsed roster.

The parser does not check dependencies; these helpers do, once the whole
roster is known.
"""

from collections import deque
from typing import Dict, List, Optional

from loguru import logger

from storysmith.core.errors import DependencyError, DependencyErrorKind
from storysmith.models.shell_story import ShellStory


def find_next_unwritten_story(stories: List[ShellStory]) -> Optional[ShellStory]:
    """First story in document order without a completion link."""
    story = next((s for s in stories if not s.is_completed), None)
    if story is None:
        logger.info("All shell stories have been written")
    else:
        logger.info(f"Next unwritten story: {story.id} ({story.title})")
    return story


def validate_dependencies(story: ShellStory, stories: List[ShellStory]) -> None:
    """
    Check that every transitive dependency exists and is already written.

    Raises:
        DependencyError: MISSING for unknown ids, UNWRITTEN for dependencies
            without a completion link
    """
    by_id: Dict[str, ShellStory] = {s.id: s for s in stories}
    visited = set()
    to_check = deque(story.dependencies)

    while to_check:
        dep_id = to_check.popleft()
        if dep_id in visited:
            continue
        visited.add(dep_id)

        dep_story = by_id.get(dep_id)
        if dep_story is None:
            raise DependencyError(DependencyErrorKind.MISSING, story.id, dep_id, list(by_id))
        if not dep_story.is_completed:
            raise DependencyError(DependencyErrorKind.UNWRITTEN, story.id, dep_id)
        to_check.extend(dep_story.dependencies)

    logger.debug(f"Dependencies of {story.id} satisfied ({len(visited)} checked)")


def dependency_order(stories: List[ShellStory]) -> List[str]:
    """
    Story ids ordered so each story follows its dependencies.

    Ties keep document order.

    Raises:
        DependencyError: MISSING for unknown ids, CYCLE for circular dependencies
    """
    by_id = {s.id: s for s in stories}
    ordered: List[str] = []
    state: Dict[str, str] = {}

    def visit(story: ShellStory) -> None:
        state[story.id] = "visiting"
        for dep_id in story.dependencies:
            if dep_id not in by_id:
                raise DependencyError(DependencyErrorKind.MISSING, story.id, dep_id, list(by_id))
            dep_state = state.get(dep_id)
            if dep_state == "visiting":
                raise DependencyError(DependencyErrorKind.CYCLE, story.id, dep_id)
            if dep_state is None:
                visit(by_id[dep_id])
        state[story.id] = "done"
        ordered.append(story.id)

    for story in stories:
        if story.id not in state:
            visit(story)
    return ordered
