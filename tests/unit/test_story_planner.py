"""
Unit tests for story selection and dependency checks.
"""

import pytest

from storysmith.core.errors import DependencyError, DependencyErrorKind
from storysmith.models.adf import Node
from storysmith.models.shell_story import ShellStory
from storysmith.stories.planner import dependency_order, find_next_unwritten_story, validate_dependencies


def _story(story_id, dependencies=(), done=False, position=0):
    return ShellStory(
        id=story_id,
        title=story_id.upper(),
        description="d",
        reference_url=f"https://jira/{story_id}" if done else None,
        dependencies=list(dependencies),
        position=position,
        source=Node(type="listItem", content=[]),
    )


class TestFindNextUnwrittenStory:
    """Test suite for find_next_unwritten_story."""

    def test_first_unwritten_in_document_order(self):
        stories = [_story("st001", done=True), _story("st002"), _story("st003")]

        assert find_next_unwritten_story(stories).id == "st002"

    def test_all_written(self):
        assert find_next_unwritten_story([_story("st001", done=True)]) is None

    def test_empty_roster(self):
        assert find_next_unwritten_story([]) is None


class TestValidateDependencies:
    """Test suite for validate_dependencies."""

    def test_written_dependencies_pass(self):
        stories = [
            _story("st001", done=True),
            _story("st002", ["st001"], done=True),
            _story("st003", ["st001", "st002"]),
        ]

        validate_dependencies(stories[2], stories)

    def test_missing_dependency(self):
        stories = [_story("st001", done=True), _story("st002", ["st009"])]

        with pytest.raises(DependencyError) as exc_info:
            validate_dependencies(stories[1], stories)

        assert exc_info.value.kind == DependencyErrorKind.MISSING
        assert exc_info.value.dependency_id == "st009"
        assert exc_info.value.available == ["st001", "st002"]

    def test_unwritten_dependency(self):
        stories = [_story("st001"), _story("st002", ["st001"])]

        with pytest.raises(DependencyError) as exc_info:
            validate_dependencies(stories[1], stories)

        assert exc_info.value.kind == DependencyErrorKind.UNWRITTEN
        assert exc_info.value.story_id == "st002"

    def test_transitive_dependencies_are_checked(self):
        stories = [
            _story("st001"),
            _story("st002", ["st001"], done=True),
            _story("st003", ["st002"]),
        ]

        with pytest.raises(DependencyError) as exc_info:
            validate_dependencies(stories[2], stories)

        assert exc_info.value.dependency_id == "st001"

    def test_written_cycle_terminates(self):
        stories = [
            _story("st001", ["st002"], done=True),
            _story("st002", ["st001"], done=True),
            _story("st003", ["st001"]),
        ]

        validate_dependencies(stories[2], stories)


class TestDependencyOrder:
    """Test suite for dependency_order."""

    def test_dependencies_come_first(self):
        stories = [_story("st001", ["st003"]), _story("st002"), _story("st003", ["st002"])]

        assert dependency_order(stories) == ["st002", "st003", "st001"]

    def test_independent_stories_keep_document_order(self):
        stories = [_story("st001"), _story("st002"), _story("st003")]

        assert dependency_order(stories) == ["st001", "st002", "st003"]

    def test_cycle(self):
        stories = [_story("st001", ["st002"]), _story("st002", ["st001"])]

        with pytest.raises(DependencyError) as exc_info:
            dependency_order(stories)

        assert exc_info.value.kind == DependencyErrorKind.CYCLE

    def test_missing(self):
        with pytest.raises(DependencyError) as exc_info:
            dependency_order([_story("st001", ["nope1"])])

        assert exc_info.value.kind == DependencyErrorKind.MISSING
