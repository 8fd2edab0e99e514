"""
Pytest configuration and fixtures.
"""

import os
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest
from loguru import logger

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["ATLASSIAN_BASE_URL"] = "https://test.atlassian.net"
os.environ["ATLASSIAN_EMAIL"] = "test@example.com"
os.environ["ATLASSIAN_API_TOKEN"] = "test-token"


def _text(value: str, *marks: str, href: Optional[str] = None) -> Dict:
    node = {"type": "text", "text": value}
    mark_list = [{"type": mark} for mark in marks]
    if href:
        mark_list.append({"type": "link", "attrs": {"href": href}})
    if mark_list:
        node["marks"] = mark_list
    return node


def _list_item(*content: Dict) -> Dict:
    return {"type": "listItem", "content": list(content)}


def _paragraph(*content: Dict) -> Dict:
    return {"type": "paragraph", "content": list(content)}


def _story_item(
    story_id: str,
    title: str,
    description: str,
    screens: Optional[List[str]] = None,
    dependencies: Optional[List[str]] = None,
) -> Dict:
    line = _paragraph(
        _text(story_id, "code"),
        _text(" "),
        _text(title, "strong"),
        _text(f" ⟩ {description}"),
    )
    nested = []
    if screens is not None:
        screen_nodes = [_text("SCREENS: ")]
        for index, url in enumerate(screens):
            if index:
                screen_nodes.append({"type": "hardBreak"})
            screen_nodes.append(_text(f"Screen {index + 1}", href=url))
        nested.append(_list_item(_paragraph(*screen_nodes)))
    if dependencies is not None:
        deps = ", ".join(dependencies) if dependencies else "None"
        nested.append(_list_item(_paragraph(_text(f"DEPENDENCIES: {deps}"))))

    item = _list_item(line)
    if nested:
        item["content"].append({"type": "bulletList", "content": nested})
    return item


def _heading(label: str, level: int = 2) -> Dict:
    return {"type": "heading", "attrs": {"level": level}, "content": [_text(label)]}


@pytest.fixture
def adf_text():
    """Factory for ADF text nodes: adf_text("x", "strong", href=...)."""
    return _text


@pytest.fixture
def adf_paragraph():
    return _paragraph


@pytest.fixture
def adf_list_item():
    return _list_item


@pytest.fixture
def adf_heading():
    return _heading


@pytest.fixture
def story_item():
    """Factory for a shell story listItem dict."""
    return _story_item


@pytest.fixture
def shell_stories_section() -> List[Dict]:
    """Shell Stories section as raw ADF dicts (heading included)."""
    return [
        _heading("Shell Stories"),
        {
            "type": "bulletList",
            "content": [
                _story_item(
                    "st001",
                    "Login",
                    "User can sign in with email",
                    screens=[
                        "https://figma.com/file/abc?node-id=1",
                        "https://figma.com/file/abc?node-id=2",
                    ],
                    dependencies=[],
                ),
                _story_item("st002", "Dashboard", "User sees their projects", dependencies=["st001"]),
                _story_item("st003", "Settings", "User edits preferences", dependencies=["st001", "st002"]),
            ],
        },
    ]


@pytest.fixture
def epic_adf(shell_stories_section) -> Dict:
    """Epic description with context before and a section after the shell stories."""
    return {
        "version": 1,
        "type": "doc",
        "content": [
            _heading("Overview"),
            _paragraph(_text("Project management for small teams.")),
            *shell_stories_section,
            _heading("Other"),
            _paragraph(_text("Out of scope notes.")),
        ],
    }


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def loguru_messages():
    """Collect loguru records emitted during a test."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record), level="DEBUG")
    yield messages
    logger.remove(handler_id)
