"""
Unit tests for the ADF document model.
"""

import pytest
from pydantic import ValidationError

from storysmith.models.adf import Document, MarkKind, Node, NodeKind, validate_adf


class TestNode:
    """Test suite for Node."""

    def test_unknown_node_round_trips_verbatim(self):
        raw = {
            "type": "panel",
            "attrs": {"panelType": "info"},
            "localId": "abc-123",
            "content": [
                {"type": "paragraph", "content": [{"type": "text", "text": "Heads up"}]},
                {"type": "futureInline", "attrs": {"x": [1, 2]}},
            ],
        }

        node = Node.model_validate(raw)

        assert node.is_opaque
        assert node.kind is None
        assert node.to_dict() == raw

    def test_known_kind(self):
        node = Node.model_validate({"type": "bulletList", "content": []})

        assert node.kind == NodeKind.BULLET_LIST
        assert not node.is_opaque

    def test_absent_keys_are_not_serialized(self):
        node = Node.model_validate({"type": "hardBreak"})

        assert node.to_dict() == {"type": "hardBreak"}

    def test_text_and_content_are_exclusive(self):
        with pytest.raises(ValidationError):
            Node.model_validate({"type": "text", "text": "x", "content": []})

    def test_mark_helpers(self, adf_text):
        node = Node.model_validate(adf_text("Login", "strong", href="https://jira/PROJ-1"))

        assert node.has_mark(MarkKind.STRONG)
        assert node.has_mark("link")
        assert not node.has_mark(MarkKind.CODE)
        assert node.mark_attr(MarkKind.LINK, "href") == "https://jira/PROJ-1"
        assert node.mark_attr(MarkKind.STRONG, "href") is None

    def test_assigned_fields_are_serialized(self):
        node = Node.model_validate({"type": "text", "text": "a"})
        node.text = "b"

        assert node.to_dict() == {"type": "text", "text": "b"}


class TestDocument:
    """Test suite for Document."""

    def test_from_adf_dict(self, epic_adf):
        document = Document.from_adf(epic_adf)

        assert document.version == 1
        assert document.to_dict() == epic_adf

    def test_from_adf_node_list(self, shell_stories_section):
        document = Document.from_adf(shell_stories_section)

        assert document.type == "doc"
        assert len(document.content) == 2
        assert document.to_dict()["content"] == shell_stories_section

    def test_from_adf_none(self):
        assert Document.from_adf(None).content == []


class TestValidateAdf:
    """Test suite for validate_adf."""

    def test_valid_document(self, epic_adf):
        assert validate_adf(epic_adf) is True
        assert validate_adf(Document.from_adf(epic_adf)) is True

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            [],
            {"version": 2, "type": "doc", "content": []},
            {"version": 1, "type": "paragraph", "content": []},
            {"version": 1, "type": "doc"},
            {"version": 1, "type": "doc", "content": [{"type": "text", "text": "x", "content": []}]},
        ],
    )
    def test_invalid_documents(self, raw):
        assert validate_adf(raw) is False
