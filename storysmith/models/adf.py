"""
Atlassian Document Format (ADF) model.

Nodes use an open string tag: known kinds are listed in NodeKind, anything
else is kept as an opaque node whose attributes, marks, children and any
unrecognised keys survive load/dump untouched.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class NodeKind(str, Enum):
    """Node types this package understands."""

    DOC = "doc"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BULLET_LIST = "bulletList"
    ORDERED_LIST = "orderedList"
    LIST_ITEM = "listItem"
    TEXT = "text"
    HARD_BREAK = "hardBreak"
    INLINE_CARD = "inlineCard"
    CODE_BLOCK = "codeBlock"
    TABLE = "table"
    TABLE_ROW = "tableRow"
    TABLE_CELL = "tableCell"
    TABLE_HEADER = "tableHeader"
    BLOCKQUOTE = "blockquote"
    RULE = "rule"
    MENTION = "mention"
    EMOJI = "emoji"


class MarkKind(str, Enum):
    """Inline decorations this package understands."""

    STRONG = "strong"
    EM = "em"
    CODE = "code"
    LINK = "link"
    STRIKE = "strike"
    UNDERLINE = "underline"


_KNOWN_KINDS = {kind.value: kind for kind in NodeKind}


class Mark(BaseModel):
    """Decoration on a text node (strong, em, code, link, ...)."""

    model_config = ConfigDict(extra="allow")

    type: str
    attrs: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class Node(BaseModel):
    """
    A single ADF node.

    Only keys present on input (or assigned later) are serialized, so a node
    that was never touched dumps back to the structure it was loaded from.
    """

    model_config = ConfigDict(extra="allow")

    type: str
    attrs: Optional[Dict[str, Any]] = None
    marks: Optional[List[Mark]] = None
    text: Optional[str] = None
    content: Optional[List["Node"]] = None

    @model_validator(mode="after")
    def _text_or_content(self) -> "Node":
        if self.text is not None and self.content is not None:
            raise ValueError(f"'{self.type}' node cannot carry both text and content")
        return self

    @property
    def kind(self) -> Optional[NodeKind]:
        """Known kind of this node, or None for an opaque node."""
        return _KNOWN_KINDS.get(self.type)

    @property
    def is_opaque(self) -> bool:
        return self.kind is None

    def is_text(self) -> bool:
        return self.type == NodeKind.TEXT.value

    def get_mark(self, mark_type: Union[MarkKind, str]) -> Optional[Mark]:
        wanted = mark_type.value if isinstance(mark_type, MarkKind) else mark_type
        for mark in self.marks or []:
            if mark.type == wanted:
                return mark
        return None

    def has_mark(self, mark_type: Union[MarkKind, str]) -> bool:
        return self.get_mark(mark_type) is not None

    def mark_attr(self, mark_type: Union[MarkKind, str], name: str) -> Optional[Any]:
        mark = self.get_mark(mark_type)
        if mark is None or not mark.attrs:
            return None
        return mark.attrs.get(name)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


Node.model_rebuild()


class Document(BaseModel):
    """Root of an ADF tree."""

    model_config = ConfigDict(extra="allow")

    version: int = 1
    type: str = NodeKind.DOC.value
    content: List[Node] = Field(default_factory=list)

    @classmethod
    def from_adf(cls, raw: Union[Dict[str, Any], Iterable[Dict[str, Any]], None]) -> "Document":
        """
        Build a Document from an ADF dict or a bare list of node dicts.

        Args:
            raw: ADF document dict, list of node dicts, or None (empty doc)

        Returns:
            Document instance
        """
        if raw is None:
            return cls(content=[])
        if isinstance(raw, dict):
            return cls.model_validate(raw)
        return cls(content=[Node.model_validate(node) for node in raw])

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", exclude_unset=True)
        # Envelope keys are always written, even when defaulted
        data["version"] = self.version
        data["type"] = self.type
        data["content"] = [node.to_dict() for node in self.content]
        return data


def validate_adf(adf: Any) -> bool:
    """
    Validate the ADF document envelope.

    Args:
        adf: Document instance or raw dict

    Returns:
        True if the envelope is version 1, type "doc" with list content
    """
    if isinstance(adf, Document):
        adf = adf.to_dict()
    if not isinstance(adf, dict):
        logger.warning(f"Invalid ADF structure - expected dict, got {type(adf).__name__}")
        return False

    has_required_fields = (
        adf.get("version") == 1
        and adf.get("type") == NodeKind.DOC.value
        and isinstance(adf.get("content"), list)
    )
    if not has_required_fields:
        logger.warning("Invalid ADF structure - missing required fields")
        return False

    try:
        Document.model_validate(adf)
    except ValidationError as e:
        logger.warning(f"Invalid ADF structure - malformed nodes: {e.error_count()} error(s)")
        return False
    return True
