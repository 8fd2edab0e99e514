"""
Generic traversal helpers for ADF content arrays.

None of these helpers inspect opaque nodes beyond their `content`; anything
they do not understand is passed through unchanged.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from storysmith.models.adf import Node, NodeKind

NodeOrKind = Union[NodeKind, str]


def _kind_value(kind: NodeOrKind) -> str:
    return kind.value if isinstance(kind, NodeKind) else kind


def load_nodes(raw: Iterable[Dict[str, Any]]) -> List[Node]:
    """Validate a list of ADF node dicts into Node objects."""
    return [Node.model_validate(item) for item in raw]


def dump_nodes(nodes: Iterable[Node]) -> List[Dict[str, Any]]:
    """Serialize nodes back to ADF dicts."""
    return [node.to_dict() for node in nodes]


def clone_nodes(nodes: Iterable[Node]) -> List[Node]:
    """Deep copy a content array; the copy shares no node with the input."""
    return [node.model_copy(deep=True) for node in nodes]


def walk(nodes: List[Node]) -> Iterator[Tuple[Node, List[Node], int]]:
    """
    Depth-first pre-order traversal.

    Yields (node, parent_content, index) so callers can replace
    parent_content[index] in place. Children are read after the node is
    yielded, so a replacement made by the caller is the one descended into.
    """
    for index in range(len(nodes)):
        yield nodes[index], nodes, index
        node = nodes[index]
        if node.content:
            yield from walk(node.content)


def children_of_type(source: Union[Node, List[Node]], kind: NodeOrKind) -> Iterator[Node]:
    """Yield nodes of the given kind that carry content."""
    wanted = _kind_value(kind)
    nodes = source if isinstance(source, list) else [source]
    for node in nodes:
        if node.type == wanted and node.content is not None:
            yield node


def first_child_of_type(nodes: Optional[List[Node]], kind: NodeOrKind) -> Optional[Node]:
    wanted = _kind_value(kind)
    for node in nodes or []:
        if node.type == wanted:
            return node
    return None


def plain_text(nodes: Optional[Iterable[Node]]) -> str:
    """Concatenate the text of a subtree; hard breaks become newlines."""
    parts = []
    for node in nodes or []:
        if node.is_text():
            parts.append(node.text or "")
        elif node.type == NodeKind.HARD_BREAK.value:
            parts.append("\n")
        elif node.content:
            parts.append(plain_text(node.content))
    return "".join(parts)


def count_nodes(nodes: Iterable[Node], kind: NodeOrKind) -> int:
    """Count nodes of a kind anywhere in the subtree."""
    wanted = _kind_value(kind)
    return sum(1 for node, _, _ in walk(list(nodes)) if node.type == wanted)
