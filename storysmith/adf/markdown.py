"""
ADF to markdown, for text-generation prompts only.

The conversion is lossy. Its output must never be parsed back into ADF or
fed to the completion marker; existing epic content is only ever edited as
ADF nodes.
"""

import re
from typing import List, Optional

from loguru import logger

from storysmith.adf.tree import plain_text
from storysmith.models.adf import Document, Mark, Node, NodeKind

INDENT = "  "


def render_markdown(nodes: List[Node]) -> str:
    """
    Render ADF nodes as markdown.

    Unknown block nodes render their children; unknown inline nodes and
    marks fall back to their raw text with a warning. Never raises for
    unfamiliar content.
    """
    return "".join(_render_block(node) for node in nodes)


def document_to_markdown(document: Document) -> str:
    """Render a whole document, degrading to plain text if rendering fails."""
    logger.info(f"Converting ADF to markdown ({len(document.content)} content blocks)")
    try:
        markdown = render_markdown(document.content)
    except Exception as e:
        logger.error(f"ADF to markdown conversion failed, falling back to plain text: {e}")
        text = " ".join(plain_text([node]) for node in document.content)
        return re.sub(r"\s+", " ", text).strip()
    logger.debug(f"ADF converted to markdown ({len(markdown)} chars)")
    return markdown


def _render_block(node: Node) -> str:
    kind = node.kind
    if kind == NodeKind.PARAGRAPH:
        return _render_inline(node.content) + "\n\n"
    if kind == NodeKind.HEADING:
        level = (node.attrs or {}).get("level") or 1
        return f"{'#' * level} {_render_inline(node.content)}\n\n"
    if kind == NodeKind.BULLET_LIST:
        return _render_list(node, 0, ordered=False) + "\n\n"
    if kind == NodeKind.ORDERED_LIST:
        return _render_list(node, 0, ordered=True) + "\n\n"
    if kind == NodeKind.CODE_BLOCK:
        return _render_code_block(node) + "\n\n"
    if kind == NodeKind.TABLE:
        return _render_table(node) + "\n\n"
    if kind == NodeKind.BLOCKQUOTE:
        return _render_blockquote(node) + "\n\n"
    if kind == NodeKind.RULE:
        return "---\n\n"
    if kind == NodeKind.LIST_ITEM:
        return _render_list_item(node, 0, "- ") + "\n\n"
    if kind in (NodeKind.TEXT, NodeKind.HARD_BREAK, NodeKind.INLINE_CARD,
                NodeKind.MENTION, NodeKind.EMOJI):
        return _render_inline([node])

    if node.content:
        return render_markdown(node.content)
    logger.warning(f"Unknown ADF node type: {node.type}")
    return node.text or ""


def _render_list(node: Node, depth: int, ordered: bool) -> str:
    lines = []
    for index, item in enumerate(node.content or [], start=1):
        if item.type != NodeKind.LIST_ITEM.value:
            continue
        bullet = f"{index}. " if ordered else "- "
        rendered = _render_list_item(item, depth, bullet)
        if rendered:
            lines.append(rendered)
    return "\n".join(lines)


def _render_list_item(item: Node, depth: int, bullet: str) -> str:
    indent = INDENT * depth
    lines = []
    for child in item.content or []:
        kind = child.kind
        if kind == NodeKind.PARAGRAPH:
            text = _render_inline(child.content).strip()
            # Continuation lines from hard breaks stay inside the bullet
            text = text.replace("\n", "\n" + indent + " " * len(bullet))
            prefix = bullet if not lines else " " * len(bullet)
            lines.append(f"{indent}{prefix}{text}")
        elif kind == NodeKind.BULLET_LIST:
            lines.append(_render_list(child, depth + 1, ordered=False))
        elif kind == NodeKind.ORDERED_LIST:
            lines.append(_render_list(child, depth + 1, ordered=True))
        else:
            flattened = render_markdown([child]).strip()
            if flattened:
                lines.append(f"{indent}{' ' * len(bullet)}{flattened}")
    return "\n".join(line for line in lines if line)


def _render_code_block(node: Node) -> str:
    language = (node.attrs or {}).get("language") or ""
    code = "".join(child.text or "" for child in node.content or [])
    return f"```{language}\n{code}\n```"


def _render_table(node: Node) -> str:
    rows: List[List[str]] = []
    for row in node.content or []:
        if row.type != NodeKind.TABLE_ROW.value:
            continue
        cells = []
        for cell in row.content or []:
            if cell.type in (NodeKind.TABLE_CELL.value, NodeKind.TABLE_HEADER.value):
                cell_text = " ".join(
                    _render_block(child).strip() for child in cell.content or []
                )
                cells.append(cell_text.replace("\n", " ").replace("|", "\\|"))
        rows.append(cells)

    if not rows:
        return ""

    lines = ["| " + " | ".join(rows[0]) + " |"]
    lines.append("| " + " | ".join("---" for _ in rows[0]) + " |")
    for cells in rows[1:]:
        lines.append("| " + " | ".join(cells) + " |")
    return "\n".join(lines)


def _render_blockquote(node: Node) -> str:
    inner = render_markdown(node.content or [])
    return "\n".join(f"> {line}" for line in inner.split("\n") if line.strip())


def _render_inline(nodes: Optional[List[Node]]) -> str:
    parts = []
    for node in nodes or []:
        kind = node.kind
        attrs = node.attrs or {}
        if kind == NodeKind.TEXT:
            parts.append(_apply_marks(node.text or "", node.marks))
        elif kind == NodeKind.HARD_BREAK:
            parts.append("\n")
        elif kind == NodeKind.INLINE_CARD:
            url = attrs.get("url", "")
            parts.append(f"[{attrs.get('title') or url}]({url})")
        elif kind == NodeKind.MENTION:
            parts.append(f"@[{attrs.get('text') or attrs.get('id') or 'unknown'}]")
        elif kind == NodeKind.EMOJI:
            parts.append(f":{attrs.get('shortName', 'emoji').strip(':')}:")
        else:
            logger.warning(f"Unknown inline ADF node type: {node.type}")
            parts.append(node.text if node.text is not None else plain_text(node.content))
    return "".join(parts)


def _apply_marks(text: str, marks: Optional[List[Mark]]) -> str:
    if not marks or not text:
        return text

    # Links wrap last so emphasis stays inside the link text
    ordered = sorted(marks, key=lambda mark: mark.type == "link")
    result = text
    for mark in ordered:
        if mark.type == "strong":
            result = f"**{result}**"
        elif mark.type == "em":
            result = f"*{result}*"
        elif mark.type == "code":
            result = f"`{result}`"
        elif mark.type == "link":
            result = f"[{result}]({(mark.attrs or {}).get('href', '')})"
        elif mark.type == "strike":
            result = f"~~{result}~~"
        elif mark.type == "underline":
            result = f"<u>{result}</u>"
        else:
            logger.warning(f"Unknown mark type: {mark.type}")
    return result
