"""Markup AST: the immutable element tree exchanged with the markdown parser and renderer"""

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Element:
    """A tagged element; attrs keep insertion order."""
    tag: str
    attrs: dict[str, Any] = field(default_factory=dict)
    children: tuple["MarkupNode", ...] = ()


@dataclass(frozen=True)
class Comment:
    text: str


MarkupNode = Union[str, Element, Comment]


@dataclass(frozen=True)
class MarkupTree:
    """Parsed document: body nodes plus frontmatter and free-form meta."""
    nodes: tuple[MarkupNode, ...] = ()
    frontmatter: Any = field(default_factory=dict)    # a mapping unless malformed
    meta: dict[str, Any] = field(default_factory=dict)


def el(tag: str, attrs: dict[str, Any] | None = None, *children: MarkupNode) -> Element:
    """Shorthand constructor mirroring the wire layout [tag, attrs, ...children]."""
    return Element(tag, dict(attrs or {}), tuple(children))


def text_content(node: MarkupNode) -> str:
    """Concatenate all leaf text under node; comments contribute nothing."""
    if isinstance(node, str):
        return node
    if isinstance(node, Element):
        return ''.join(text_content(c) for c in node.children)
    return ''


def code_block_element(code: str, language: str | None = None, filename: str | None = None) -> Element:
    """Build the canonical `pre` element; the raw source lives in attrs['code']."""
    attrs: dict[str, Any] = {}
    if language:
        attrs['language'] = language
    if filename:
        attrs['filename'] = filename
    attrs['code'] = code
    inner = el('code', {'__ignoreMap': ''}, code) if code else el('code', {'__ignoreMap': ''})
    return el('pre', attrs, inner)


def without_tag(nodes: tuple[MarkupNode, ...], tag: str) -> tuple[MarkupNode, ...]:
    """Return nodes with every element named tag removed, recursively."""
    kept = []
    for node in nodes:
        if isinstance(node, Element):
            if node.tag == tag:
                continue
            node = Element(node.tag, node.attrs, without_tag(node.children, tag))
        kept.append(node)
    return tuple(kept)


# --- wire format: element = [tag, attrs, *children], comment = [None, attrs, text], text = str ---

def node_to_wire(node: MarkupNode) -> Any:
    if isinstance(node, str):
        return node
    if isinstance(node, Comment):
        return [None, {}, node.text]
    return [node.tag, dict(node.attrs), *(node_to_wire(c) for c in node.children)]


def node_from_wire(data: Any) -> MarkupNode:
    """Decode one wire node; anything unrecognised decodes to empty text."""
    if isinstance(data, str):
        return data
    if not isinstance(data, (list, tuple)) or not data:
        return ''
    tag = data[0]
    attrs = data[1] if len(data) > 1 and isinstance(data[1], dict) else {}
    if tag is None:
        return Comment(str(data[2]) if len(data) > 2 else '')
    return Element(str(tag), dict(attrs), tuple(node_from_wire(c) for c in data[2:]))


def tree_to_wire(tree: MarkupTree) -> dict[str, Any]:
    return {
        "nodes": [node_to_wire(n) for n in tree.nodes],
        "frontmatter": tree.frontmatter,
        "meta": dict(tree.meta),
    }


def tree_from_wire(data: dict[str, Any]) -> MarkupTree:
    return MarkupTree(
        nodes=tuple(node_from_wire(n) for n in data.get("nodes") or []),
        frontmatter=data.get("frontmatter", {}) if data.get("frontmatter") is not None else {},
        meta=dict(data.get("meta") or {}),
    )
