"""Mark algebra: composing, grouping and re-wrapping character-level formatting"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from mdcbridge.core.editor import EditorModel, Link, Mark, MarkType, Text
from mdcbridge.core.models import Element, MarkupNode


MARK_TAGS: dict[str, MarkType] = {
    'strong': MarkType.bold,
    'em':     MarkType.italic,
    'del':    MarkType.strike,
    'code':   MarkType.code,
    'a':      MarkType.link,
}
TAG_FOR_MARK: dict[MarkType, str] = {v: k for k, v in MARK_TAGS.items()}
MERGEABLE_TAGS = frozenset({'strong', 'em', 'del', 'code'})

EXTERNAL_RE = re.compile(r'^https?://', re.IGNORECASE)
DEFAULT_TARGET = '_blank'
DEFAULT_REL = 'noopener noreferrer nofollow'

_EDGE_WS_RE = re.compile(r'^(\s*)(.*?)(\s*)$', re.DOTALL)


@dataclass(frozen=True)
class MarkGroup:
    marks: tuple[Mark, ...]
    items: tuple[EditorModel, ...]


def is_external(href: Any) -> bool:
    return isinstance(href, str) and bool(EXTERNAL_RE.match(href))


def compose(mark: Mark, accumulated: Sequence[Mark]) -> tuple[Mark, ...]:
    """Add a mark nested inside accumulated ones (innermost first)."""
    return (mark, *accumulated)


def signature(node: EditorModel) -> tuple[Mark, ...]:
    """The mark list a node participates in when grouping."""
    if isinstance(node, Text):
        return node.marks
    if isinstance(node, Link) and len(node.content) == 1 and isinstance(node.content[0], Text):
        return node.content[0].marks
    return ()


def group_by_signature(nodes: Iterable[EditorModel]) -> list[MarkGroup]:
    """Split nodes into maximal runs sharing an identical, order-sensitive mark list."""
    groups: list[MarkGroup] = []
    for node in nodes:
        sig = signature(node)
        if groups and groups[-1].marks == sig:
            last = groups[-1]
            groups[-1] = MarkGroup(last.marks, (*last.items, node))
        else:
            groups.append(MarkGroup(sig, (node,)))
    return groups


def strip_marks(node: EditorModel) -> EditorModel:
    """Return node without the marks its signature reports."""
    if isinstance(node, Text):
        return node.model_copy(update={'marks': ()})
    if isinstance(node, Link) and signature(node):
        return node.model_copy(update={'content': (strip_marks(node.content[0]),)})
    return node


def apply_marks(node: EditorModel, marks: Sequence[Mark]) -> EditorModel:
    """Add outer marks to every text leaf under node."""
    if not marks:
        return node
    if isinstance(node, Text):
        return node.model_copy(update={'marks': (*node.marks, *marks)})
    content = getattr(node, 'content', None)
    if content:
        return node.model_copy(update={'content': tuple(apply_marks(c, marks) for c in content)})
    return node


def link_attrs_from_markup(attrs: dict[str, Any]) -> dict[str, Any]:
    """Mark attrs for a link, with the external target/rel defaults filled in."""
    out = dict(attrs)
    if is_external(out.get('href')):
        out.setdefault('target', DEFAULT_TARGET)
        out.setdefault('rel', DEFAULT_REL)
    return out


def link_attrs_to_markup(attrs: dict[str, Any]) -> dict[str, Any]:
    """Markup attrs for a link: external links drop target and the default rel."""
    out = {k: v for k, v in attrs.items() if v is not None}
    if is_external(out.get('href')):
        out.pop('target', None)
        if out.get('rel') == DEFAULT_REL:
            out.pop('rel')
    return out


def mark_element(mark: Mark, children: list[MarkupNode]) -> Element:
    tag = TAG_FOR_MARK[mark.type]
    if mark.type is MarkType.link:
        attrs = link_attrs_to_markup(mark.attrs)
    elif mark.type is MarkType.code:
        attrs = {'language': mark.attrs['language']} if mark.attrs.get('language') else {}
    else:
        attrs = dict(mark.attrs)
    return Element(tag, attrs, tuple(children))


def wrap(children: list[MarkupNode], marks: Sequence[Mark]) -> list[MarkupNode]:
    """Wrap children in mark elements, innermost mark first.

    Whitespace at the edges of a plain-text payload is moved outside the wrapper,
    except under a code mark; whitespace-only payloads are returned unwrapped.
    """
    if not marks:
        return list(children)
    lead = trail = ''
    is_code = any(m.type is MarkType.code for m in marks)
    if not is_code and len(children) == 1 and isinstance(children[0], str):
        lead, core, trail = _EDGE_WS_RE.match(children[0]).groups()
        if not core:
            return list(children)
        children = [core]
    node: list[MarkupNode] = list(children)
    for mark in marks:
        node = [mark_element(mark, node)]
    return [n for n in (lead, *node, trail) if n != '']


def join_strings(nodes: Iterable[MarkupNode]) -> list[MarkupNode]:
    out: list[MarkupNode] = []
    for node in nodes:
        if isinstance(node, str):
            if node == '':
                continue
            if out and isinstance(out[-1], str):
                out[-1] = out[-1] + node
                continue
        out.append(node)
    return out


def _mergeable(a: MarkupNode, b: MarkupNode) -> bool:
    return (
        isinstance(a, Element) and isinstance(b, Element)
        and a.tag in MERGEABLE_TAGS and a.tag == b.tag and a.attrs == b.attrs
    )


def merge_adjacent(nodes: Iterable[MarkupNode]) -> list[MarkupNode]:
    """Merge same-tag, same-attrs mark elements that touch or sit one space apart."""
    out: list[MarkupNode] = []
    for node in join_strings(nodes):
        if out and _mergeable(out[-1], node):
            prev = out.pop()
            out.append(Element(prev.tag, prev.attrs, (*prev.children, *node.children)))
        elif len(out) >= 2 and out[-1] == ' ' and _mergeable(out[-2], node):
            out.pop()
            prev = out.pop()
            out.append(Element(prev.tag, prev.attrs, (*prev.children, ' ', *node.children)))
        else:
            out.append(node)
    return [
        Element(n.tag, n.attrs, tuple(merge_adjacent(n.children)))
        if isinstance(n, Element) and n.tag in MERGEABLE_TAGS else n
        for n in out
    ]
