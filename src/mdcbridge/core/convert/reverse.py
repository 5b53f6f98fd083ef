"""Editor document -> markup AST conversion"""

import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional

from mdcbridge.core.convert.marks import (
    group_by_signature, join_strings, link_attrs_to_markup, merge_adjacent, strip_marks, wrap,
)
from mdcbridge.core.dispatch import DispatchTable
from mdcbridge.core.editor import (
    NODE_TYPES, Binding, Blockquote, BulletList, CodeBlock, EditorDoc, EditorModel, Frontmatter,
    Heading, HorizontalRule, Image, InlineElement, Link, ListItem, OrderedList, Paragraph, Slot,
    SpanStyle, Text, UnknownNode, Video,
)
from mdcbridge.core.editor import Comment as EditorComment
from mdcbridge.core.editor import Element as EditorElement
from mdcbridge.core.models import Comment, Element, MarkupNode, MarkupTree, code_block_element
from mdcbridge.core.utils.slug import Slugger

if TYPE_CHECKING:
    from mdcbridge.core.highlight import Highlighter


logger = logging.getLogger(__name__)

IMAGE_ATTR_ORDER = ('src', 'alt', 'title', 'width', 'height', 'class')
VIDEO_ATTR_ORDER = ('src', 'poster', 'width', 'height', 'class')
VIDEO_FLAGS = ('controls', 'autoplay', 'loop', 'muted')

_kinds: DispatchTable[type] = DispatchTable("editor-to-markup")


def plain_text(node: EditorModel) -> str:
    if isinstance(node, Text):
        return node.value
    return ''.join(plain_text(c) for c in getattr(node, 'content', ()))


def _meaningful(value: Any) -> bool:
    return not (value is None or value is False or value == '')


def _ordered_props(props: dict[str, Any], order: tuple[str, ...], skip: tuple[str, ...] = ()) -> dict[str, Any]:
    """Known keys first in a fixed order, then the rest; empty values dropped."""
    attrs = {k: props[k] for k in order if _meaningful(props.get(k))}
    for key, value in props.items():
        if key not in attrs and key not in skip and _meaningful(value):
            attrs[key] = value
    return attrs


class ReverseConverter:
    """Single-use converter; heading ids are recomputed from an empty registry."""

    def __init__(self, highlighter: Optional["Highlighter"] = None) -> None:
        self.slugger = Slugger()
        self.highlighter = highlighter

    def document(self, doc: EditorDoc) -> MarkupTree:
        fm = doc.frontmatter
        frontmatter = {'__error__': fm.error} if fm.error else dict(fm.data)
        tree = MarkupTree(nodes=tuple(self.blocks(doc.body)), frontmatter=frontmatter, meta={})
        if self.highlighter is not None:
            tree = self.highlighter.highlight(tree)
        return tree

    def node(self, node: EditorModel) -> list[MarkupNode]:
        return _kinds.lookup(type(node))(self, node)

    def blocks(self, nodes: Iterable[EditorModel]) -> list[MarkupNode]:
        return [m for n in nodes for m in self.node(n)]

    def inline(self, nodes: Iterable[EditorModel]) -> list[MarkupNode]:
        """Re-encode inline content, wrapping each run of shared marks."""
        out: list[MarkupNode] = []
        for group in group_by_signature(nodes):
            if not group.marks:
                out.extend(self.blocks(group.items))
            elif len(group.marks) == 1 and len(group.items) > 1:
                children = join_strings(self.blocks(strip_marks(n) for n in group.items))
                out.extend(wrap(children, group.marks))
            else:
                for item in group.items:
                    out.extend(wrap(self.node(strip_marks(item)), group.marks))
        return merge_adjacent(out)

    def body(self, nodes: Iterable[EditorModel], force: bool = False) -> list[MarkupNode]:
        """Children of a component or slot; a lone paragraph is unwrapped."""
        nodes = list(nodes)
        if len(nodes) == 1 and isinstance(nodes[0], Paragraph) and (force or not nodes[0].props):
            return self.inline(nodes[0].content)
        return self.blocks(nodes)


@_kinds.register(Frontmatter)
def _frontmatter(self: ReverseConverter, node: Frontmatter) -> list[MarkupNode]:
    return []


@_kinds.register(Paragraph)
def _paragraph(self: ReverseConverter, node: Paragraph) -> list[MarkupNode]:
    return [Element('p', dict(node.props), tuple(self.inline(node.content)))]


@_kinds.register(Heading)
def _heading(self: ReverseConverter, node: Heading) -> list[MarkupNode]:
    attrs = {**node.props, 'id': self.slugger.slug(plain_text(node))}
    return [Element(f"h{node.level}", attrs, tuple(self.inline(node.content)))]


@_kinds.register(BulletList)
def _bullet_list(self: ReverseConverter, node: BulletList) -> list[MarkupNode]:
    return [Element('ul', dict(node.props), tuple(self.blocks(node.content)))]


@_kinds.register(OrderedList)
def _ordered_list(self: ReverseConverter, node: OrderedList) -> list[MarkupNode]:
    attrs = {'start': node.start} if node.start is not None else {}
    return [Element('ol', {**attrs, **node.props}, tuple(self.blocks(node.content)))]


@_kinds.register(ListItem)
def _list_item(self: ReverseConverter, node: ListItem) -> list[MarkupNode]:
    content = list(node.content)
    paragraphs = [n for n in content if isinstance(n, Paragraph)]
    if len(paragraphs) == 1 and content[0] is paragraphs[0]:
        children = [*self.inline(content[0].content), *self.blocks(content[1:])]
    else:
        children = self.blocks(content)
    return [Element('li', {}, tuple(children))]


@_kinds.register(Blockquote)
def _blockquote(self: ReverseConverter, node: Blockquote) -> list[MarkupNode]:
    return [Element('blockquote', dict(node.props), tuple(self.blocks(node.content)))]


@_kinds.register(HorizontalRule)
def _horizontal_rule(self: ReverseConverter, node: HorizontalRule) -> list[MarkupNode]:
    return [Element('hr', {})]


@_kinds.register(Text)
def _text(self: ReverseConverter, node: Text) -> list[MarkupNode]:
    return wrap([node.value], node.marks) if node.marks else [node.value]


@_kinds.register(EditorElement)
def _element(self: ReverseConverter, node: EditorElement) -> list[MarkupNode]:
    content: list[EditorModel] = []
    for child in node.content:
        if isinstance(child, Slot) and child.synthetic:
            content.extend(child.content)
        else:
            content.append(child)
    return [Element(node.tag, dict(node.props), tuple(self.body(content, force=node.wrapped)))]


@_kinds.register(InlineElement)
def _inline_element(self: ReverseConverter, node: InlineElement) -> list[MarkupNode]:
    return [Element(node.tag, dict(node.props), tuple(self.inline(node.content)))]


@_kinds.register(Slot)
def _slot(self: ReverseConverter, node: Slot) -> list[MarkupNode]:
    props = dict(node.props)
    if 'name' not in props and not any(k.startswith('v-slot:') for k in props):
        props = {f"v-slot:{node.name}": '', **props}
    return [Element('template', props, tuple(self.body(node.content)))]


@_kinds.register(CodeBlock)
def _code_block(self: ReverseConverter, node: CodeBlock) -> list[MarkupNode]:
    return [code_block_element(node.raw_source, node.language, node.filename)]


@_kinds.register(Image)
def _image(self: ReverseConverter, node: Image) -> list[MarkupNode]:
    return [Element(node.tag, _ordered_props(node.props, IMAGE_ATTR_ORDER))]


@_kinds.register(Video)
def _video(self: ReverseConverter, node: Video) -> list[MarkupNode]:
    flags = {f":{k}" for k in VIDEO_FLAGS} | set(VIDEO_FLAGS)
    attrs = _ordered_props(node.props, VIDEO_ATTR_ORDER, skip=tuple(flags))
    for flag in VIDEO_FLAGS:
        if node.props.get(flag) in (True, 'true') or node.props.get(f":{flag}") in (True, 'true'):
            attrs[f":{flag}"] = 'true'
    return [Element('video', attrs)]


@_kinds.register(Link)
def _link(self: ReverseConverter, node: Link) -> list[MarkupNode]:
    attrs = {'href': node.href, 'target': node.target, 'rel': node.rel, **node.props}
    attrs = {k: v for k, v in link_attrs_to_markup(attrs).items() if _meaningful(v)}
    return [Element('a', attrs, tuple(self.inline(node.content)))]


@_kinds.register(SpanStyle)
def _span(self: ReverseConverter, node: SpanStyle) -> list[MarkupNode]:
    attrs = dict(node.props)
    if node.style:
        attrs['style'] = node.style
    if node.css_class:
        attrs['class'] = node.css_class
    return [Element('span', attrs, tuple(self.inline(node.content)))]


@_kinds.register(Binding)
def _binding(self: ReverseConverter, node: Binding) -> list[MarkupNode]:
    attrs = {'value': node.value, 'defaultValue': node.default_value}
    return [Element('binding', {k: v for k, v in attrs.items() if v is not None})]


@_kinds.register(EditorComment)
def _comment(self: ReverseConverter, node: EditorComment) -> list[MarkupNode]:
    return [Comment(node.text)]


@_kinds.register(UnknownNode)
def _unknown(self: ReverseConverter, node: UnknownNode) -> list[MarkupNode]:
    logger.warning("unknown editor node %r rendered as a placeholder", node.type)
    return [Element('p', {}, (f"--- Unknown node: {node.type} ---",))]


_kinds.require(NODE_TYPES)


def editor_to_markup(doc: EditorDoc, highlighter: Optional["Highlighter"] = None) -> MarkupTree:
    """Convert an editor document back to a markup tree, optionally highlighting code."""
    return ReverseConverter(highlighter).document(doc)


def reverse_slice(nodes: Iterable[EditorModel], highlighter: Optional["Highlighter"] = None) -> MarkupTree:
    """Convert a fragment of editor nodes; frontmatter nodes are dropped."""
    body = tuple(n for n in nodes if not isinstance(n, Frontmatter))
    return ReverseConverter(highlighter).document(EditorDoc(content=(Frontmatter(), *body)))
