"""Markup AST -> editor document conversion"""

import logging
from typing import Any, Iterable

from mdcbridge.core.convert.marks import MARK_TAGS, compose, apply_marks, link_attrs_from_markup
from mdcbridge.core.dispatch import DispatchTable
from mdcbridge.core.editor import (
    Binding, Blockquote, BulletList, CodeBlock, EditorDoc, EditorModel, Frontmatter, Heading,
    HorizontalRule, Image, InlineElement, Link, ListItem, Mark, MarkType, OrderedList, Paragraph,
    Slot, SpanStyle, Text, Video,
)
from mdcbridge.core.editor import Comment as EditorComment
from mdcbridge.core.editor import Element as EditorElement
from mdcbridge.core.models import Comment, Element, MarkupNode, MarkupTree, text_content, without_tag
from mdcbridge.core.utils.emoji import split_emoji
from mdcbridge.core.utils.slug import Slugger


logger = logging.getLogger(__name__)

HEADING_TAGS = ('h1', 'h2', 'h3', 'h4', 'h5', 'h6')
IMAGE_TAGS = ('img', 'nuxt-img', 'nuxt-picture')
STRUCTURAL_TAGS = (
    'p', *HEADING_TAGS, 'ul', 'ol', 'li', 'blockquote', 'hr', 'pre', *IMAGE_TAGS,
    'video', 'template', 'span', 'binding',
)
BLOCK_TAGS = frozenset({'p', *HEADING_TAGS, 'ul', 'ol', 'blockquote', 'hr', 'pre', 'video', 'template'})
INLINE_LEAD_TAGS = frozenset({*MARK_TAGS, 'span', 'binding', 'br'})
VIDEO_FLAGS = ('controls', 'autoplay', 'loop', 'muted')

_tags: DispatchTable[str] = DispatchTable("markup-to-editor")


def clean_props(attrs: dict[str, Any]) -> dict[str, Any]:
    """Drop internal `__*` attrs and normalise className lists to a class string."""
    props: dict[str, Any] = {}
    for key, value in attrs.items():
        key = key.strip()
        if key.startswith('__'):
            continue
        if key in ('class', 'className'):
            props['class'] = value if isinstance(value, str) else ' '.join(str(v) for v in value)
        else:
            props[key] = value
    return props


def slot_name(attrs: dict[str, Any]) -> str:
    for key in attrs:
        if key.startswith('v-slot:'):
            return key[len('v-slot:'):]
    return str(attrs.get('name') or 'default')


def _is_template(node: MarkupNode) -> bool:
    return isinstance(node, Element) and node.tag == 'template'


def _starts_inline(children: tuple[MarkupNode, ...]) -> bool:
    """True when content must be wrapped in a paragraph to stay editable."""
    if not children:
        return False
    first = children[0]
    return isinstance(first, str) or (isinstance(first, Element) and first.tag in INLINE_LEAD_TAGS)


def _list_start(value: Any) -> int | None:
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.debug("ignoring non-numeric list start %r", value)
        return None


def _is_blank(node: MarkupNode) -> bool:
    return isinstance(node, str) and not node.strip()


class ForwardConverter:
    """Single-use converter; holds the heading slug registry for one pass."""

    def __init__(self) -> None:
        self.slugger = Slugger()

    # --- entry points ---

    def document(self, tree: MarkupTree) -> EditorDoc:
        nodes = without_tag(tree.nodes, 'style')
        content = self.blocks(nodes)
        if not content:
            content = [Paragraph()]
        return EditorDoc(content=(self.frontmatter(tree.frontmatter), *content))

    def frontmatter(self, data: Any) -> Frontmatter:
        if data is None:
            return Frontmatter()
        if not isinstance(data, dict):
            logger.warning("frontmatter is not a mapping (%s)", type(data).__name__)
            return Frontmatter(error=f"expected a mapping, got {type(data).__name__}")
        if '__error__' in data:
            return Frontmatter(error=str(data['__error__']))
        return Frontmatter(data=data)

    def node(self, node: MarkupNode, parent: str | None = None) -> list[EditorModel]:
        if isinstance(node, str):
            return self.text(node)
        if isinstance(node, Comment):
            return [EditorComment(text=node.text)]
        return _tags.lookup(node.tag)(self, node, parent)

    def blocks(self, nodes: Iterable[MarkupNode], parent: str | None = None) -> list[EditorModel]:
        """Convert block-level children; stray text is wrapped in paragraphs."""
        out: list[EditorModel] = []
        for node in nodes:
            if _is_blank(node):
                continue
            if isinstance(node, str):
                out.append(Paragraph(content=tuple(self.text(node))))
            else:
                out.extend(self.node(node, parent))
        return out

    def inline(self, nodes: Iterable[MarkupNode], parent: str = 'p') -> list[EditorModel]:
        out: list[EditorModel] = []
        for node in nodes:
            if node == '':
                continue
            out.extend(self.node(node, parent))
        return out

    def text(self, value: str, marks: tuple[Mark, ...] = ()) -> list[EditorModel]:
        return [Text(value=run, marks=marks) for run in split_emoji(value) if run]

    # --- marks ---

    def mark(self, node: Element, accumulated: tuple[Mark, ...] = ()) -> list[EditorModel]:
        """Decode a mark element, composing its mark inside the accumulated ones."""
        kind = MARK_TAGS[node.tag]
        attrs = clean_props(node.attrs)

        if kind is MarkType.code:
            language = node.attrs.get('language') or node.attrs.get('lang')
            mark = Mark(type=kind, attrs={'language': language} if language else {})
            value = text_content(node)
            return [Text(value=value, marks=compose(mark, accumulated))] if value else []

        if kind is MarkType.link:
            attrs = link_attrs_from_markup(attrs)
            if any(isinstance(c, Element) and c.tag not in MARK_TAGS for c in node.children):
                return [self.link(node, attrs, accumulated)]

        marks = compose(Mark(type=kind, attrs=attrs), accumulated)
        out: list[EditorModel] = []
        for child in node.children:
            if isinstance(child, str):
                out.extend(self.text(child, marks))
            elif isinstance(child, Comment):
                out.append(EditorComment(text=child.text))
            elif child.tag in MARK_TAGS:
                out.extend(self.mark(child, marks))
            else:
                out.extend(apply_marks(n, marks) for n in self.node(child, 'p'))
        return out

    def link(self, node: Element, attrs: dict[str, Any], accumulated: tuple[Mark, ...]) -> Link:
        props = {k: v for k, v in attrs.items() if k not in ('href', 'target', 'rel')}
        content = [apply_marks(n, accumulated) for n in self.inline(node.children)]
        return Link(
            href=str(attrs.get('href') or ''),
            target=attrs.get('target'),
            rel=attrs.get('rel'),
            props=props,
            content=tuple(content),
        )

    # --- components ---

    def component(self, node: Element, parent: str | None) -> list[EditorModel]:
        props = clean_props(node.attrs)
        if parent == 'p':
            return [InlineElement(tag=node.tag, props=props, content=tuple(self.inline(node.children)))]

        children = node.children
        wrapped = _starts_inline(children)
        if wrapped:
            loose = tuple(c for c in children if not _is_template(c))
            children = (Element('p', {}, loose), *(c for c in children if _is_template(c)))

        return [EditorElement(
            tag=node.tag,
            props=props,
            wrapped=wrapped,
            content=tuple(self.slots(children)),
        )]

    def slots(self, children: tuple[MarkupNode, ...]) -> list[Slot]:
        """Gather children into slots; loose children go to the default slot."""
        loose = [c for c in children if not _is_template(c) and not _is_blank(c)]
        templates = [c for c in children if _is_template(c)]
        slots = [self.slot(t) for t in templates]
        if not loose:
            return slots

        loose_content = tuple(self.blocks(loose))
        for i, slot in enumerate(slots):
            if slot.name == 'default':
                slots[i] = slot.model_copy(update={'content': (*slot.content, *loose_content)})
                return slots
        return [Slot(name='default', synthetic=True, content=loose_content), *slots]

    def slot(self, node: Element) -> Slot:
        children = node.children
        if _starts_inline(children):
            children = (Element('p', {}, children),)
        return Slot(
            name=slot_name(node.attrs),
            props=clean_props(node.attrs),
            content=tuple(self.blocks(children, 'template')),
        )


@_tags.register('p')
def _paragraph(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    return [Paragraph(props=clean_props(node.attrs), content=tuple(self.inline(node.children)))]


@_tags.register(*HEADING_TAGS)
def _heading(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    props = {k: v for k, v in clean_props(node.attrs).items() if k != 'id'}
    return [Heading(
        level=int(node.tag[1]),
        id=self.slugger.slug(text_content(node)),
        props=props,
        content=tuple(self.inline(node.children)),
    )]


@_tags.register('ul')
def _bullet_list(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    return [BulletList(props=clean_props(node.attrs), content=tuple(self.blocks(node.children, 'ul')))]


@_tags.register('ol')
def _ordered_list(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    props = clean_props(node.attrs)
    start = props.pop('start', None)
    return [OrderedList(
        start=_list_start(start),
        props=props,
        content=tuple(self.blocks(node.children, 'ol')),
    )]


@_tags.register('li')
def _list_item(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    content: list[EditorModel] = []
    run: list[MarkupNode] = []

    def flush() -> None:
        if any(not _is_blank(n) for n in run):
            content.append(Paragraph(content=tuple(self.inline(run))))
        run.clear()

    for child in node.children:
        if isinstance(child, Element) and child.tag in BLOCK_TAGS:
            flush()
            content.extend(self.node(child, 'li'))
        else:
            run.append(child)
    flush()
    return [ListItem(content=tuple(content))]


@_tags.register('blockquote')
def _blockquote(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    return [Blockquote(props=clean_props(node.attrs), content=tuple(self.blocks(node.children, 'blockquote')))]


@_tags.register('hr')
def _horizontal_rule(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    return [HorizontalRule()]


@_tags.register('pre')
def _code_block(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    code = node.attrs.get('code')
    if code is None:
        code = ''.join(text_content(c) for c in without_tag(node.children, 'style'))
    return [CodeBlock(
        language=node.attrs.get('language') or None,
        filename=node.attrs.get('filename') or None,
        raw_source=str(code),
    )]


@_tags.register(*IMAGE_TAGS)
def _image(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    return [Image(tag=node.tag, props=clean_props(node.attrs))]


@_tags.register('video')
def _video(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    props: dict[str, Any] = {}
    for key, value in clean_props(node.attrs).items():
        key = key[1:] if key.startswith(':') else key
        if key in VIDEO_FLAGS:
            if value in ('true', True):
                props[key] = True
            elif value in ('false', False):
                props[key] = False
        else:
            props[key] = value
    return [Video(props=props)]


@_tags.register('template')
def _template(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    return [self.slot(node)]


@_tags.register('span')
def _span(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    props = clean_props(node.attrs)
    style = props.pop('style', None)
    css_class = props.pop('class', None)
    return [SpanStyle(
        style=str(style).strip() if style else None,
        css_class=str(css_class).strip() if css_class else None,
        props=props,
        content=tuple(self.inline(node.children)),
    )]


@_tags.register('binding')
def _binding(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    return [Binding(value=node.attrs.get('value'), default_value=node.attrs.get('defaultValue'))]


@_tags.register(*MARK_TAGS)
def _mark(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    return self.mark(node)


@_tags.set_fallback
def _component(self: ForwardConverter, node: Element, parent: str | None) -> list[EditorModel]:
    logger.debug("converting %r as a custom component", node.tag)
    return self.component(node, parent)


_tags.require((*STRUCTURAL_TAGS, *MARK_TAGS))


def markup_to_editor(tree: MarkupTree) -> EditorDoc:
    """Convert a markup tree into an editor document (fresh slug registry per call)."""
    return ForwardConverter().document(tree)
