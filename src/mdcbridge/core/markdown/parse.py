"""Markdown (with MDC components) -> markup AST"""

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.attrs import attrs_plugin

from mdcbridge.core.markdown.mdc import mdc_plugin
from mdcbridge.core.models import Comment, Element, MarkupNode, MarkupTree, code_block_element, text_content
from mdcbridge.core.utils.slug import Slugger


logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'^---\s*\n(.*?)\n---\s*\n', re.DOTALL)
COMMENT_RE = re.compile(r'^<!--(.*?)-->$', re.DOTALL)
FENCE_INFO_RE = re.compile(r'^(?P<lang>[^\s\[{]+)?\s*(?:\[(?P<filename>[^\]]*)\])?')

INLINE_TAGS = {
    'em': 'em',
    'strong': 'strong',
    's': 'del',
    'link': 'a',
    'span': 'span',
}


def make_parser(preset: str = 'gfm-like') -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset with the MDC rules enabled."""
    md = MarkdownIt(preset, options_update={"linkify": False})
    md.disable('table', ignoreInvalid=True)
    md.use(attrs_plugin, spans=True)
    md.use(mdc_plugin)
    return md


def strip_frontmatter(text: str, strict: bool = False) -> tuple[Any, str]:
    """Return (frontmatter, body) with the YAML header removed.

    Malformed frontmatter raises ValueError when strict, else it is returned as
    {'__error__': message} so the document stays loadable.
    """
    m = FRONTMATTER_RE.match(text)
    if not m:
        return {}, text
    try:
        fm = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as e:
        if strict:
            raise ValueError(f"Invalid YAML frontmatter: {e}") from e
        logger.warning("invalid YAML frontmatter: %s", e)
        return {'__error__': f"Invalid YAML frontmatter: {e}"}, text[m.end():]
    if not isinstance(fm, dict):
        msg = f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}"
        if strict:
            raise ValueError(msg)
        logger.warning(msg)
        return {'__error__': msg}, text[m.end():]
    return fm, text[m.end():]


def _join(nodes: list[MarkupNode]) -> tuple[MarkupNode, ...]:
    out: list[MarkupNode] = []
    for node in nodes:
        if isinstance(node, str):
            if not node:
                continue
            if out and isinstance(out[-1], str):
                out[-1] += node
                continue
        out.append(node)
    return tuple(out)


def _unwrap_paragraph(children: list[MarkupNode]) -> list[MarkupNode]:
    """MDC auto-unwrap: a body made of a single paragraph loses the paragraph."""
    if len(children) == 1 and isinstance(children[0], Element) and children[0].tag == 'p' and not children[0].attrs:
        return list(children[0].children)
    return children


def _html(raw: str) -> MarkupNode:
    raw = raw.strip()
    if m := COMMENT_RE.match(raw):
        return Comment(m.group(1))
    return Element('html', {'value': raw})


class TreeBuilder:
    """Convert a markdown-it syntax tree into markup nodes (one instance per document)."""

    def __init__(self) -> None:
        self.slugger = Slugger()

    def blocks(self, nodes: list[SyntaxTreeNode]) -> list[MarkupNode]:
        out: list[MarkupNode] = []
        for node in nodes:
            out.extend(self.block(node))
        return out

    def block(self, node: SyntaxTreeNode) -> list[MarkupNode]:
        kind = node.type
        if kind == 'paragraph':
            return self.paragraph(node)
        if kind == 'heading':
            children = self.inline_children(node)
            attrs = {**node.attrs, 'id': self.slugger.slug(''.join(text_content(c) for c in children))}
            return [Element(node.tag, attrs, children)]
        if kind == 'bullet_list':
            return [Element('ul', dict(node.attrs), tuple(self.blocks(node.children)))]
        if kind == 'ordered_list':
            attrs = {'start': int(node.attrs['start'])} if 'start' in node.attrs else {}
            return [Element('ol', attrs, tuple(self.blocks(node.children)))]
        if kind == 'list_item':
            return [Element('li', {}, _join(self.list_item(node)))]
        if kind == 'blockquote':
            return [Element('blockquote', {}, tuple(self.blocks(node.children)))]
        if kind == 'hr':
            return [Element('hr', {})]
        if kind == 'fence':
            m = FENCE_INFO_RE.match(node.info.strip())
            return [code_block_element(_strip_newline(node.content), m.group('lang'), m.group('filename'))]
        if kind == 'code_block':
            return [code_block_element(_strip_newline(node.content))]
        if kind == 'html_block':
            return [_html(node.content)]
        if kind == 'mdc_block':
            return [self.component(node)]
        if kind == 'mdc_slot':
            name = node.info
            children = _unwrap_paragraph(self.blocks(node.children))
            return [Element('template', {f"v-slot:{name}": '', **node.meta.get('attrs', {})}, _join(children))]
        logger.debug("skipping unsupported block token %r", kind)
        return [node.content] if node.content else []

    def paragraph(self, node: SyntaxTreeNode) -> list[MarkupNode]:
        children = self.inline_children(node)
        if node.hidden:
            return list(children)
        significant = [c for c in children if not (isinstance(c, str) and not c.strip())]
        inline = node.children[0].children if node.children else []
        components = [c for c in inline if c.type == 'mdc_inline']
        if len(significant) == 1 and len(components) == 1:
            return significant
        return [Element('p', {}, children)]

    def list_item(self, node: SyntaxTreeNode) -> list[MarkupNode]:
        children = self.blocks(node.children)
        paragraphs = [c for c in children if isinstance(c, Element) and c.tag == 'p']
        if len(paragraphs) == 1 and children[0] is paragraphs[0]:
            return [*paragraphs[0].children, *children[1:]]
        return children

    def component(self, node: SyntaxTreeNode) -> Element:
        children = _unwrap_paragraph(self.blocks(node.children))
        return Element(node.info, dict(node.meta.get('attrs', {})), _join(children))

    def inline_children(self, node: SyntaxTreeNode) -> tuple[MarkupNode, ...]:
        if not node.children:
            return ()
        return self.inline(node.children[0].children)

    def inline(self, nodes: list[SyntaxTreeNode]) -> tuple[MarkupNode, ...]:
        out: list[MarkupNode] = []
        for node in nodes:
            out.extend(self.inline_node(node))
        return _join(out)

    def inline_node(self, node: SyntaxTreeNode) -> list[MarkupNode]:
        kind = node.type
        if kind in ('text', 'text_special'):
            return [node.content]
        if kind == 'softbreak':
            return ['\n']
        if kind == 'hardbreak':
            return [Element('br', {})]
        if kind == 'code_inline':
            attrs = dict(node.attrs)
            if 'lang' in attrs:
                attrs['language'] = attrs.pop('lang')
            return [Element('code', attrs, (node.content,) if node.content else ())]
        if kind == 'link':
            attrs = {'href': node.attrs.get('href', ''), **node.attrs}
            return [Element('a', attrs, self.inline(node.children))]
        if kind == 'image':
            attrs = dict(node.attrs)
            alt = ''.join(text_content(c) for c in self.inline(node.children))
            attrs.pop('alt', None)
            src = attrs.pop('src', '')
            return [Element('img', {'src': src, **({'alt': alt} if alt else {}), **attrs})]
        if kind in INLINE_TAGS:
            return [Element(INLINE_TAGS[kind], dict(node.attrs), self.inline(node.children))]
        if kind == 'html_inline':
            return [_html(node.content)]
        if kind == 'mdc_inline':
            return [Element(node.info, dict(node.meta.get('attrs', {})), self.inline(node.children))]
        if kind == 'mdc_binding':
            attrs = {'value': node.meta['value']}
            if node.meta.get('default') is not None:
                attrs['defaultValue'] = node.meta['default']
            return [Element('binding', attrs)]
        logger.debug("keeping unsupported inline token %r as text", kind)
        return [node.content] if node.content else []


def _strip_newline(code: str) -> str:
    return code[:-1] if code.endswith('\n') else code


def parse_markdown(text: str, preset: str = 'gfm-like', strict: bool = False) -> MarkupTree:
    """Parse markdown into a MarkupTree (frontmatter, body nodes, heading ids assigned)."""
    frontmatter, body = strip_frontmatter(text, strict=strict)
    tokens = make_parser(preset).parse(body)
    nodes = TreeBuilder().blocks(SyntaxTreeNode(tokens).children)
    return MarkupTree(nodes=tuple(nodes), frontmatter=frontmatter, meta={})


def parse_file(path: Path, parser_config: str = 'gfm-like') -> MarkupTree:
    """Parse a markdown file; malformed frontmatter raises ValueError."""
    return parse_markdown(path.read_text(encoding='utf-8'), parser_config, strict=True)
