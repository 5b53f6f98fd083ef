"""Syntax highlighting post-processor: presentation-only token spans for code elements.

Decoration never replaces the source of truth: `pre` elements keep their raw `code`
attribute untouched, and the text content of every decorated element equals the
original code. Running the pass twice yields the same tree.
"""

import logging
from typing import Any

from pygments import lex
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.style import StyleMeta
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from mdcbridge.core.models import Element, MarkupNode, MarkupTree, text_content, without_tag


logger = logging.getLogger(__name__)

DEFAULT_THEMES = {'default': 'default', 'dark': 'github-dark'}
HIGHLIGHT_CLASSES = ('highlight', 'highlight-themes')
THEME_CLASS_PREFIX = 'hl-'


def _strip_decoration_classes(value: Any) -> list[str]:
    tokens = value.split() if isinstance(value, str) else list(value or [])
    return [t for t in tokens if t not in HIGHLIGHT_CLASSES and not t.startswith(THEME_CLASS_PREFIX)]


class Highlighter:
    """Decorate code blocks and inline code with per-theme token colours.

    `themes` maps a theme key (default, dark, light) to a Pygments style name. The
    default key colours tokens directly; other keys are exposed as `--hl-<key>`
    CSS variables picked up by the appended stylesheet.
    """

    def __init__(self, themes: dict[str, str] | None = None) -> None:
        self.themes = {**DEFAULT_THEMES, **{k: v for k, v in (themes or {}).items() if v}}
        self._styles: dict[str, StyleMeta] = {}

    def style(self, name: str) -> StyleMeta:
        if name not in self._styles:
            self._styles[name] = get_style_by_name(name)
        return self._styles[name]

    def highlight(self, tree: MarkupTree) -> MarkupTree:
        nodes = [n for n in tree.nodes if not (isinstance(n, Element) and n.tag == 'style')]
        nodes = [self._decorate(n) for n in nodes]
        nodes.append(Element('style', {}, (self.stylesheet(),)))
        return MarkupTree(nodes=tuple(nodes), frontmatter=tree.frontmatter, meta=tree.meta)

    def stylesheet(self) -> str:
        rules = [
            f"html.{key} .highlight-themes, html.{key} .highlight-themes span "
            f"{{ color: var(--hl-{key}) !important; }}"
            for key in self.themes if key != 'default'
        ]
        return '\n'.join(rules)

    def _decorate(self, node: MarkupNode) -> MarkupNode:
        if not isinstance(node, Element):
            return node
        if node.tag == 'pre':
            return self.code_block(node)
        if node.tag == 'code' and (node.attrs.get('language') or node.attrs.get('lang')):
            return self.inline_code(node)
        return Element(node.tag, node.attrs, tuple(self._decorate(c) for c in node.children))

    def code_block(self, node: Element) -> Element:
        code = node.attrs.get('code')
        if code is None:
            code = ''.join(text_content(c) for c in without_tag(node.children, 'style'))
        attrs = self._attrs(node.attrs)
        try:
            lines = self._lines(str(code), node.attrs.get('language'))
        except Exception as e:
            logger.warning("highlighting failed for %r block, leaving it plain: %s", node.attrs.get('language'), e)
            return Element('pre', self._plain_attrs(node.attrs), (Element('code', {'__ignoreMap': ''}, (code,) if code else ()),))

        children: list[MarkupNode] = []
        for i, line in enumerate(lines):
            if i:
                children.append('\n')
            children.append(Element('span', {'class': 'line'}, tuple(line)))
        return Element('pre', attrs, (Element('code', {'__ignoreMap': ''}, tuple(children)),))

    def inline_code(self, node: Element) -> Element:
        code = text_content(node)
        language = node.attrs.get('language') or node.attrs.get('lang')
        try:
            lines = self._lines(code, language)
        except Exception as e:
            logger.warning("highlighting failed for inline %r code, leaving it plain: %s", language, e)
            return Element('code', self._plain_attrs(node.attrs), (code,) if code else ())

        children: list[MarkupNode] = []
        for i, line in enumerate(lines):
            if i:
                children.append('\n')
            children.extend(line)
        return Element('code', self._attrs(node.attrs), tuple(children))

    def _lexer(self, language: str | None) -> Lexer:
        if not language:
            return TextLexer(stripnl=False, ensurenl=False)
        try:
            return get_lexer_by_name(language, stripnl=False, ensurenl=False)
        except ClassNotFound:
            logger.debug("no lexer for %r, using plain text", language)
            return TextLexer(stripnl=False, ensurenl=False)

    def _lines(self, code: str, language: str | None) -> list[list[MarkupNode]]:
        """Tokenize code into lines of coloured spans and bare text runs."""
        lines: list[list[MarkupNode]] = [[]]
        for ttype, value in lex(code, self._lexer(language)):
            style = self._token_style(ttype)
            for i, part in enumerate(value.split('\n')):
                if i:
                    lines.append([])
                if part:
                    lines[-1].append(Element('span', {'style': style}, (part,)) if style else part)
        return lines

    def _token_style(self, ttype: Any) -> str:
        decls = []
        for key, name in self.themes.items():
            color = self.style(name).style_for_token(ttype).get('color')
            if not color:
                continue
            decls.append(f"color:#{color}" if key == 'default' else f"--hl-{key}:#{color}")
        return ';'.join(decls)

    def _attrs(self, attrs: dict[str, Any]) -> dict[str, Any]:
        classes = _strip_decoration_classes(attrs.get('class'))
        themes = [f"{THEME_CLASS_PREFIX}{name}" for name in self.themes.values()]
        return {**attrs, 'class': ' '.join([*classes, *HIGHLIGHT_CLASSES, *themes])}

    def _plain_attrs(self, attrs: dict[str, Any]) -> dict[str, Any]:
        out = dict(attrs)
        classes = _strip_decoration_classes(out.pop('class', None))
        if classes:
            out['class'] = ' '.join(classes)
        return out
