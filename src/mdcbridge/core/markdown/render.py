"""Markup AST -> markdown with MDC component syntax"""

import re
from typing import Any

import yaml

from mdcbridge.core.markdown.attrs import render_attrs
from mdcbridge.core.models import Comment, Element, MarkupNode, MarkupTree, text_content


BLOCK_TAGS = frozenset({
    'p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'ul', 'ol', 'li', 'blockquote', 'hr', 'pre',
    'template', 'html', 'style',
})
INLINE_TAGS = frozenset({'strong', 'em', 'del', 'code', 'a', 'img', 'span', 'br', 'binding'})
WRAPPERS = {'strong': '**', 'em': '*', 'del': '~~'}
LINK_KEYS = ('href', 'title')
IMAGE_KEYS = ('src', 'alt', 'title')


def _is_inline(node: MarkupNode) -> bool:
    """Text, comments, and elements with no block tag anywhere beneath them."""
    if isinstance(node, (str, Comment)):
        return True
    return node.tag not in BLOCK_TAGS and all(_is_inline(c) for c in node.children)


def _list_start(value: Any) -> int:
    try:
        return int(value) if value not in (None, '') else 1
    except (TypeError, ValueError):
        return 1


def _fence_for(code: str, char: str = '`') -> str:
    runs = [len(r) for r in re.findall(f"{re.escape(char)}+", code)]
    return char * max(3, max(runs, default=0) + 1)


def _indent(text: str, prefix: str, first: str | None = None) -> str:
    lines = text.split('\n')
    head = (first if first is not None else prefix) + lines[0]
    rest = [prefix + line if line else line for line in lines[1:]]
    return '\n'.join([head, *rest])


def render_frontmatter(frontmatter: Any) -> str:
    if not isinstance(frontmatter, dict):
        return ''
    data = {k: v for k, v in frontmatter.items() if k != '__error__'}
    if not data:
        return ''
    dumped = yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return f"---\n{dumped}---"


class MarkdownRenderer:
    """Render markup nodes; nested block components get one more colon per level."""

    def document(self, tree: MarkupTree) -> str:
        parts = [render_frontmatter(tree.frontmatter), self.blocks(tree.nodes, 0)]
        text = '\n\n'.join(p for p in parts if p)
        return text + '\n' if text else ''

    # --- blocks ---

    def blocks(self, nodes: tuple[MarkupNode, ...] | list[MarkupNode], depth: int, sep: str = '\n\n') -> str:
        """Render a mixed sequence; consecutive inline nodes form one paragraph."""
        parts: list[str] = []
        run: list[MarkupNode] = []
        nodes = [n for n in nodes if not (isinstance(n, Element) and n.tag == 'style')]
        for i, node in enumerate(nodes):
            nxt = nodes[i + 1] if i + 1 < len(nodes) else None
            if self._joins_run(node, run, nxt):
                run.append(node)
                continue
            if run:
                parts.append(self.inline(run))
                run = []
            parts.append(self.block(node, depth))
        if run:
            parts.append(self.inline(run))
        return sep.join(p for p in parts if p.strip())

    @staticmethod
    def _joins_run(node: MarkupNode, run: list[MarkupNode], nxt: MarkupNode | None) -> bool:
        """Text and inline tags always join; comments and components only next to text."""
        if isinstance(node, str) or (isinstance(node, Element) and node.tag in INLINE_TAGS):
            return True
        if run:
            return _is_inline(node)
        if isinstance(node, Element) and _is_inline(node):
            return isinstance(nxt, str) or (isinstance(nxt, Element) and nxt.tag in INLINE_TAGS)
        return False

    def block(self, node: MarkupNode, depth: int) -> str:
        if isinstance(node, str):
            return node
        if isinstance(node, Comment):
            return f"<!--{node.text}-->"
        tag = node.tag
        if tag == 'p':
            return self.inline(node.children)
        if tag in ('h1', 'h2', 'h3', 'h4', 'h5', 'h6'):
            return f"{'#' * int(tag[1])} {self.inline(node.children)}"
        if tag == 'ul':
            return self.list_block(node, depth, lambda i: '- ')
        if tag == 'ol':
            start = _list_start(node.attrs.get('start'))
            return self.list_block(node, depth, lambda i: f"{start + i}. ")
        if tag == 'li':
            return self.blocks(node.children, depth, sep='\n')
        if tag == 'blockquote':
            body = self.blocks(node.children, depth)
            return '\n'.join(f"> {line}" if line else '>' for line in body.split('\n'))
        if tag == 'hr':
            return '---'
        if tag == 'pre':
            return self.code_block(node)
        if tag == 'html':
            return str(node.attrs.get('value', ''))
        if tag == 'template':
            return self.slot(node, depth)
        return self.component(node, depth)

    def list_block(self, node: Element, depth: int, marker) -> str:
        items = [c for c in node.children if isinstance(c, Element) and c.tag == 'li']
        loose = any(isinstance(c, Element) and c.tag == 'p' for li in items for c in li.children)
        sep = '\n\n' if loose else '\n'
        rendered = []
        for i, li in enumerate(items):
            prefix = marker(i)
            body = self.blocks(li.children, depth, sep=sep)
            rendered.append(_indent(body, ' ' * len(prefix), first=prefix))
        return sep.join(rendered)

    def code_block(self, node: Element) -> str:
        code = node.attrs.get('code')
        if code is None:
            code = text_content(node)
        code = str(code)
        info = node.attrs.get('language') or ''
        if node.attrs.get('filename'):
            info = f"{info} [{node.attrs['filename']}]".strip()
        fence = _fence_for(code)
        return f"{fence}{info}\n{code}\n{fence}" if code else f"{fence}{info}\n{fence}"

    def component(self, node: Element, depth: int) -> str:
        attrs = render_attrs(node.attrs)
        if not node.children:
            return f":{node.tag}{attrs or '{}'}"
        if all(_is_inline(c) for c in node.children):
            label = self.inline(node.children)
            if '\n' not in label:
                return f":{node.tag}[{label}]{attrs}"
        colons = ':' * (depth + 2)
        body = self.blocks(node.children, depth + 1)
        return '\n'.join(p for p in (f"{colons}{node.tag}{attrs}", body, colons) if p)

    def slot(self, node: Element, depth: int) -> str:
        name = next((k[len('v-slot:'):] for k in node.attrs if k.startswith('v-slot:')), None)
        name = name or str(node.attrs.get('name') or 'default')
        extra = {k: v for k, v in node.attrs.items() if not k.startswith('v-slot:') and k != 'name'}
        body = self.blocks(node.children, depth)
        return '\n'.join(p for p in (f"#{name}{render_attrs(extra)}", body) if p)

    # --- inline ---

    def inline(self, nodes: tuple[MarkupNode, ...] | list[MarkupNode]) -> str:
        return ''.join(self.inline_node(n) for n in nodes)

    def inline_node(self, node: MarkupNode) -> str:
        if isinstance(node, str):
            return node
        if isinstance(node, Comment):
            return f"<!--{node.text}-->"
        tag = node.tag
        if tag in WRAPPERS:
            mark = WRAPPERS[tag]
            return f"{mark}{self.inline(node.children)}{mark}"
        if tag == 'code':
            return self.inline_code(node)
        if tag == 'a':
            href = str(node.attrs.get('href', ''))
            title = node.attrs.get('title')
            dest = f'{href} "{title}"' if title else href
            extra = {k: v for k, v in node.attrs.items() if k not in LINK_KEYS}
            return f"[{self.inline(node.children)}]({dest}){render_attrs(extra)}"
        if tag == 'img':
            src = str(node.attrs.get('src', ''))
            title = node.attrs.get('title')
            dest = f'{src} "{title}"' if title else src
            extra = {k: v for k, v in node.attrs.items() if k not in IMAGE_KEYS}
            return f"![{node.attrs.get('alt', '')}]({dest}){render_attrs(extra)}"
        if tag == 'span':
            return f"[{self.inline(node.children)}]{render_attrs(node.attrs) or '{}'}"
        if tag == 'br':
            return '  \n'
        if tag == 'binding':
            value = node.attrs.get('value') or ''
            default = node.attrs.get('defaultValue')
            return f"{{{{ {value} || {default} }}}}" if default is not None else f"{{{{ {value} }}}}"
        if tag == 'html':
            return str(node.attrs.get('value', ''))
        if tag == 'style':
            return ''
        if node.children:
            return f":{tag}[{self.inline(node.children)}]{render_attrs(node.attrs)}"
        return f":{tag}{render_attrs(node.attrs) or '{}'}"

    def inline_code(self, node: Element) -> str:
        code = text_content(node)
        ticks = '`' * (max((len(r) for r in re.findall('`+', code)), default=0) + 1)
        pad = ' ' if code.startswith('`') or code.endswith('`') else ''
        language = node.attrs.get('language') or node.attrs.get('lang')
        suffix = render_attrs({'language': language}) if language else ''
        return f"{ticks}{pad}{code}{pad}{ticks}{suffix}"


def render_markdown(tree: MarkupTree) -> str:
    """Serialise a markup tree to markdown text ending in a single newline."""
    return MarkdownRenderer().document(tree)
