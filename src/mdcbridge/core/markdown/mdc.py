"""markdown-it rules for MDC syntax: block components, slots, inline components, bindings"""

import re

from markdown_it import MarkdownIt
from markdown_it.helpers import parseLinkLabel
from markdown_it.rules_block import StateBlock
from markdown_it.rules_inline import StateInline

from mdcbridge.core.markdown.attrs import find_attrs_end, parse_attrs


BLOCK_OPEN_RE = re.compile(r'^(?P<colons>:{2,})(?P<name>[A-Za-z][\w-]*)\s*(?P<attrs>\{.*\})?\s*$')
BLOCK_CLOSE_RE = re.compile(r'^(?P<colons>:{2,})\s*$')
SLOT_RE = re.compile(r'^#(?P<name>[A-Za-z_][\w-]*)\s*(?P<attrs>\{.*\})?\s*$')
FENCE_RE = re.compile(r'^(?P<marker>`{3,}|~{3,})')
INLINE_NAME_RE = re.compile(r':(?P<name>[A-Za-z][\w-]*)')
BINDING_RE = re.compile(r'\{\{\s*(?P<value>.*?)\s*(?:\|\|\s*(?P<default>.*?)\s*)?\}\}')


def _line(state: StateBlock, line: int) -> str:
    return state.src[state.bMarks[line] + state.tShift[line]:state.eMarks[line]]


def _attrs(raw: str | None) -> dict:
    return parse_attrs(raw[1:-1]) if raw else {}


def _scan_component(state: StateBlock, start: int, end: int, colons: str) -> tuple[int, list[tuple[int, str, dict]], bool]:
    """Find the closing line of a component and its top-level `#slot` lines."""
    stack = [len(colons)]
    fence = None
    slots: list[tuple[int, str, dict]] = []
    line = start
    while True:
        line += 1
        if line >= end:
            return line, slots, False
        if state.sCount[line] < state.blkIndent and state.bMarks[line] + state.tShift[line] < state.eMarks[line]:
            return line, slots, False
        text = _line(state, line)

        if fence:
            if text.startswith(fence) and not text.strip(fence[0]).strip():
                fence = None
            continue
        if m := FENCE_RE.match(text):
            fence = m.group('marker')
            continue

        if m := BLOCK_OPEN_RE.match(text):
            stack.append(len(m.group('colons')))
        elif m := BLOCK_CLOSE_RE.match(text):
            if len(m.group('colons')) == stack[-1]:
                stack.pop()
                if not stack:
                    return line, slots, True
        elif len(stack) == 1 and (m := SLOT_RE.match(text)):
            slots.append((line, m.group('name'), _attrs(m.group('attrs'))))


def _tokenize_segment(state: StateBlock, start: int, end: int) -> None:
    if start >= end:
        return
    old_parent, old_max = state.parentType, state.lineMax
    state.parentType = 'mdc_component'
    state.lineMax = end
    state.md.block.tokenize(state, start, end)
    state.parentType, state.lineMax = old_parent, old_max


def component_block(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    """`::name{attrs}` ... `::` with optional `#slot` sections."""
    if state.sCount[startLine] - state.blkIndent >= 4:
        return False
    m = BLOCK_OPEN_RE.match(_line(state, startLine))
    if not m:
        return False
    if silent:
        return True

    close, slots, closed = _scan_component(state, startLine, endLine, m.group('colons'))

    token = state.push('mdc_block_open', 'div', 1)
    token.info = m.group('name')
    token.meta = {'attrs': _attrs(m.group('attrs'))}
    token.markup = m.group('colons')
    token.map = [startLine, close]

    bounds = [line for line, _, _ in slots] + [close]
    _tokenize_segment(state, startLine + 1, bounds[0])
    for i, (line, name, attrs) in enumerate(slots):
        token = state.push('mdc_slot_open', 'template', 1)
        token.info = name
        token.meta = {'attrs': attrs}
        token.map = [line, bounds[i + 1]]
        _tokenize_segment(state, line + 1, bounds[i + 1])
        state.push('mdc_slot_close', 'template', -1)

    token = state.push('mdc_block_close', 'div', -1)
    token.markup = m.group('colons')
    state.line = close + 1 if closed else close
    return True


def inline_component(state: StateInline, silent: bool) -> bool:
    """`:name[label]{attrs}`; either the label or the attrs must be present."""
    pos, src = state.pos, state.src
    if src[pos] != ':' or (pos > 0 and src[pos - 1].isalnum()):
        return False
    m = INLINE_NAME_RE.match(src, pos, state.posMax)
    if not m:
        return False
    end = m.end()
    if end >= state.posMax or src[end] not in '[{':
        return False

    label = None
    if src[end] == '[':
        label_end = parseLinkLabel(state, end, False)
        if label_end < 0:
            return False
        label = (end + 1, label_end)
        end = label_end + 1

    attrs = {}
    if end < state.posMax and src[end] == '{':
        close = find_attrs_end(src, end, state.posMax)
        if close < 0:
            if label is None:
                return False
        else:
            attrs = parse_attrs(src[end + 1:close])
            end = close + 1

    if not silent:
        token = state.push('mdc_inline_open', 'span', 1)
        token.info = m.group('name')
        token.meta = {'attrs': attrs}
        if label:
            old_max = state.posMax
            state.pos, state.posMax = label
            state.md.inline.tokenize(state)
            state.posMax = old_max
        state.push('mdc_inline_close', 'span', -1)

    state.pos = end
    return True


def binding_inline(state: StateInline, silent: bool) -> bool:
    """`{{ value || default }}`"""
    if not state.src.startswith('{{', state.pos):
        return False
    m = BINDING_RE.match(state.src, state.pos, state.posMax)
    if not m:
        return False
    if not silent:
        token = state.push('mdc_binding', 'binding', 0)
        token.meta = {'value': m.group('value'), 'default': m.group('default')}
        token.content = m.group(0)
    state.pos = m.end()
    return True


def mdc_plugin(md: MarkdownIt) -> None:
    md.block.ruler.before(
        'fence', 'mdc_component', component_block,
        {'alt': ['paragraph', 'reference', 'blockquote', 'list']},
    )
    md.inline.ruler.before('link', 'mdc_binding', binding_inline)
    md.inline.ruler.before('link', 'mdc_inline_component', inline_component)
