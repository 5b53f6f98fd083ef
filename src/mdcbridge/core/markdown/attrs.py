"""MDC attribute blocks: `{.class #id key="value" key='value' flag}`"""

import re
from typing import Any


ATTR_RE = re.compile(r'''
    \s*(?:
        \.(?P<cls>[^\s.#{}"'=]+)
      | \#(?P<id>[^\s.#{}"'=]+)
      | (?P<key>[^\s.#{}"'=][^\s{}"'=]*)
        (?:=(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"'{}]+)))?
    )''', re.VERBOSE)


def find_attrs_end(src: str, start: int, stop: int | None = None) -> int:
    """Return the index of the `}` closing the block opened at src[start], or -1."""
    stop = len(src) if stop is None else stop
    quote = None
    for i in range(start + 1, stop):
        ch = src[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in '"\'':
            quote = ch
        elif ch == '{':
            return -1
        elif ch == '}':
            return i
    return -1


def parse_attrs(text: str) -> dict[str, Any]:
    """Parse the inside of an attribute block.

    Classes accumulate into one space-separated `class`; a bare key is a boolean
    prop and is stored as `:key` -> 'true'.
    """
    attrs: dict[str, Any] = {}
    classes: list[str] = []
    pos = 0
    text = text.strip()
    while pos < len(text):
        m = ATTR_RE.match(text, pos)
        if not m or m.end() == pos:
            break
        pos = m.end()
        if m.group('cls'):
            classes.append(m.group('cls'))
        elif m.group('id'):
            attrs['id'] = m.group('id')
        elif m.group('key'):
            key = m.group('key')
            value = next((m.group(g) for g in ('dq', 'sq', 'bare') if m.group(g) is not None), None)
            if value is None:
                attrs[key if key.startswith(':') else f":{key}"] = 'true'
            else:
                attrs[key] = value
    if classes:
        attrs['class'] = ' '.join(classes)
    return attrs


def _quote(value: str) -> str:
    if '"' in value and "'" not in value:
        return f"'{value}'"
    return f'"{value}"'


def render_attrs(attrs: dict[str, Any]) -> str:
    """Render attrs back into `{...}`; empty attrs render as ''."""
    parts: list[str] = []
    for key, value in attrs.items():
        if key.startswith('__'):
            continue
        if key == 'id' and isinstance(value, str) and value and not re.search(r'[\s.#{}"\'=]', value):
            parts.append(f"#{value}")
        elif key == 'class' and isinstance(value, str) and value.strip():
            parts.extend(f".{c}" for c in value.split())
        elif key.startswith(':') and value in ('true', True):
            parts.append(key[1:])
        elif key.startswith(':'):
            parts.append(f"{key}='{value}'" if "'" not in str(value) else f'{key}="{value}"')
        elif value is True:
            parts.append(key)
        else:
            parts.append(f"{key}={_quote(str(value))}")
    return '{' + ' '.join(parts) + '}' if parts else ''
