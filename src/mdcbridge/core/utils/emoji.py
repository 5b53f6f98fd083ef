"""Emoji shortcode resolution"""

import re

import emoji


EMOJI_RE = re.compile(r':[\w+-]+:')


def emoji_unicode(name: str) -> str | None:
    """Return the glyph for a shortcode name (without colons), or None if unknown."""
    shortcode = f":{name}:"
    glyph = emoji.emojize(shortcode, language='alias')
    return None if glyph == shortcode else glyph


def split_emoji(text: str) -> list[str]:
    """Split text into runs, replacing resolvable :shortcodes: with their glyph.

    Each shortcode becomes its own run; unknown shortcodes are kept verbatim.
    """
    runs: list[str] = []
    last = 0
    for m in EMOJI_RE.finditer(text):
        if m.start() > last:
            runs.append(text[last:m.start()])
        runs.append(emoji_unicode(m.group()[1:-1]) or m.group())
        last = m.end()
    if last < len(text):
        runs.append(text[last:])
    return runs or [text]
