"""Heading slug generation with a per-pass registry of issued ids"""

import re
import unicodedata


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated, ASCII-only slug."""
    text = unicodedata.normalize('NFKD', text).encode('ascii', 'ignore').decode('ascii')
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    text = re.sub(r'-+', '-', text).strip('-')
    return re.sub(r'^(\d)', r'_\1', text)


class Slugger:
    """Issue unique slugs within one conversion pass.

    A new instance (or a call to reset) starts an empty registry; never share one
    between documents.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def reset(self) -> None:
        self._seen.clear()

    def slug(self, text: str) -> str:
        """Return slugify(text), suffixed with -1, -2, ... if already issued."""
        base = slugify(text)
        candidate = base
        n = 0
        while candidate in self._seen:
            n += 1
            candidate = f"{base}-{n}"
        self._seen.add(candidate)
        return candidate
