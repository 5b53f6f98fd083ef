"""Word-level diff between two texts, used to preview AI-assisted rewrites"""

import re
from dataclasses import dataclass
from enum import Enum


MAX_DIFF_TOKENS = 1000

_TOKEN_RE = re.compile(r'(\s+)')


class DiffType(str, Enum):
    unchanged = "unchanged"
    added = "added"


@dataclass(frozen=True)
class DiffPart:
    type: DiffType
    text: str


def tokenize(text: str) -> list[str]:
    """Split text into word and whitespace-run tokens; empty tokens dropped."""
    return [t for t in _TOKEN_RE.split(text) if t]


def find_lcs(a: list[str], b: list[str]) -> list[tuple[int, int]]:
    """Return (index_in_a, index_in_b) pairs of a longest common subsequence."""
    m, n = len(a), len(b)
    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if a[i - 1] == b[j - 1]:
                dp[i][j] = dp[i - 1][j - 1] + 1
            else:
                dp[i][j] = max(dp[i - 1][j], dp[i][j - 1])

    pairs: list[tuple[int, int]] = []
    i, j = m, n
    while i > 0 and j > 0:
        if a[i - 1] == b[j - 1]:
            pairs.append((i - 1, j - 1))
            i -= 1
            j -= 1
        elif dp[i - 1][j] > dp[i][j - 1]:
            i -= 1
        else:
            j -= 1
    pairs.reverse()
    return pairs


def compute_word_diff(original: str, updated: str, max_tokens: int = MAX_DIFF_TOKENS) -> list[DiffPart]:
    """Return runs of unchanged/added text whose concatenation equals updated.

    Tokens only present in original are used for alignment and dropped from the
    result. Returns [] when either side exceeds max_tokens.
    """
    old_tokens, new_tokens = tokenize(original), tokenize(updated)
    if len(old_tokens) > max_tokens or len(new_tokens) > max_tokens:
        return []

    matched = {j for _, j in find_lcs(old_tokens, new_tokens)}
    parts: list[DiffPart] = []
    for j, token in enumerate(new_tokens):
        kind = DiffType.unchanged if j in matched else DiffType.added
        if parts and parts[-1].type == kind:
            parts[-1] = DiffPart(kind, parts[-1].text + token)
        else:
            parts.append(DiffPart(kind, token))
    return parts


def added_diff(text: str) -> list[DiffPart]:
    """Mark the whole text as added (used when the rewrite is a translation)."""
    return [DiffPart(DiffType.added, text)]
