"""Relative-time token pool.

Tokens are collected from the whole document text once, in document order,
and handed out positionally: the Nth container that survives field
extraction gets the Nth token. Nothing guarantees that the Nth time mention
belongs to the Nth listing; the extractor logs a warning when the counts
disagree, and ``container-first`` assignment reads the token from the
container itself when it carries one.
"""

import re
from typing import List, Optional, Sequence

from bs4 import Tag

from .selectors import SelectorStrategy, element_text

RELATIVE_TIME_PATTERN = re.compile(
    r"\d+\s+(?:minutes?|hours?|days?)\s+ago\b", re.IGNORECASE
)

FALLBACK_TOKEN = "3 hours ago"


def scan_tokens(document_text: str) -> List[str]:
    """All relative-time mentions in ``document_text``, in order."""
    return RELATIVE_TIME_PATTERN.findall(document_text or "")


class TokenPool:
    """Forward-only queue of relative-time tokens for one document.

    Create a new pool per document; a pool is never reset or reused.
    """

    def __init__(self, tokens: Sequence[str], fallback: str = FALLBACK_TOKEN):
        self._tokens = list(tokens)
        self._cursor = 0
        self.fallback = fallback
        self.fallbacks_used = 0

    @classmethod
    def from_document(cls, document: Tag) -> "TokenPool":
        return cls(scan_tokens(document.get_text(" ")))

    def take(self) -> str:
        """Next unconsumed token, or the fallback token once exhausted."""
        if self._cursor < len(self._tokens):
            token = self._tokens[self._cursor]
            self._cursor += 1
            return token
        self.fallbacks_used += 1
        return self.fallback

    @property
    def total(self) -> int:
        return len(self._tokens)

    @property
    def consumed(self) -> int:
        return self._cursor

    @property
    def remaining(self) -> int:
        return len(self._tokens) - self._cursor

    def __len__(self) -> int:
        return self.remaining


def find_container_token(
    container: Tag, strategies: Sequence[SelectorStrategy]
) -> Optional[str]:
    """Relative-time token carried inside a container's own subtree.

    Tries the posted-time strategies first, then the container's full text.
    """
    for strategy in strategies:
        for element in strategy.match(container):
            match = RELATIVE_TIME_PATTERN.search(element_text(element))
            if match:
                return match.group(0)

    match = RELATIVE_TIME_PATTERN.search(container.get_text(" "))
    return match.group(0) if match else None
