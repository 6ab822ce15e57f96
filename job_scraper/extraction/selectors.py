"""Selector cascade over parsed search-result markup.

Each strategy is a named CSS selector. A cascade is an ordered tuple of
strategies evaluated in turn; the first one that yields a match wins and
nothing is merged across strategies.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from bs4 import Tag

from job_scraper.config.models import SelectorConfig
from job_scraper.logging import get_logger

logger = get_logger(__name__, component="extraction")

# Anything after the first bullet is an addendum ("Remote", "via LinkedIn")
_LOCATION_SUFFIX = re.compile(r"[•·]")


class FieldKind(str, Enum):
    """Fields read from a job container."""

    TITLE = "title"
    COMPANY = "company"
    LOCATION = "location"
    POSTED_TIME = "posted_time"


@dataclass(frozen=True)
class SelectorStrategy:
    """A named structural match rule."""

    name: str
    css: str

    def match(self, node: Tag) -> List[Tag]:
        """All elements under ``node`` matching this rule, in document order."""
        return node.select(self.css)

    def first(self, node: Tag) -> Optional[Tag]:
        """First element under ``node`` matching this rule."""
        return node.select_one(self.css)


def _strategies(group: str, selectors: Sequence[str]) -> Tuple[SelectorStrategy, ...]:
    return tuple(
        SelectorStrategy(name=f"{group}[{position}]", css=css)
        for position, css in enumerate(selectors)
    )


@dataclass(frozen=True)
class SelectorCascade:
    """Container strategies plus one ordered strategy list per field."""

    containers: Tuple[SelectorStrategy, ...]
    fields: Dict[FieldKind, Tuple[SelectorStrategy, ...]]

    @classmethod
    def from_config(cls, config: SelectorConfig) -> "SelectorCascade":
        return cls(
            containers=_strategies("containers", config.containers),
            fields={
                FieldKind.TITLE: _strategies("title", config.title),
                FieldKind.COMPANY: _strategies("company", config.company),
                FieldKind.LOCATION: _strategies("location", config.location),
                FieldKind.POSTED_TIME: _strategies("posted_time", config.posted_time),
            },
        )

    def for_field(self, kind: FieldKind) -> Tuple[SelectorStrategy, ...]:
        return self.fields[kind]


def element_text(element: Tag) -> str:
    """Text content of an element with whitespace runs collapsed."""
    return " ".join(element.get_text().split())


def find_containers(document: Tag, strategies: Sequence[SelectorStrategy]) -> List[Tag]:
    """Locate candidate job containers.

    Args:
        document: Parsed document (or any subtree)
        strategies: Container strategies in priority order

    Returns:
        Containers in document order from the first strategy that matches.
        An empty list means "no listings", not an error.
    """
    for strategy in strategies:
        matches = strategy.match(document)
        if matches:
            logger.debug(
                "Containers matched",
                extra={
                    "event": "extraction.containers.matched",
                    "strategy": strategy.name,
                    "selector": strategy.css,
                    "count": len(matches),
                },
            )
            return matches
    return []


def extract_field(
    container: Tag, kind: FieldKind, cascade: SelectorCascade
) -> Optional[str]:
    """Read one field from a container through its strategy list.

    The first strategy whose first match has non-empty text wins.

    Returns:
        Trimmed, whitespace-collapsed text, or None when no strategy hits
    """
    for strategy in cascade.for_field(kind):
        element = strategy.first(container)
        if element is None:
            continue
        text = element_text(element)
        if text:
            return text
    return None


def parse_location(text: Optional[str]) -> Tuple[str, str]:
    """Split a location string into (city, state).

    Example:
        >>> parse_location("Austin, TX • Remote")
        ('Austin', 'TX')
        >>> parse_location("Remote")
        ('Remote', '')
    """
    if not text:
        return "", ""

    head = _LOCATION_SUFFIX.split(text, maxsplit=1)[0].strip()
    parts = [part.strip() for part in head.split(",")]
    if len(parts) >= 2:
        return parts[0], parts[1]
    return head, ""
