"""Job extraction from search-result markup."""

from .extractor import ContainerOutcome, ExtractionResult, JobExtractor
from .selectors import (
    FieldKind,
    SelectorCascade,
    SelectorStrategy,
    extract_field,
    find_containers,
    parse_location,
)
from .tokens import FALLBACK_TOKEN, TokenPool, find_container_token, scan_tokens

__all__ = [
    "ContainerOutcome",
    "ExtractionResult",
    "JobExtractor",
    "FieldKind",
    "SelectorCascade",
    "SelectorStrategy",
    "extract_field",
    "find_containers",
    "parse_location",
    "FALLBACK_TOKEN",
    "TokenPool",
    "find_container_token",
    "scan_tokens",
]
