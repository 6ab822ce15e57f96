"""Record qualification rules."""

from .validator import ValidationResult, is_qualified, matches_allowlist, validate_record

__all__ = ["ValidationResult", "is_qualified", "matches_allowlist", "validate_record"]
