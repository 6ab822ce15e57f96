"""Custom exceptions for configuration management."""

from typing import List, Optional

from pydantic import ValidationError


class ConfigurationError(Exception):
    """
    Exception raised when configuration loading or validation fails.

    Carries the individual validation errors plus suggestions for fixing them,
    and renders all of it as a single readable message.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: Primary error message
            errors: List of specific validation errors
            suggestions: List of helpful suggestions to fix the errors
        """
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    @classmethod
    def from_validation_error(cls, error: ValidationError) -> "ConfigurationError":
        """Translate a pydantic ValidationError into field-level messages."""
        messages = []
        for item in error.errors():
            field_path = " -> ".join(str(loc) for loc in item["loc"]) or "(root)"
            error_type = item["type"]

            if error_type == "missing":
                messages.append(f"Missing required field: {field_path}")
            elif error_type in ("string_type", "int_type", "bool_type", "list_type", "float_type"):
                expected = error_type.replace("_type", "")
                messages.append(
                    f"Invalid type for '{field_path}': expected {expected}, got {item.get('input')!r}"
                )
            else:
                messages.append(f"{field_path}: {item['msg']}")

        return cls(
            "Configuration validation failed",
            errors=messages,
            suggestions=[
                "Review config.example.yaml for the expected layout",
                "Check that every service has name, display_name and table",
                "Verify field types match the expected schema",
            ],
        )

    def _format_message(self) -> str:
        parts = [self.message]

        if self.errors:
            parts.append("\nValidation Errors:")
            for i, error in enumerate(self.errors, 1):
                parts.append(f"  {i}. {error}")

        if self.suggestions:
            parts.append("\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"  - {suggestion}")

        return "\n".join(parts)
