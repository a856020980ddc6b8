"""Typed conversion errors and uniform error formatting."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping


class ErrorKind(str, Enum):
    INVALID_FORMAT = "INVALID_FORMAT"
    UNKNOWN_UNIT = "UNKNOWN_UNIT"
    CALCULATION_ERROR = "CALCULATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


@dataclass(frozen=True)
class ErrorDetails:
    """Description of a failed parse or conversion."""

    kind: ErrorKind
    message: str
    context: str | None = None
    suggestions: tuple[str, ...] = field(default_factory=tuple)

    def with_suggestions(self, suggestions: Iterable[str]) -> "ErrorDetails":
        return replace(self, suggestions=tuple(suggestions))

    def to_dict(self) -> Mapping[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "context": self.context,
            "suggestions": list(self.suggestions),
            "formatted": format_error(self),
        }


class ConversionFailure(Exception):
    """Internal carrier for :class:`ErrorDetails` inside the core."""

    def __init__(self, details: ErrorDetails):
        super().__init__(details.message)
        self.details = details

    @property
    def kind(self) -> ErrorKind:
        return self.details.kind


class ConfigurationError(ConversionFailure):
    """Raised when a category document is malformed or inconsistent."""

    def __init__(self, message: str, *, context: str | None = None, errors: Iterable[str] = ()):
        errors = tuple(errors)
        super().__init__(
            ErrorDetails(
                kind=ErrorKind.CONFIGURATION_ERROR,
                message=message,
                context=context,
                suggestions=errors,
            )
        )
        self.errors = errors


EXAMPLE_INPUTS: tuple[str, ...] = (
    'Try: "5 meters to feet"',
    'Try: "2.5 inches as mm"',
    'Try: "1/2 foot to centimeters"',
    'Try: "1.5e3 mm to meters"',
)

NUMBER_FORMATS: tuple[str, ...] = (
    "Decimals: 5.5, 123.45, 0.001",
    "Scientific notation: 1.5e3, 2E-4",
    "Fractions: 1/2, 3/4, 5/8",
    "Mixed numbers: 1 1/2, 2 3/4",
)

UNKNOWN_UNIT_GUIDANCE: tuple[str, ...] = (
    "Check the spelling of your unit",
    'Try using a common abbreviation (e.g., "m" for meter)',
    "Verify the unit is supported in this category",
)


def invalid_format_error(context: str | None = None) -> ErrorDetails:
    return ErrorDetails(
        kind=ErrorKind.INVALID_FORMAT,
        message="Invalid conversion format",
        context=context
        or (
            'Please use the format: "NUMBER UNIT to UNIT" or "NUMBER UNIT as UNIT". '
            'Examples: "5 meters to feet", "2.5 inches as millimeters", "1/2 foot to cm"'
        ),
        suggestions=EXAMPLE_INPUTS,
    )


def number_format_error(value_text: str) -> ErrorDetails:
    return ErrorDetails(
        kind=ErrorKind.INVALID_FORMAT,
        message=f'Invalid number format: "{value_text}"',
        context=f'Could not parse "{value_text}" as a valid number.',
        suggestions=NUMBER_FORMATS,
    )


def unknown_unit_error(unit: str, *, is_source: bool = True) -> ErrorDetails:
    """Build an UNKNOWN_UNIT error; suggestions are attached separately."""

    role = "source" if is_source else "target"
    return ErrorDetails(
        kind=ErrorKind.UNKNOWN_UNIT,
        message=f'Unknown {role} unit: "{unit}"',
        context=(
            f'The unit "{unit}" was not found in the configuration. '
            "Check spelling or try a different alias."
        ),
    )


def category_mismatch_error(
    source_unit: str, target_unit: str, source_category: str, target_category: str
) -> ErrorDetails:
    return ErrorDetails(
        kind=ErrorKind.INVALID_FORMAT,
        message=f"Cannot convert between different unit categories ({source_category} to {target_category})",
        context=(
            f'"{source_unit}" is a {source_category} unit, but "{target_unit}" is a '
            f"{target_category} unit. Conversions are only possible within the same category."
        ),
        suggestions=(
            f"Try converting {source_unit} to another {source_category} unit",
            f"Try converting a {target_category} unit to {target_unit}",
            "Check that both units are from the same measurement category",
        ),
    )


def calculation_error(message: str, context: str | None = None) -> ErrorDetails:
    return ErrorDetails(
        kind=ErrorKind.CALCULATION_ERROR,
        message=message,
        context=context or "An error occurred during the conversion calculation.",
        suggestions=(
            "Check that the input value is within a reasonable range",
            "Verify that both units are valid for conversion",
            "Try using a different numerical format",
        ),
    )


def not_initialized_error() -> ErrorDetails:
    return calculation_error(
        "Conversion system not initialized",
        "Configuration files not loaded. Please try again.",
    )


def format_error(details: ErrorDetails) -> str:
    """Render ``details`` as plain text for any caller."""

    text = details.message
    if details.context:
        text += f"\n\n{details.context}"
    if details.suggestions:
        text += "\n\nSuggestions:"
        for suggestion in details.suggestions:
            text += f"\n• {suggestion}"
    return text


__all__ = [
    "ConfigurationError",
    "ConversionFailure",
    "ErrorDetails",
    "ErrorKind",
    "EXAMPLE_INPUTS",
    "NUMBER_FORMATS",
    "UNKNOWN_UNIT_GUIDANCE",
    "calculation_error",
    "category_mismatch_error",
    "format_error",
    "invalid_format_error",
    "not_initialized_error",
    "number_format_error",
    "unknown_unit_error",
]
