"""Natural language parser for ``NUMBER UNIT to|as UNIT`` requests."""

from __future__ import annotations

import re
from decimal import Decimal, DecimalException, InvalidOperation
from typing import Union

from .errors import (
    ConversionFailure,
    ErrorDetails,
    ErrorKind,
    category_mismatch_error,
    invalid_format_error,
    number_format_error,
    unknown_unit_error,
)
from .models import EmptyLine, ParsedInput, Registry
from .normalize import normalize_unit_text
from .registry import require_registry
from .suggestions import enhance_with_suggestions
from .transform import DECIMAL_CONTEXT

ParseOutcome = Union[ParsedInput, ErrorDetails]
LineOutcome = Union[ParsedInput, ErrorDetails, EmptyLine]

MAX_INPUT_LENGTH = 256

_UNIT = r"[a-zA-Z°µμÅå][\w°µμÅåΩ²³·\-/.^'\"“”‘’′″\s]*?"
_TAIL = rf"\s+({_UNIT})\s+(?:to|as)\s+({_UNIT})$"

# Ordered: decimal / scientific, simple fraction, mixed number.
CONVERSION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"^([+-]?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?){_TAIL}", re.IGNORECASE),
    re.compile(rf"^([0-9]+/[0-9]+){_TAIL}", re.IGNORECASE),
    re.compile(rf"^([0-9]+\s+[0-9]+/[0-9]+){_TAIL}", re.IGNORECASE),
)

_DECIMAL = re.compile(r"^[+-]?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?$")
_FRACTION = re.compile(r"^([0-9]+)/([0-9]+)$")
_MIXED = re.compile(r"^([0-9]+)\s+([0-9]+)/([0-9]+)$")
_WORD_SPLIT = re.compile(r"\s+")
_SKIP_WORDS = {"to", "as", "in"}


def parse_numeric_value(text: str) -> Decimal | None:
    """Parse decimals, scientific notation, fractions and mixed numbers."""

    trimmed = text.strip()
    try:
        if _DECIMAL.match(trimmed):
            return Decimal(trimmed)
        match = _FRACTION.match(trimmed)
        if match:
            numerator, denominator = (Decimal(part) for part in match.groups())
            if denominator == 0:
                return None
            return DECIMAL_CONTEXT.divide(numerator, denominator)
        match = _MIXED.match(trimmed)
        if match:
            whole, numerator, denominator = (Decimal(part) for part in match.groups())
            if denominator == 0:
                return None
            return DECIMAL_CONTEXT.add(whole, DECIMAL_CONTEXT.divide(numerator, denominator))
    except (InvalidOperation, DecimalException):
        return None
    return None


def parse_conversion_input(line: str, *, max_length: int = MAX_INPUT_LENGTH) -> ParseOutcome:
    """Parse a single line into a :class:`ParsedInput` or an error."""

    trimmed = line.strip() if isinstance(line, str) else ""
    if not trimmed:
        return ErrorDetails(
            kind=ErrorKind.INVALID_FORMAT,
            message="Input cannot be empty",
            context="Empty input provided",
        )
    if len(trimmed) > max_length:
        return ErrorDetails(
            kind=ErrorKind.INVALID_FORMAT,
            message="Input is too long",
            context=f"Conversion requests are limited to {max_length} characters.",
        )

    for pattern in CONVERSION_PATTERNS:
        match = pattern.match(trimmed)
        if not match:
            continue
        value_text, source_text, target_text = match.groups()
        value = parse_numeric_value(value_text)
        if value is None or not value.is_finite():
            return number_format_error(value_text)

        source_unit = normalize_unit_text(source_text)
        target_unit = normalize_unit_text(target_text)
        if source_unit == target_unit:
            return ErrorDetails(
                kind=ErrorKind.INVALID_FORMAT,
                message="Source and target units cannot be the same",
                context=(
                    f'Both units resolved to "{source_unit}". '
                    "Please specify different units for conversion."
                ),
            )
        return ParsedInput(
            value=value,
            source_unit=source_unit,
            target_unit=target_unit,
            original_input=trimmed,
        )

    return invalid_format_error()


def validate_units(
    source_unit: str,
    target_unit: str,
    registry: Registry | None = None,
    *,
    max_suggestions: int = 3,
) -> ErrorDetails | None:
    """Check that both units resolve and belong to the same category."""

    try:
        current = require_registry(registry)
    except ConversionFailure as exc:
        return exc.details

    source = current.resolve(source_unit)
    if source is None:
        return enhance_with_suggestions(
            unknown_unit_error(source_unit, is_source=True),
            source_unit,
            current,
            max_suggestions=max_suggestions,
        )
    target = current.resolve(target_unit)
    if target is None:
        return enhance_with_suggestions(
            unknown_unit_error(target_unit, is_source=False),
            target_unit,
            current,
            max_suggestions=max_suggestions,
        )
    if source.category != target.category:
        return category_mismatch_error(source_unit, target_unit, source.category, target.category)
    return None


def parse_and_validate_input(line: str, registry: Registry | None = None) -> ParseOutcome:
    parsed = parse_conversion_input(line)
    if isinstance(parsed, ErrorDetails):
        return parsed
    error = validate_units(parsed.source_unit, parsed.target_unit, registry)
    if error is not None:
        return error
    return parsed


def parse_multiline_input(text: str, registry: Registry | None = None) -> list[LineOutcome]:
    """Parse every line independently, keeping one entry per input line."""

    outcomes: list[LineOutcome] = []
    for number, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            outcomes.append(EmptyLine(line_number=number))
            continue
        outcomes.append(parse_and_validate_input(line, registry))
    return outcomes


def is_successful_parse(outcome: LineOutcome) -> bool:
    return isinstance(outcome, ParsedInput)


def extract_unit_references(text: str) -> list[str]:
    """Collect words that look like unit names, even from malformed input."""

    units: list[str] = []
    for word in _WORD_SPLIT.split(text.lower()):
        if not word or word[0].isdigit() or word in _SKIP_WORDS:
            continue
        if word not in units:
            units.append(word)
    return units


__all__ = [
    "CONVERSION_PATTERNS",
    "LineOutcome",
    "MAX_INPUT_LENGTH",
    "ParseOutcome",
    "extract_unit_references",
    "is_successful_parse",
    "parse_and_validate_input",
    "parse_conversion_input",
    "parse_multiline_input",
    "parse_numeric_value",
    "validate_units",
]
