"""Conversion engine: resolve units, convert through the base unit, format."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation, localcontext
from typing import Any

from common.logging import get_logger

from .errors import (
    ConversionFailure,
    ErrorDetails,
    ErrorKind,
    calculation_error,
    category_mismatch_error,
    unknown_unit_error,
)
from .models import ConversionRecord, ConversionResult, Registry
from .parser import parse_conversion_input
from .registry import require_registry
from .settings import UnitConverterSettings
from .suggestions import enhance_with_suggestions
from .transform import DECIMAL_CONTEXT, DECIMAL_PRECISION, TransformError

logger = get_logger("unit_converter.engine")

_DEFAULT_SETTINGS = UnitConverterSettings()

# (lower bound of |value|, decimal places), checked top to bottom.
_DECIMAL_BANDS: tuple[tuple[Decimal, int], ...] = (
    (Decimal(1000), 2),
    (Decimal(1), 4),
    (Decimal("0.001"), 6),
)
_SMALL_VALUE_PLACES = 8
_EXPONENT_DIGITS = 6


@dataclass(frozen=True)
class ValidationOutcome:
    is_valid: bool
    error: ErrorDetails | None = None
    category: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "category": self.category,
            "error": self.error.to_dict() if self.error else None,
        }


def _strip_zeros(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _format_exponential(value: Decimal) -> str:
    with localcontext(DECIMAL_CONTEXT):
        text = f"{value:.{_EXPONENT_DIGITS}e}"
    mantissa, _, exponent = text.partition("e")
    return f"{_strip_zeros(mantissa)}e{exponent}"


def format_result(value: Decimal, settings: UnitConverterSettings | None = None) -> str:
    """Format ``value`` with magnitude dependent precision."""

    settings = settings or _DEFAULT_SETTINGS
    if value.is_zero():
        return "0"
    magnitude = abs(value)
    if magnitude >= settings.exponential_upper or magnitude < settings.exponential_lower:
        return _format_exponential(value)
    places = _SMALL_VALUE_PLACES
    for lower, band_places in _DECIMAL_BANDS:
        if magnitude >= lower:
            places = band_places
            break
    quantized = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP, context=DECIMAL_CONTEXT)
    text = _strip_zeros(f"{quantized:f}")
    return "0" if text in {"-0", ""} else text


def _ensure_representable(value: Decimal, message: str) -> None:
    # Values are also exposed as floats and must fit a double.
    if not math.isfinite(float(value)):
        raise ConversionFailure(calculation_error(message, "Values must fit in a double-precision float"))


def _coerce_value(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ConversionFailure(calculation_error(f"Invalid input value: {value}", "Input must be a valid number"))
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float, str)):
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            number = None
    else:
        number = None
    if number is None or not number.is_finite():
        raise ConversionFailure(calculation_error(f"Invalid input value: {value}", "Input must be a valid number"))
    _ensure_representable(number, "Input value is outside the representable range")
    return number


def _convert(
    value: Any,
    source_token: str,
    target_token: str,
    registry: Registry | None,
    settings: UnitConverterSettings,
) -> ConversionResult:
    current = require_registry(registry)
    number = _coerce_value(value)

    source = current.resolve(source_token)
    if source is None:
        raise ConversionFailure(
            enhance_with_suggestions(
                unknown_unit_error(source_token, is_source=True),
                source_token,
                current,
                max_suggestions=settings.max_suggestions,
                min_similarity=settings.min_similarity,
            )
        )
    target = current.resolve(target_token)
    if target is None:
        raise ConversionFailure(
            enhance_with_suggestions(
                unknown_unit_error(target_token, is_source=False),
                target_token,
                current,
                max_suggestions=settings.max_suggestions,
                min_similarity=settings.min_similarity,
            )
        )
    if source.category != target.category:
        raise ConversionFailure(
            category_mismatch_error(source_token, target_token, source.category, target.category)
        )

    if source == target:
        result = number
    else:
        source_unit = current.unit(source)
        target_unit = current.unit(target)
        try:
            base_value = source_unit.to_base(number)
            result = target_unit.from_base(base_value)
        except TransformError as exc:
            raise ConversionFailure(
                calculation_error(
                    f"Conversion calculation failed: {exc}",
                    "Arithmetic error during unit conversion",
                )
            ) from exc
        except DecimalException as exc:
            raise ConversionFailure(
                calculation_error(
                    "Conversion calculation failed: invalid arithmetic operation",
                    "Arithmetic error during unit conversion",
                )
            ) from exc
        if not result.is_finite():
            raise ConversionFailure(calculation_error("Conversion produced a non-finite result"))
        _ensure_representable(result, "Conversion result is outside the representable range")

    return ConversionResult(
        success=True,
        value=float(result),
        exact_value=result,
        formatted=format_result(result, settings),
        input_value=number,
        source_unit=source_token,
        target_unit=target_token,
        source_key=source.unit,
        target_key=target.unit,
        category=source.category,
    )


def convert(
    value: Any,
    source_token: str,
    target_token: str,
    *,
    registry: Registry | None = None,
    settings: UnitConverterSettings | None = None,
) -> ConversionResult:
    """Convert ``value`` from ``source_token`` to ``target_token``.

    Never raises: every failure, including unexpected internal faults, is
    returned as a failed :class:`ConversionResult`.
    """

    try:
        return _convert(value, source_token, target_token, registry, settings or _DEFAULT_SETTINGS)
    except ConversionFailure as exc:
        return ConversionResult.failure(exc.details)
    except Exception as exc:  # noqa: BLE001 - public boundary
        logger.exception("Unexpected conversion failure")
        return ConversionResult.failure(
            calculation_error(str(exc) or "Unknown conversion error", "An unexpected error occurred during conversion")
        )


def convert_from_input(
    text: str,
    *,
    registry: Registry | None = None,
    settings: UnitConverterSettings | None = None,
) -> ConversionResult:
    """Parse a natural language request and convert it."""

    settings = settings or _DEFAULT_SETTINGS
    try:
        parsed = parse_conversion_input(text, max_length=settings.max_input_length)
    except Exception as exc:  # noqa: BLE001 - public boundary
        logger.exception("Unexpected parser failure")
        return ConversionResult.failure(
            calculation_error(str(exc) or "Unknown input processing error", "Failed to process conversion input")
        )
    if isinstance(parsed, ErrorDetails):
        return ConversionResult.failure(parsed)
    return convert(parsed.value, parsed.source_unit, parsed.target_unit, registry=registry, settings=settings)


def convert_lines(
    text: str,
    *,
    registry: Registry | None = None,
    settings: UnitConverterSettings | None = None,
) -> list[ConversionResult]:
    """Convert each line of ``text``; blank lines yield empty placeholders."""

    settings = settings or _DEFAULT_SETTINGS
    lines = text.split("\n") if isinstance(text, str) else []
    if len(lines) > settings.max_lines:
        return [
            ConversionResult.failure(
                ErrorDetails(
                    kind=ErrorKind.INVALID_FORMAT,
                    message="Too many lines",
                    context=f"At most {settings.max_lines} conversion lines are processed at once.",
                )
            )
        ]
    results: list[ConversionResult] = []
    for line in lines:
        if not line.strip():
            results.append(ConversionResult.empty_line())
            continue
        results.append(convert_from_input(line, registry=registry, settings=settings))
    return results


def validate_conversion(
    source_token: str,
    target_token: str,
    *,
    registry: Registry | None = None,
    settings: UnitConverterSettings | None = None,
) -> ValidationOutcome:
    """Cheap pre-check: both tokens resolve and share a category."""

    settings = settings or _DEFAULT_SETTINGS
    try:
        current = require_registry(registry)
    except ConversionFailure as exc:
        return ValidationOutcome(is_valid=False, error=exc.details)
    source = current.resolve(source_token)
    if source is None:
        return ValidationOutcome(
            is_valid=False,
            error=enhance_with_suggestions(
                unknown_unit_error(source_token, is_source=True),
                source_token,
                current,
                max_suggestions=settings.max_suggestions,
                min_similarity=settings.min_similarity,
            ),
        )
    target = current.resolve(target_token)
    if target is None:
        return ValidationOutcome(
            is_valid=False,
            error=enhance_with_suggestions(
                unknown_unit_error(target_token, is_source=False),
                target_token,
                current,
                max_suggestions=settings.max_suggestions,
                min_similarity=settings.min_similarity,
            ),
        )
    if source.category != target.category:
        return ValidationOutcome(
            is_valid=False,
            error=category_mismatch_error(source_token, target_token, source.category, target.category),
        )
    return ValidationOutcome(is_valid=True, category=source.category)


def get_conversion_factors(token: str, *, registry: Registry | None = None) -> dict[str, Any] | None:
    """Return the category, linear factor and base unit behind ``token``."""

    try:
        current = require_registry(registry)
    except ConversionFailure:
        return None
    target = current.resolve(token)
    if target is None:
        return None
    unit = current.unit(target)
    return {
        "category": target.category,
        "unit": unit.key,
        "factor": float(unit.factor) if unit.factor is not None else None,
        "base_unit": current.categories[target.category].base_unit,
        "transform": unit.is_transform,
    }


def get_precision_info(settings: UnitConverterSettings | None = None) -> dict[str, Any]:
    settings = settings or _DEFAULT_SETTINGS
    return {
        "decimal_precision": DECIMAL_PRECISION,
        "rounding_mode": DECIMAL_CONTEXT.rounding,
        "scientific_notation_thresholds": {
            "upper": float(settings.exponential_upper),
            "lower": float(settings.exponential_lower),
        },
    }


def list_categories(*, registry: Registry | None = None) -> list[str]:
    current = require_registry(registry)
    return current.category_names()


def list_units(category: str, *, registry: Registry | None = None) -> list[dict[str, Any]]:
    current = require_registry(registry)
    if category not in current.categories:
        raise ConversionFailure(
            ErrorDetails(
                kind=ErrorKind.INVALID_FORMAT,
                message=f"Unknown unit category '{category}'",
                suggestions=tuple(current.category_names()),
            )
        )
    selected = current.categories[category]
    units = []
    for unit in selected:
        payload = unit.to_dict()
        payload["base"] = unit.key == selected.base_unit
        units.append(payload)
    return units


def to_history_record(result: ConversionResult, input_text: str) -> ConversionRecord | None:
    """Build a history entry for a successful conversion."""

    if not result.success or result.value is None or result.input_value is None:
        return None
    return ConversionRecord(
        input=input_text.strip(),
        output=f"{result.formatted} {result.target_unit}",
        source_unit=result.source_unit or "",
        target_unit=result.target_unit or "",
        value=float(result.input_value),
        result=result.value,
    )


def summarize_lines(outcomes: list[ConversionResult]) -> dict[str, int]:
    """Count successes, failures and blank lines in a multi-line run."""

    summary = {"total": len(outcomes), "converted": 0, "failed": 0, "empty": 0}
    for outcome in outcomes:
        if outcome.empty:
            summary["empty"] += 1
        elif outcome.success:
            summary["converted"] += 1
        else:
            summary["failed"] += 1
    return summary


__all__ = [
    "ValidationOutcome",
    "convert",
    "convert_from_input",
    "convert_lines",
    "format_result",
    "get_conversion_factors",
    "get_precision_info",
    "list_categories",
    "list_units",
    "summarize_lines",
    "to_history_record",
    "validate_conversion",
]
