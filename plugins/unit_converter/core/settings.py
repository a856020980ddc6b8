"""Configuration helpers for the unit converter."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Mapping

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


@dataclass(frozen=True)
class UnitConverterSettings:
    config_dir: Path = DEFAULT_CONFIG_DIR
    categories: tuple[str, ...] = ()
    max_suggestions: int = 3
    min_similarity: float = 0.3
    exponential_upper: Decimal = Decimal("1e12")
    exponential_lower: Decimal = Decimal("1e-6")
    max_lines: int = 200
    max_input_length: int = 256


def _resolve_path(root: Path, value: str) -> Path:
    path = Path(value)
    if path.is_absolute():
        return path
    return (root / path).resolve()


def _as_int(value: object, default: int, *, minimum: int = 1) -> int:
    try:
        parsed = int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return default
    return max(parsed, minimum)


def _as_float(value: object, default: float) -> float:
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if not 0.0 <= parsed <= 1.0:
        return default
    return parsed


def _as_decimal(value: object, default: Decimal) -> Decimal:
    if value is None:
        return default
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        return default
    if not parsed.is_finite() or parsed <= 0:
        return default
    return parsed


def load_settings(raw: Mapping[str, object] | None, *, root: Path | None = None) -> UnitConverterSettings:
    raw = raw or {}
    defaults = UnitConverterSettings()

    config_dir = defaults.config_dir
    if raw.get("config_dir"):
        config_dir = _resolve_path(root or Path.cwd(), str(raw["config_dir"]))

    categories_raw = raw.get("categories")
    categories: tuple[str, ...] = ()
    if isinstance(categories_raw, (list, tuple)):
        categories = tuple(str(item) for item in categories_raw if str(item).strip())

    suggestions = raw.get("suggestions")
    suggestions = suggestions if isinstance(suggestions, Mapping) else {}
    formatting = raw.get("formatting")
    formatting = formatting if isinstance(formatting, Mapping) else {}

    return UnitConverterSettings(
        config_dir=config_dir,
        categories=categories,
        max_suggestions=_as_int(suggestions.get("max_results"), defaults.max_suggestions),
        min_similarity=_as_float(suggestions.get("min_similarity"), defaults.min_similarity),
        exponential_upper=_as_decimal(formatting.get("exponential_upper"), defaults.exponential_upper),
        exponential_lower=_as_decimal(formatting.get("exponential_lower"), defaults.exponential_lower),
        max_lines=_as_int(raw.get("max_lines"), defaults.max_lines),
        max_input_length=_as_int(raw.get("max_input_length"), defaults.max_input_length),
    )


__all__ = ["DEFAULT_CONFIG_DIR", "UnitConverterSettings", "load_settings"]
