"""Loading and validation of per-category unit configuration documents."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

import pydantic
from pydantic import ConfigDict, Field, field_validator, model_validator

from common.logging import get_logger
from common.validation import SchemaModel

from .errors import ConfigurationError
from .models import (
    AliasTarget,
    FactorRule,
    Registry,
    TransformRule,
    UnitCategory,
    UnitDefinition,
    ValidationResult,
)
from .normalize import normalize_unit_text
from .settings import DEFAULT_CONFIG_DIR
from .transform import TransformError, compile_transform, evaluate_to_number

logger = get_logger("unit_converter.loader")

_IDENTITY_SAMPLES = (Decimal(1), Decimal(7), Decimal("0.25"))
_AUDIT_SAMPLES = (Decimal(1), Decimal("2.5"), Decimal(10))
_AUDIT_TOLERANCE = Decimal("1e-12")


class TransformDocument(SchemaModel):
    model_config = ConfigDict(populate_by_name=True)

    to_base: str = Field(alias="toBase", min_length=1)
    from_base: str = Field(alias="fromBase", min_length=1)


class UnitDocument(SchemaModel):
    name: str = Field(min_length=1)
    symbol: str = Field(min_length=1)
    aliases: list[str] = Field(min_length=1)
    factor: Decimal | None = Field(default=None, gt=0, allow_inf_nan=False)
    transform: TransformDocument | None = None
    description: str | None = None
    precision: int | None = Field(default=None, ge=0)

    @field_validator("aliases")
    @classmethod
    def _unique_aliases(cls, aliases: list[str]) -> list[str]:
        seen: set[str] = set()
        for alias in aliases:
            normalized = alias.strip().lower()
            if not normalized:
                raise ValueError("aliases must be non-empty strings")
            if normalized in seen:
                raise ValueError(f"duplicate alias '{alias}'")
            seen.add(normalized)
        return aliases

    @model_validator(mode="after")
    def _factor_or_transform(self) -> "UnitDocument":
        if self.factor is None and self.transform is None:
            raise ValueError("unit must define a factor or a transform")
        return self


class CategoryDocument(SchemaModel):
    model_config = ConfigDict(populate_by_name=True)

    category: str = Field(min_length=1)
    base_unit: str = Field(alias="baseUnit", min_length=1)
    description: str | None = None
    units: dict[str, UnitDocument] = Field(min_length=1)


def _format_errors(exc: pydantic.ValidationError) -> tuple[str, ...]:
    errors = []
    for error in exc.errors():
        path = "/".join(str(part) for part in error.get("loc", ())) or "root"
        errors.append(f"{path}: {error.get('msg', 'invalid value')}")
    return tuple(errors) or ("root: unknown validation error",)


def _parse_document(doc: Any) -> CategoryDocument:
    if not isinstance(doc, Mapping):
        raise ConfigurationError(
            "Category document must be a mapping",
            errors=("root: expected an object",),
        )
    try:
        return CategoryDocument.model_validate(dict(doc))
    except pydantic.ValidationError as exc:
        errors = _format_errors(exc)
        raise ConfigurationError(
            f"Configuration validation failed for {doc.get('category', '<unknown>')}",
            context="; ".join(errors),
            errors=errors,
        ) from exc


def _build_unit(key: str, unit: UnitDocument) -> UnitDefinition:
    if unit.transform is not None:
        for label, formula in (("toBase", unit.transform.to_base), ("fromBase", unit.transform.from_base)):
            try:
                compile_transform(formula)
            except TransformError as exc:
                raise ConfigurationError(
                    f"Invalid {label} transform for unit '{key}'",
                    context=str(exc),
                ) from exc
        rule = TransformRule(unit.transform.to_base, unit.transform.from_base)
        factor = unit.factor
        if factor is None:
            computed = evaluate_to_number(unit.transform.to_base, 1)
            factor = Decimal(str(computed)) if computed is not None else None
    else:
        rule = FactorRule(unit.factor)  # type: ignore[arg-type]
        factor = unit.factor
    return UnitDefinition(
        key=key,
        name=unit.name,
        symbol=unit.symbol,
        aliases=tuple(unit.aliases),
        rule=rule,
        factor=factor,
        description=unit.description,
        precision=unit.precision,
    )


def _is_identity(definition: UnitDefinition) -> bool:
    if isinstance(definition.rule, FactorRule):
        return definition.rule.factor == 1
    try:
        return all(
            definition.to_base(sample) == sample and definition.from_base(sample) == sample
            for sample in _IDENTITY_SAMPLES
        )
    except TransformError:
        return False


def load_category(doc: Any, expected_name: str) -> UnitCategory:
    """Validate ``doc`` and normalise it into a :class:`UnitCategory`."""

    parsed = _parse_document(doc)
    if parsed.category != expected_name:
        raise ConfigurationError(
            f"Category name mismatch: expected {expected_name}, got {parsed.category}"
        )
    if parsed.base_unit not in parsed.units:
        raise ConfigurationError(
            f"Base unit '{parsed.base_unit}' not found in units for category {expected_name}"
        )

    units = {key: _build_unit(key, unit) for key, unit in parsed.units.items()}
    if not _is_identity(units[parsed.base_unit]):
        raise ConfigurationError(
            f"Base unit '{parsed.base_unit}' of category {expected_name} must normalise to itself",
            context="Use factor 1 or an identity transform such as 'x'.",
        )

    return UnitCategory(
        name=parsed.category,
        base_unit=parsed.base_unit,
        units=MappingProxyType(units),
        description=parsed.description,
    )


def audit_transform_pairs(category: UnitCategory) -> tuple[str, ...]:
    """Report transform units whose ``fromBase(toBase(x))`` does not return ``x``."""

    findings: list[str] = []
    for unit in category:
        if not unit.is_transform:
            continue
        for sample in _AUDIT_SAMPLES:
            try:
                round_trip = unit.from_base(unit.to_base(sample))
            except TransformError as exc:
                findings.append(f"{category.name}/{unit.key}: transform fails at x={sample} ({exc})")
                break
            if abs(round_trip - sample) > _AUDIT_TOLERANCE * max(abs(sample), Decimal(1)):
                findings.append(
                    f"{category.name}/{unit.key}: fromBase(toBase({sample})) = {round_trip}, expected {sample}"
                )
                break
    return tuple(findings)


def validate_document(doc: Any) -> ValidationResult:
    """Shape check for a category document without publishing anything."""

    try:
        parsed = _parse_document(doc)
    except ConfigurationError as exc:
        return ValidationResult(valid=False, errors=exc.errors or (exc.details.message,))
    try:
        category = load_category(doc, parsed.category)
    except ConfigurationError as exc:
        message = exc.details.message
        if exc.details.context:
            message = f"{message}: {exc.details.context}"
        return ValidationResult(valid=False, errors=(message,))
    return ValidationResult(valid=True, warnings=audit_transform_pairs(category))


def read_category_document(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle, parse_float=Decimal)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file not found: {path.name}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            f"Configuration file {path.name} is not valid JSON",
            context=f"line {exc.lineno}, column {exc.colno}: {exc.msg}",
        ) from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path.name} must contain an object")
    return data


def discover_categories(config_dir: Path) -> list[str]:
    if not config_dir.is_dir():
        raise ConfigurationError(f"Configuration directory not found: {config_dir}")
    return sorted(path.stem for path in config_dir.glob("*.json"))


def build_alias_index(categories: Mapping[str, UnitCategory]) -> dict[str, AliasTarget]:
    """Flatten every alias into one lookup table; the first registration wins."""

    index: dict[str, AliasTarget] = {}
    for category in categories.values():
        for unit in category:
            target = AliasTarget(category.name, unit.key)
            for alias in unit.aliases:
                normalized = normalize_unit_text(alias)
                if not normalized:
                    continue
                existing = index.get(normalized)
                if existing is None:
                    index[normalized] = target
                elif existing != target:
                    logger.warning(
                        "Duplicate alias '%s' in %s/%s already maps to %s/%s",
                        alias,
                        category.name,
                        unit.key,
                        existing.category,
                        existing.unit,
                    )
    # Unit keys resolve too, unless an explicit alias already claimed them.
    for category in categories.values():
        for unit in category:
            index.setdefault(normalize_unit_text(unit.key), AliasTarget(category.name, unit.key))
    return index


def load_all(
    names: Sequence[str] | None = None,
    *,
    config_dir: Path | None = None,
) -> Registry:
    """Load every category and build a registry, failing closed on any error."""

    directory = config_dir or DEFAULT_CONFIG_DIR
    selected: Iterable[str] = names or discover_categories(directory)
    categories: dict[str, UnitCategory] = {}
    for name in selected:
        document = read_category_document(directory / f"{name}.json")
        try:
            categories[name] = load_category(document, name)
        except ConfigurationError as exc:
            logger.error("Failed to load %s unit configuration: %s", name, exc.details.message)
            raise
        for warning in audit_transform_pairs(categories[name]):
            logger.warning("Transform audit: %s", warning)
    if not categories:
        raise ConfigurationError("No valid unit configurations found")

    registry = Registry(categories=categories, aliases=build_alias_index(categories))
    logger.info(
        "Loaded %d unit categories (%d aliases): %s",
        len(categories),
        len(registry.aliases),
        ", ".join(categories),
    )
    return registry


__all__ = [
    "CategoryDocument",
    "TransformDocument",
    "UnitDocument",
    "audit_transform_pairs",
    "build_alias_index",
    "discover_categories",
    "load_all",
    "load_category",
    "read_category_document",
    "validate_document",
]
