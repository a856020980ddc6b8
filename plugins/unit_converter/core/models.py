"""Immutable data structures shared by the loader, parser and engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Union

from .errors import ErrorDetails
from .normalize import normalize_unit_text
from .transform import DECIMAL_CONTEXT, evaluate_transform


@dataclass(frozen=True)
class FactorRule:
    """Linear unit: ``base = value * factor``."""

    factor: Decimal

    def to_base(self, value: Decimal) -> Decimal:
        return DECIMAL_CONTEXT.multiply(value, self.factor)

    def from_base(self, value: Decimal) -> Decimal:
        return DECIMAL_CONTEXT.divide(value, self.factor)


@dataclass(frozen=True)
class TransformRule:
    """Formula unit evaluated live through the sandboxed evaluator."""

    to_base_formula: str
    from_base_formula: str

    def to_base(self, value: Decimal) -> Decimal:
        return evaluate_transform(self.to_base_formula, value)

    def from_base(self, value: Decimal) -> Decimal:
        return evaluate_transform(self.from_base_formula, value)


ConversionRule = Union[FactorRule, TransformRule]


@dataclass(frozen=True)
class UnitDefinition:
    key: str
    name: str
    symbol: str
    aliases: tuple[str, ...]
    rule: ConversionRule
    factor: Decimal | None = None
    description: str | None = None
    precision: int | None = None

    @property
    def is_transform(self) -> bool:
        return isinstance(self.rule, TransformRule)

    def to_base(self, value: Decimal) -> Decimal:
        return self.rule.to_base(value)

    def from_base(self, value: Decimal) -> Decimal:
        return self.rule.from_base(value)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "key": self.key,
            "name": self.name,
            "symbol": self.symbol,
            "aliases": list(self.aliases),
            "factor": float(self.factor) if self.factor is not None else None,
        }
        if isinstance(self.rule, TransformRule):
            payload["transform"] = {
                "toBase": self.rule.to_base_formula,
                "fromBase": self.rule.from_base_formula,
            }
        if self.description:
            payload["description"] = self.description
        return payload


@dataclass(frozen=True)
class UnitCategory:
    name: str
    base_unit: str
    units: Mapping[str, UnitDefinition]
    description: str | None = None

    @property
    def base(self) -> UnitDefinition:
        return self.units[self.base_unit]

    def __iter__(self) -> Iterator[UnitDefinition]:
        return iter(self.units.values())


@dataclass(frozen=True)
class AliasTarget:
    category: str
    unit: str


@dataclass(frozen=True)
class Registry:
    """Published set of categories plus the alias index built from them."""

    categories: Mapping[str, UnitCategory]
    aliases: Mapping[str, AliasTarget]
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "categories", MappingProxyType(dict(self.categories)))
        object.__setattr__(self, "aliases", MappingProxyType(dict(self.aliases)))

    def resolve(self, token: str) -> AliasTarget | None:
        if not isinstance(token, str):
            return None
        return self.aliases.get(normalize_unit_text(token))

    def unit(self, target: AliasTarget) -> UnitDefinition:
        return self.categories[target.category].units[target.unit]

    def category_names(self) -> list[str]:
        return list(self.categories.keys())

    def aliases_by_category(self) -> dict[str, list[str]]:
        grouped: dict[str, set[str]] = {}
        for alias, target in self.aliases.items():
            grouped.setdefault(target.category, set()).add(alias)
        return {name: sorted(values) for name, values in grouped.items()}


@dataclass(frozen=True)
class ParsedInput:
    value: Decimal
    source_unit: str
    target_unit: str
    original_input: str


@dataclass(frozen=True)
class EmptyLine:
    """Placeholder for a blank line in multi-line input."""

    line_number: int


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConversionResult:
    success: bool
    value: float | None = None
    exact_value: Decimal | None = None
    formatted: str | None = None
    input_value: Decimal | None = None
    source_unit: str | None = None
    target_unit: str | None = None
    source_key: str | None = None
    target_key: str | None = None
    category: str | None = None
    error: ErrorDetails | None = None
    empty: bool = False

    @classmethod
    def failure(cls, error: ErrorDetails) -> "ConversionResult":
        return cls(success=False, error=error)

    @classmethod
    def empty_line(cls) -> "ConversionResult":
        return cls(success=False, empty=True)

    def to_dict(self) -> dict[str, Any]:
        if self.empty:
            return {"success": False, "empty": True}
        if not self.success:
            return {"success": False, "error": self.error.to_dict() if self.error else None}
        return {
            "success": True,
            "value": self.value,
            "formatted": self.formatted,
            "input_value": float(self.input_value) if self.input_value is not None else None,
            "source_unit": self.source_unit,
            "target_unit": self.target_unit,
            "source_key": self.source_key,
            "target_key": self.target_key,
            "category": self.category,
        }


@dataclass(frozen=True)
class ConversionRecord:
    """History entry handed to an external persistence layer."""

    input: str
    output: str
    source_unit: str
    target_unit: str
    value: float
    result: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": self.input,
            "output": self.output,
            "source_unit": self.source_unit,
            "target_unit": self.target_unit,
            "value": self.value,
            "result": self.result,
            "timestamp": self.timestamp.isoformat(),
        }


__all__ = [
    "AliasTarget",
    "ConversionRecord",
    "ConversionResult",
    "ConversionRule",
    "EmptyLine",
    "FactorRule",
    "ParsedInput",
    "Registry",
    "TransformRule",
    "UnitCategory",
    "UnitDefinition",
    "ValidationResult",
]
