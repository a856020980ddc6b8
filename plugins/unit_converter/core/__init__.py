"""Facade for the unit converter core utilities."""

from __future__ import annotations

from .engine import (
    ValidationOutcome,
    convert,
    convert_from_input,
    convert_lines,
    format_result,
    get_conversion_factors,
    get_precision_info,
    list_categories,
    list_units,
    summarize_lines,
    to_history_record,
    validate_conversion,
)
from .errors import (
    ConfigurationError,
    ConversionFailure,
    ErrorDetails,
    ErrorKind,
    format_error,
)
from .loader import (
    audit_transform_pairs,
    build_alias_index,
    load_all,
    load_category,
    read_category_document,
    validate_document,
)
from .models import (
    AliasTarget,
    ConversionRecord,
    ConversionResult,
    EmptyLine,
    FactorRule,
    ParsedInput,
    Registry,
    TransformRule,
    UnitCategory,
    UnitDefinition,
    ValidationResult,
)
from .parser import (
    extract_unit_references,
    parse_and_validate_input,
    parse_conversion_input,
    parse_multiline_input,
    parse_numeric_value,
    validate_units,
)
from .registry import (
    get_registry,
    initialize_registry,
    is_ready,
    publish_registry,
    require_registry,
    reset_registry,
)
from .settings import UnitConverterSettings, load_settings
from .suggestions import available_units, find_similar_units, similarity
from .transform import TransformError, evaluate_to_number, evaluate_transform

__all__ = [
    "AliasTarget",
    "ConfigurationError",
    "ConversionFailure",
    "ConversionRecord",
    "ConversionResult",
    "EmptyLine",
    "ErrorDetails",
    "ErrorKind",
    "FactorRule",
    "ParsedInput",
    "Registry",
    "TransformError",
    "TransformRule",
    "UnitCategory",
    "UnitConverterSettings",
    "UnitDefinition",
    "ValidationOutcome",
    "ValidationResult",
    "audit_transform_pairs",
    "available_units",
    "build_alias_index",
    "convert",
    "convert_from_input",
    "convert_lines",
    "evaluate_to_number",
    "evaluate_transform",
    "extract_unit_references",
    "find_similar_units",
    "format_error",
    "format_result",
    "get_conversion_factors",
    "get_precision_info",
    "get_registry",
    "initialize_registry",
    "is_ready",
    "list_categories",
    "list_units",
    "load_all",
    "load_category",
    "load_settings",
    "parse_and_validate_input",
    "parse_conversion_input",
    "parse_multiline_input",
    "parse_numeric_value",
    "publish_registry",
    "read_category_document",
    "require_registry",
    "reset_registry",
    "similarity",
    "summarize_lines",
    "to_history_record",
    "validate_conversion",
    "validate_document",
    "validate_units",
]
