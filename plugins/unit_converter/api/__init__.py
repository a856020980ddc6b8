"""Unit converter API with standardized responses."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from flask import Blueprint, Flask, Response, current_app, request
from pydantic import Field
from werkzeug.exceptions import HTTPException

from common.errors import (
    AppError,
    NotFoundAppError,
    ServiceUnavailableAppError,
    UnprocessableAppError,
    ValidationAppError,
    ensure_app_error,
)
from common.logging import get_logger
from common.responses import fail, ok
from common.validation import SchemaModel, ValidationError, parse_model

from ..core import (
    ConfigurationError,
    ConversionFailure,
    ErrorDetails,
    ErrorKind,
    UnitConverterSettings,
    convert,
    convert_from_input,
    convert_lines,
    find_similar_units,
    get_precision_info,
    get_registry,
    initialize_registry,
    list_categories,
    list_units,
    load_settings,
    summarize_lines,
    to_history_record,
    validate_conversion,
)
from ..core.errors import not_initialized_error

logger = get_logger("unit_converter.api")

PROJECT_ROOT = Path(__file__).resolve().parents[3]
SETTINGS_KEY = "unit_converter"

_ERROR_TYPES: dict[ErrorKind, type[AppError]] = {
    ErrorKind.INVALID_FORMAT: ValidationAppError,
    ErrorKind.UNKNOWN_UNIT: ValidationAppError,
    ErrorKind.CALCULATION_ERROR: UnprocessableAppError,
    ErrorKind.CONFIGURATION_ERROR: ServiceUnavailableAppError,
}


class ConvertPayload(SchemaModel):
    value: float | int | str
    from_unit: str = Field(min_length=1)
    to_unit: str = Field(min_length=1)


class TextPayload(SchemaModel):
    text: str


class ValidatePayload(SchemaModel):
    from_unit: str = Field(min_length=1)
    to_unit: str = Field(min_length=1)


api_bp = Blueprint("unit_converter_api", __name__, url_prefix="/api/unit_converter")


def _settings() -> UnitConverterSettings:
    settings = current_app.extensions.get(SETTINGS_KEY)
    if isinstance(settings, UnitConverterSettings):
        return settings
    raw = current_app.config.get("PLUGIN_SETTINGS", {}).get(SETTINGS_KEY, {})
    return load_settings(raw, root=PROJECT_ROOT)


def init_app(app: Flask) -> None:
    """Load the unit configuration once and publish the registry."""

    raw = app.config.get("PLUGIN_SETTINGS", {}).get(SETTINGS_KEY, {})
    settings = load_settings(raw if isinstance(raw, dict) else {}, root=PROJECT_ROOT)
    app.extensions[SETTINGS_KEY] = settings
    try:
        initialize_registry(settings)
    except ConfigurationError as exc:
        # Endpoints answer 503 until a valid configuration is published.
        logger.error("Unit configuration rejected: %s", exc.details.message)


def _details_error(details: ErrorDetails) -> AppError:
    error_type = _ERROR_TYPES.get(details.kind, ValidationAppError)
    return error_type(
        message=details.message,
        code=f"unit.{details.kind.value.lower()}",
        details=details.to_dict(),
    )


def _not_ready_error() -> AppError:
    details = not_initialized_error()
    return ServiceUnavailableAppError(
        message=details.message,
        code="unit.not_initialized",
        details=details.to_dict(),
    )


def _payload(model: type[SchemaModel]) -> Any:
    try:
        return parse_model(model, request.get_json(silent=True) or {})
    except ValidationError as exc:
        raise ValidationAppError(
            message=str(exc),
            code="unit.invalid_request",
            details={"errors": exc.details},
        ) from exc


def _handle(callable_: Callable[[], Any]) -> Response:
    if get_registry() is None:
        return fail(_not_ready_error())
    try:
        return ok(callable_())
    except AppError as exc:
        return fail(exc)
    except ConversionFailure as exc:
        return fail(_details_error(exc.details))
    except HTTPException:
        raise
    except Exception as exc:  # pragma: no cover - defensive path
        logger.exception("Unhandled unit converter error")
        error = ensure_app_error(exc, fallback_code="unit.internal")
        return fail(error, status=error.status_code)


def _result_payload(result, input_text: str | None = None) -> dict[str, Any]:
    if not result.success and result.error is not None:
        raise ConversionFailure(result.error)
    data = result.to_dict()
    if input_text is not None:
        record = to_history_record(result, input_text)
        data["record"] = record.to_dict() if record else None
    return data


@api_bp.get("/categories")
def categories() -> Response:
    def _categories() -> dict[str, Any]:
        names = list_categories()
        return {"categories": names, "units": {name: list_units(name) for name in names}}

    return _handle(_categories)


@api_bp.get("/units/<category>")
def units_endpoint(category: str) -> Response:
    def _units() -> dict[str, Any]:
        try:
            units = list_units(category)
        except ConversionFailure as exc:
            raise NotFoundAppError(
                message=exc.details.message,
                code="unit.unknown_category",
                details={"categories": list(exc.details.suggestions)},
            ) from exc
        return {"category": category, "units": units}

    return _handle(_units)


@api_bp.post("/convert")
def convert_endpoint() -> Response:
    def _convert() -> dict[str, Any]:
        payload = _payload(ConvertPayload)
        result = convert(payload.value, payload.from_unit, payload.to_unit, settings=_settings())
        return _result_payload(result)

    return _handle(_convert)


@api_bp.post("/parse")
def parse_endpoint() -> Response:
    def _parse() -> dict[str, Any]:
        payload = _payload(TextPayload)
        result = convert_from_input(payload.text, settings=_settings())
        return _result_payload(result, payload.text)

    return _handle(_parse)


@api_bp.post("/lines")
def lines_endpoint() -> Response:
    def _lines() -> dict[str, Any]:
        payload = _payload(TextPayload)
        outcomes = convert_lines(payload.text, settings=_settings())
        return {
            "results": [outcome.to_dict() for outcome in outcomes],
            "summary": summarize_lines(outcomes),
        }

    return _handle(_lines)


@api_bp.post("/validate")
def validate_endpoint() -> Response:
    def _validate() -> dict[str, Any]:
        payload = _payload(ValidatePayload)
        return validate_conversion(payload.from_unit, payload.to_unit, settings=_settings()).to_dict()

    return _handle(_validate)


@api_bp.get("/suggestions")
def suggestions_endpoint() -> Response:
    def _suggestions() -> dict[str, Any]:
        query = request.args.get("q", "")
        settings = _settings()
        matches = find_similar_units(
            query,
            get_registry(),
            max_suggestions=settings.max_suggestions,
            min_similarity=settings.min_similarity,
        )
        return {"query": query, "suggestions": matches}

    return _handle(_suggestions)


@api_bp.get("/precision")
def precision_endpoint() -> Response:
    return ok(get_precision_info(_settings()))


blueprints = [api_bp]


__all__ = [
    "blueprints",
    "categories",
    "convert_endpoint",
    "init_app",
    "lines_endpoint",
    "parse_endpoint",
    "precision_endpoint",
    "suggestions_endpoint",
    "units_endpoint",
    "validate_endpoint",
]
