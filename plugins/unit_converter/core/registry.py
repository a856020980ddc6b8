"""Process-wide published unit registry."""

from __future__ import annotations

from common.logging import get_logger

from .errors import ConfigurationError, ConversionFailure, not_initialized_error
from .loader import load_all
from .models import Registry
from .settings import UnitConverterSettings

logger = get_logger("unit_converter.registry")

# Replaced wholesale, never mutated in place.
_published: Registry | None = None


def publish_registry(registry: Registry | None) -> None:
    global _published
    _published = registry


def get_registry() -> Registry | None:
    return _published


def reset_registry() -> None:
    publish_registry(None)


def is_ready() -> bool:
    return _published is not None


def initialize_registry(settings: UnitConverterSettings | None = None) -> Registry:
    """Load every configured category and publish the result.

    Any failure clears the published registry before re-raising, so callers
    never observe a partially loaded set of categories.
    """

    settings = settings or UnitConverterSettings()
    try:
        registry = load_all(settings.categories or None, config_dir=settings.config_dir)
    except ConfigurationError:
        reset_registry()
        logger.error("Unit registry not published; conversions are disabled")
        raise
    publish_registry(registry)
    return registry


def require_registry(registry: Registry | None = None) -> Registry:
    current = registry if registry is not None else _published
    if current is None:
        raise ConversionFailure(not_initialized_error())
    return current


__all__ = [
    "get_registry",
    "initialize_registry",
    "is_ready",
    "publish_registry",
    "require_registry",
    "reset_registry",
]
