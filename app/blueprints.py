"""Blueprint registration helpers."""

from __future__ import annotations

import importlib
import pkgutil
from pathlib import Path
from types import ModuleType
from typing import Iterable

from flask import Flask


def _iter_api_modules(package: str = "plugins") -> Iterable[ModuleType]:
    module_path = Path(__file__).resolve().parent.parent / package
    if not module_path.exists():
        return []
    modules = []
    for module_info in pkgutil.iter_modules([str(module_path)]):
        if not module_info.ispkg:
            continue
        modules.append(importlib.import_module(f"{package}.{module_info.name}.api"))
    return modules


def _module_blueprints(module: ModuleType) -> list:
    module_blueprints = getattr(module, "blueprints", None)
    if module_blueprints:
        return list(module_blueprints)
    blueprint = getattr(module, "bp", None)
    return [blueprint] if blueprint is not None else []


def register_plugin_blueprints(app: Flask) -> None:
    """Register every plugin blueprint and run the plugin's ``init_app`` hook."""

    for module in _iter_api_modules():
        for bp in _module_blueprints(module):
            app.register_blueprint(bp)
        init_app = getattr(module, "init_app", None)
        if callable(init_app):
            init_app(app)


__all__ = ["register_plugin_blueprints"]
