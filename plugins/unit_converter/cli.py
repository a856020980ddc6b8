"""Command line interface for the Unit Converter plugin."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from .core import (
    ConfigurationError,
    ConversionFailure,
    convert_lines,
    initialize_registry,
    list_categories,
    list_units,
    load_settings,
    read_category_document,
    summarize_lines,
    validate_document,
)
from .core.loader import discover_categories


def _print(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False))


def _settings(args: argparse.Namespace):
    raw: dict[str, Any] = {}
    if args.config_dir:
        raw["config_dir"] = args.config_dir
    return load_settings(raw, root=Path.cwd())


def command_convert(args: argparse.Namespace) -> int:
    settings = _settings(args)
    initialize_registry(settings)
    text = "\n".join(args.lines) if args.lines else sys.stdin.read().rstrip("\n")
    outcomes = convert_lines(text, settings=settings)
    _print(
        {
            "results": [outcome.to_dict() for outcome in outcomes],
            "summary": summarize_lines(outcomes),
        }
    )
    return 0 if all(outcome.success or outcome.empty for outcome in outcomes) else 1


def command_categories(args: argparse.Namespace) -> int:
    initialize_registry(_settings(args))
    _print({"categories": list_categories()})
    return 0


def command_units(args: argparse.Namespace) -> int:
    initialize_registry(_settings(args))
    try:
        units = list_units(args.category)
    except ConversionFailure as exc:
        _print({"error": exc.details.to_dict()})
        return 1
    _print({"category": args.category, "units": units})
    return 0


def command_check(args: argparse.Namespace) -> int:
    """Validate every category document without publishing a registry."""

    settings = _settings(args)
    report: dict[str, Any] = {}
    failed = False
    for name in settings.categories or discover_categories(settings.config_dir):
        try:
            document = read_category_document(settings.config_dir / f"{name}.json")
        except ConfigurationError as exc:
            report[name] = {"valid": False, "errors": [exc.details.message], "warnings": []}
            failed = True
            continue
        result = validate_document(document)
        if result.valid and document.get("category") != name:
            result_errors = [f"category field '{document.get('category')}' does not match file name"]
            report[name] = {"valid": False, "errors": result_errors, "warnings": list(result.warnings)}
            failed = True
            continue
        report[name] = {
            "valid": result.valid,
            "errors": list(result.errors),
            "warnings": list(result.warnings),
        }
        failed = failed or not result.valid
    _print({"valid": not failed, "categories": report})
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Unit Converter CLI")
    parser.add_argument("--config-dir", dest="config_dir", help="Directory holding the category JSON documents")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert_parser = subparsers.add_parser("convert", help="Convert 'NUMBER UNIT to UNIT' requests")
    convert_parser.add_argument("lines", nargs="*", help="Conversion requests; read from stdin when omitted")
    convert_parser.set_defaults(func=command_convert)

    categories_parser = subparsers.add_parser("categories", help="List loaded unit categories")
    categories_parser.set_defaults(func=command_categories)

    units_parser = subparsers.add_parser("units", help="List the units of one category")
    units_parser.add_argument("--category", required=True, help="Category name (e.g. length)")
    units_parser.set_defaults(func=command_units)

    check_parser = subparsers.add_parser("check", help="Validate the category documents")
    check_parser.set_defaults(func=command_check)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except ConfigurationError as exc:
        _print({"error": exc.details.to_dict()})
        return 1


if __name__ == "__main__":
    sys.exit(main())
