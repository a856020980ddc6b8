import json
from pathlib import Path

import pytest

from plugins.unit_converter.core import initialize_registry, reset_registry


@pytest.fixture(autouse=True)
def _isolated_registry():
    reset_registry()
    yield
    reset_registry()


@pytest.fixture
def registry():
    loaded = initialize_registry()
    yield loaded
    reset_registry()


@pytest.fixture
def config_dir(tmp_path: Path):
    """Empty directory for hand-written category documents."""

    directory = tmp_path / "units"
    directory.mkdir()
    return directory


@pytest.fixture
def write_category():
    def _write(directory: Path, document: dict, name: str | None = None) -> Path:
        path = directory / f"{name or document['category']}.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def length_document() -> dict:
    return {
        "category": "length",
        "baseUnit": "meter",
        "units": {
            "meter": {"name": "Meter", "symbol": "m", "aliases": ["meter", "m"], "factor": 1},
            "foot": {"name": "Foot", "symbol": "ft", "aliases": ["foot", "ft"], "factor": 0.3048},
        },
    }
