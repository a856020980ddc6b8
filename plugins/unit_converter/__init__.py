"""Unit converter plugin."""

manifest = {
    "title": "Unit Converter",
    "summary": (
        "Configuration-driven conversions from plain text requests such as "
        "'5 meters to feet', with formula units and typo suggestions."
    ),
    "blueprint": "unit_converter",
    "category": "General Utilities",
    "api": "/api/unit_converter",
}


__all__ = ["manifest"]
