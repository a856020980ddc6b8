"""Cross-check the bundled unit documents against pint's definitions."""

from decimal import Decimal

import pytest

from plugins.unit_converter.core import convert

pint = pytest.importorskip("pint")

ureg = pint.UnitRegistry()

# (category, unit key, pint expression); each is compared against the category base.
FACTOR_REFERENCES = [
    ("length", "foot", "foot"),
    ("length", "inch", "inch"),
    ("length", "yard", "yard"),
    ("length", "mile", "mile"),
    ("length", "nautical_mile", "nautical_mile"),
    ("length", "angstrom", "angstrom"),
    ("length", "micrometer", "micrometer"),
    ("area", "ft2", "foot ** 2"),
    ("area", "in2", "inch ** 2"),
    ("area", "hectare", "hectare"),
    ("volume", "liter", "liter"),
    ("volume", "gallon", "gallon"),
    ("volume", "imperial_gallon", "imperial_gallon"),
    ("volume", "ft3", "foot ** 3"),
    ("volume", "fluid_ounce", "fluid_ounce"),
    ("mass", "lb", "pound"),
    ("mass", "oz", "ounce"),
    ("mass", "stone", "stone"),
    ("mass", "ton-short", "short_ton"),
    ("energy", "kwh", "kilowatt_hour"),
    ("energy", "btu", "Btu"),
    ("energy", "calorie", "calorie"),
    ("power", "hp", "horsepower"),
    ("power", "btu_hr", "Btu / hour"),
    ("pressure", "psi", "psi"),
    ("pressure", "atm", "atmosphere"),
    ("pressure", "bar", "bar"),
    ("pressure", "torr", "torr"),
    ("pressure", "mmhg", "mmHg"),
    ("pressure", "inhg", "inHg"),
    ("speed", "mph", "mile / hour"),
    ("speed", "kph", "kilometer / hour"),
    ("speed", "knot", "knot"),
    ("speed", "ft_min", "foot / minute"),
    ("airflow", "cfm", "foot ** 3 / minute"),
    ("airflow", "m3_h", "meter ** 3 / hour"),
    ("density", "lb_ft3", "pound / foot ** 3"),
    ("thermal-conductivity", "btu_hr_ft_f", "Btu / hour / foot / delta_degF"),
    ("thermal-transmittance", "btu_hr_ft2_f", "Btu / hour / foot ** 2 / delta_degF"),
]

BASE_UNITS = {
    "length": "meter",
    "area": "meter ** 2",
    "volume": "meter ** 3",
    "mass": "kilogram",
    "energy": "joule",
    "power": "watt",
    "pressure": "pascal",
    "speed": "meter / second",
    "airflow": "meter ** 3 / second",
    "density": "kilogram / meter ** 3",
    "thermal-conductivity": "watt / meter / kelvin",
    "thermal-transmittance": "watt / meter ** 2 / kelvin",
}


@pytest.mark.parametrize("category, key, expression", FACTOR_REFERENCES)
def test_factor_matches_pint(registry, category, key, expression):
    unit = registry.categories[category].units[key]
    expected = ureg.Quantity(1, expression).to(BASE_UNITS[category]).magnitude
    assert float(unit.to_base(Decimal(1))) == pytest.approx(expected, rel=1e-6)


@pytest.mark.parametrize(
    "value, source, pint_source, target, pint_target",
    [
        (20, "celsius", "degC", "fahrenheit", "degF"),
        (-40, "fahrenheit", "degF", "celsius", "degC"),
        (300, "kelvin", "kelvin", "rankine", "degR"),
        (98.6, "fahrenheit", "degF", "kelvin", "kelvin"),
    ],
)
def test_offset_temperatures_match_pint(registry, value, source, pint_source, target, pint_target):
    expected = ureg.Quantity(value, pint_source).to(pint_target).magnitude
    assert convert(value, source, target).value == pytest.approx(expected, rel=1e-9)
