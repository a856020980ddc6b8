from decimal import Decimal
from itertools import product

import pytest

from plugins.unit_converter.core import (
    ErrorKind,
    UnitConverterSettings,
    convert,
    convert_from_input,
    convert_lines,
    format_error,
    format_result,
    get_conversion_factors,
    get_precision_info,
    list_categories,
    list_units,
    summarize_lines,
    to_history_record,
    validate_conversion,
)
from plugins.unit_converter.core.errors import ConversionFailure


def test_meter_to_foot(registry):
    result = convert(1, "meter", "foot")
    assert result.success
    assert result.value == pytest.approx(3.28084, rel=1e-6)
    assert result.formatted == "3.2808"
    assert result.category == "length"
    assert (result.source_key, result.target_key) == ("meter", "foot")


def test_cfm_to_cubic_meters_per_hour(registry):
    result = convert(100, "cfm", "m3/h")
    assert result.success
    assert result.value == pytest.approx(169.9011, rel=1e-6)
    assert result.exact_value == Decimal("169.901079552")
    assert result.formatted == "169.9011"


def test_cfm_to_base_unit_formats_small_values(registry):
    result = convert(100, "cfm", "m3_s")
    assert result.formatted == "0.047195"


def test_celsius_to_fahrenheit_from_text(registry):
    result = convert_from_input("20 degC to degF")
    assert result.success
    assert result.value == 68
    assert result.formatted == "68"


def test_missing_target_clause(registry):
    result = convert_from_input("5 meters")
    assert not result.success
    assert result.error.kind is ErrorKind.INVALID_FORMAT
    assert result.error.suggestions


def test_cross_category_conversion_is_rejected(registry):
    result = convert(1, "meter", "gallon")
    assert not result.success
    assert result.error.kind is ErrorKind.INVALID_FORMAT
    assert "length" in result.error.message
    assert "volume" in result.error.message


def test_unknown_unit_suggests_the_closest_alias(registry):
    result = convert(1, "mter", "foot")
    assert not result.success
    assert result.error.kind is ErrorKind.UNKNOWN_UNIT
    assert "meter" in result.error.suggestions
    assert result.error.suggestions[0] == "meter"


def test_distant_unit_gets_generic_guidance(registry):
    result = convert(1, "xyzabc123", "foot")
    assert result.error.kind is ErrorKind.UNKNOWN_UNIT
    assert result.error.suggestions
    assert all(" " in suggestion for suggestion in result.error.suggestions)


def test_alias_lookup_is_case_insensitive(registry):
    values = {convert(1, token, "FOOT").value for token in ("METER", "Meter", "meter")}
    assert len(values) == 1


def test_identity_conversion_returns_the_input_exactly(registry):
    for category in list_categories():
        for unit in list_units(category):
            result = convert(Decimal("12.345"), unit["key"], unit["key"])
            assert result.success, (category, unit["key"])
            assert result.exact_value == Decimal("12.345")


def test_round_trip_through_every_pair_of_units(registry):
    value = 2.5
    for category in list_categories():
        keys = [unit["key"] for unit in list_units(category)]
        for source, target in product(keys, keys):
            forward = convert(value, source, target)
            assert forward.success, (category, source, target, forward.error)
            back = convert(forward.value, target, source)
            assert back.success, (category, target, source, back.error)
            assert back.value == pytest.approx(value, rel=1e-9), (category, source, target)


@pytest.mark.parametrize(
    "value, source, target, expected",
    [
        (0, "celsius", "kelvin", 273.15),
        (-40, "celsius", "fahrenheit", -40),
        (212, "degF", "degC", 100),
        (0, "kelvin", "rankine", 0),
        (1, "delta_f", "delta_c", 5 / 9),
        (36, "kph", "m/s", 10),
        (1, "mile", "km", 1.609344),
        (1, "gallon", "liter", 3.785411784),
        (1, "lb", "g", 453.59237),
        (1, "kwh", "btu", 3412.141633),
        (1, "ton-cooling", "btu/hr", 12000),
        (1, "atm", "psi", 14.69594878),
        (2, "rsi", "w_m2_k", 0.5),
        (5.678263337, "w_m2_k", "hr_ft2_f_btu", 1),
        (10, "r-value", "rsi", 1.76110184),
        (4, "hr_ft2_f_btu_in", "w_m_k", 0.036056977),
        (1, "btu_hr_f", "w_k", 0.52752792631),
    ],
)
def test_reference_conversions(registry, value, source, target, expected):
    result = convert(value, source, target)
    assert result.success, result.error
    assert result.value == pytest.approx(expected, rel=1e-6, abs=1e-12)


def test_reciprocal_units_fail_cleanly_at_zero(registry):
    result = convert(0, "hr_ft2_f_btu", "w_m2_k")
    assert not result.success
    assert result.error.kind is ErrorKind.CALCULATION_ERROR
    assert "Division by zero" in result.error.message


@pytest.mark.parametrize("value", ["abc", float("nan"), float("inf"), None, True, [1]])
def test_invalid_values_are_calculation_errors(registry, value):
    result = convert(value, "meter", "foot")
    assert not result.success
    assert result.error.kind is ErrorKind.CALCULATION_ERROR


def test_input_beyond_float_range_is_a_calculation_error(registry):
    result = convert("1e400", "meter", "foot")
    assert not result.success
    assert result.error.kind is ErrorKind.CALCULATION_ERROR
    assert result.error.message == "Input value is outside the representable range"

    same_unit = convert_from_input("1e400 m to meter")
    assert not same_unit.success
    assert same_unit.error.kind is ErrorKind.CALCULATION_ERROR


def test_result_beyond_float_range_is_a_calculation_error(registry):
    result = convert("1e307", "mile", "mm")
    assert not result.success
    assert result.error.kind is ErrorKind.CALCULATION_ERROR
    assert result.error.message == "Conversion result is outside the representable range"
    assert to_history_record(result, "1e307 mile to mm") is None


def test_numeric_strings_are_accepted(registry):
    assert convert("  2.5 ", "m", "cm").value == pytest.approx(250)


def test_convert_without_registry_never_raises():
    result = convert(1, "meter", "foot")
    assert not result.success
    assert result.error.kind is ErrorKind.CALCULATION_ERROR
    assert result.error.message == "Conversion system not initialized"


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal(0), "0"),
        (Decimal("1234.5678"), "1234.57"),
        (Decimal("999.99999"), "1000"),
        (Decimal("3.280839895013123"), "3.2808"),
        (Decimal("1.5"), "1.5"),
        (Decimal("-2.00004"), "-2"),
        (Decimal("0.5"), "0.5"),
        (Decimal("0.0471947443200"), "0.047195"),
        (Decimal("0.000123456789"), "0.00012346"),
        (Decimal("1e12"), "1e+12"),
        (Decimal("1.5e12"), "1.5e+12"),
        (Decimal("123456789012345"), "1.234568e+14"),
        (Decimal("5e-7"), "5e-7"),
        (Decimal("-2.5e-9"), "-2.5e-9"),
        (Decimal("999999999999.5"), "999999999999.5"),
    ],
)
def test_format_result(value, expected):
    assert format_result(value) == expected


def test_format_result_honours_configured_thresholds():
    settings = UnitConverterSettings(exponential_upper=Decimal(1000))
    assert format_result(Decimal(1500), settings) == "1.5e+3"


def test_convert_lines_keeps_blank_lines(registry):
    outcomes = convert_lines("5 m to ft\n\n2 kg to lb\n5 meters")
    assert [outcome.success for outcome in outcomes] == [True, False, True, False]
    assert outcomes[1].empty
    assert outcomes[3].error.kind is ErrorKind.INVALID_FORMAT
    assert summarize_lines(outcomes) == {"total": 4, "converted": 2, "failed": 1, "empty": 1}


def test_convert_lines_enforces_the_line_limit(registry):
    settings = UnitConverterSettings(max_lines=2)
    outcomes = convert_lines("1 m to ft\n2 m to ft\n3 m to ft", settings=settings)
    assert len(outcomes) == 1
    assert outcomes[0].error.message == "Too many lines"


def test_validate_conversion(registry):
    outcome = validate_conversion("meter", "foot")
    assert outcome.is_valid and outcome.category == "length"

    outcome = validate_conversion("meter", "gallon")
    assert not outcome.is_valid
    assert outcome.error.kind is ErrorKind.INVALID_FORMAT

    outcome = validate_conversion("metr", "foot")
    assert outcome.error.kind is ErrorKind.UNKNOWN_UNIT
    assert outcome.to_dict()["error"]["suggestions"]


def test_get_conversion_factors(registry):
    info = get_conversion_factors("ft")
    assert info == {
        "category": "length",
        "unit": "foot",
        "factor": 0.3048,
        "base_unit": "meter",
        "transform": False,
    }
    assert get_conversion_factors("cfm")["transform"] is True
    assert get_conversion_factors("parsec") is None


def test_get_conversion_factors_without_registry():
    assert get_conversion_factors("ft") is None


def test_get_precision_info():
    info = get_precision_info()
    assert info["decimal_precision"] == 40
    assert info["rounding_mode"] == "ROUND_HALF_UP"
    assert info["scientific_notation_thresholds"] == {"upper": 1e12, "lower": 1e-6}


def test_list_units_marks_the_base_unit(registry):
    units = list_units("temperature")
    base = [unit["key"] for unit in units if unit["base"]]
    assert base == ["kelvin"]
    celsius = next(unit for unit in units if unit["key"] == "celsius")
    assert celsius["transform"] == {"toBase": "x + 273.15", "fromBase": "x - 273.15"}


def test_list_units_rejects_unknown_category(registry):
    with pytest.raises(ConversionFailure) as excinfo:
        list_units("luminosity")
    assert "length" in excinfo.value.details.suggestions


def test_history_record_for_successful_conversion(registry):
    result = convert_from_input("5 m to ft")
    record = to_history_record(result, " 5 m to ft ")
    assert record.input == "5 m to ft"
    assert record.output == "16.4042 ft"
    assert record.value == 5
    assert record.result == pytest.approx(16.4041994751)
    assert to_history_record(convert_from_input("5 m"), "5 m") is None


def test_format_error_lists_suggestions(registry):
    text = format_error(convert(1, "meter", "gallon").error)
    assert text.startswith("Cannot convert between different unit categories (length to volume)")
    assert "\n\nSuggestions:\n• " in text
