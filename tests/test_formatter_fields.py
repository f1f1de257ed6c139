"""Unit tests for the field vocabulary and display units."""

import pytest

from gpu_waybar.formatter.fields import (
    Field,
    FieldKind,
    FormatSegments,
    MAX_PRECISION,
    MemField,
    U8Field,
    UnitParseError,
    UnitParseErrorKind,
    parse_field,
)
from gpu_waybar.formatter.units import MemUnit, PowerUnit, TemperatureUnit


class TestMemUnit:
    """Byte and bit conversions."""

    def test_binary_and_decimal_bytes(self):
        assert MemUnit.MiB.compute(1024**2) == 1.0
        assert MemUnit.GiB.compute(3 * 1024**3) == 3.0
        assert MemUnit.KB.compute(1500) == 1.5

    def test_bit_units_multiply_by_eight(self):
        assert MemUnit.Mib.compute(1024**2) == 8.0
        assert MemUnit.Kb.compute(1000) == 8.0

    def test_from_str_is_case_sensitive(self):
        assert MemUnit.from_str("MiB") is MemUnit.MiB
        assert MemUnit.from_str("Mib") is MemUnit.Mib
        assert MemUnit.from_str("mib") is None
        assert MemUnit.from_str("TiB") is None


class TestTemperatureUnit:
    """Celsius conversions."""

    def test_from_str_ignores_case(self):
        assert TemperatureUnit.from_str("C") is TemperatureUnit.CELSIUS
        assert TemperatureUnit.from_str("f") is TemperatureUnit.FAHRENHEIT
        assert TemperatureUnit.from_str("K") is TemperatureUnit.KELVIN
        assert TemperatureUnit.from_str("x") is None

    def test_compute(self):
        assert TemperatureUnit.CELSIUS.compute(35.5) == 35.5
        assert TemperatureUnit.FAHRENHEIT.compute(100) == 212.0
        assert TemperatureUnit.KELVIN.compute(0) == pytest.approx(273.15)


class TestPowerUnit:
    def test_compute(self):
        assert PowerUnit.WATT.compute(250) == 250
        assert PowerUnit.KILOWATT.compute(250) == 0.25

    def test_from_str(self):
        assert PowerUnit.from_str("kw") is PowerUnit.KILOWATT
        assert PowerUnit.from_str("mw") is None


class TestFormatSegments:
    def test_parse_name_only(self):
        assert tuple(FormatSegments.parse("p_state")) == ("p_state", None, None)

    def test_parse_unit_and_precision(self):
        assert tuple(FormatSegments.parse("temperature:f.2")) == ("temperature", "f", "2")
        assert tuple(FormatSegments.parse("mem_used:MiB")) == ("mem_used", "MiB", None)


class TestParseField:
    """Field resolution from split placeholder text."""

    def test_u8_fields_ignore_suffix(self):
        field = parse_field("gpu_utilization", "MiB", "2")
        assert field == Field.u8(U8Field.GPU_UTILIZATION)
        assert field.unit is None and field.precision is None

    def test_enum_and_derived_fields(self):
        assert parse_field("p_state").kind is FieldKind.P_STATE
        assert parse_field("p_level").kind is FieldKind.P_LEVEL
        assert parse_field("mem_utilization").kind is FieldKind.MEM_UTILIZATION

    def test_temperature_without_unit_is_no_unit_error(self):
        with pytest.raises(UnitParseError) as exc_info:
            parse_field("temperature")
        assert exc_info.value.kind is UnitParseErrorKind.NO_UNIT

    def test_temperature_with_unit(self):
        field = Field.from_str("temperature:c")
        assert field.kind is FieldKind.TEMPERATURE
        assert field.unit is TemperatureUnit.CELSIUS
        assert field.precision is None

    def test_temperature_with_precision(self):
        field = Field.from_str("temperature:c.2")
        assert field.unit is TemperatureUnit.CELSIUS
        assert field.precision == 2

    def test_largest_precision_is_accepted(self):
        assert Field.from_str("power:w.20").precision == MAX_PRECISION

    def test_mem_field(self):
        field = Field.from_str("mem_used:GiB.1")
        assert field.kind is FieldKind.MEM
        assert field.mem_field is MemField.MEM_USED
        assert field.unit is MemUnit.GiB
        assert field.precision == 1

    @pytest.mark.parametrize(
        "text,kind",
        [
            ("mem_total:XiB", UnitParseErrorKind.MEMORY),
            ("temperature:z", UnitParseErrorKind.TEMPERATURE),
            ("power:hp", UnitParseErrorKind.POWER),
            ("power:w.x", UnitParseErrorKind.PRECISION),
            ("tx:MiB.-1", UnitParseErrorKind.PRECISION),
            ("temperature:c.21", UnitParseErrorKind.PRECISION),
            ("temperature:c.9999999999999999999", UnitParseErrorKind.PRECISION),
            ("rx", UnitParseErrorKind.NO_UNIT),
        ],
    )
    def test_invalid_units(self, text, kind):
        with pytest.raises(UnitParseError) as exc_info:
            Field.from_str(text)
        assert exc_info.value.kind is kind

    def test_error_message_names_unit(self):
        with pytest.raises(UnitParseError, match="Invalid power unit: `hp`"):
            Field.from_str("power:hp")

    def test_unknown_name_is_not_an_error(self):
        field = Field.from_str("unknown_xyz")
        assert field.is_unknown
        assert field.name == "unknown_xyz"

    def test_names_are_case_sensitive(self):
        assert Field.from_str("GPU_UTILIZATION").is_unknown
