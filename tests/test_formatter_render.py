"""Unit tests for rendering templates against a metrics source."""

import pytest

from gpu_waybar.formatter.parser import parse
from gpu_waybar.formatter.render import FormatState, format_number, render, trim_trailing_zeros
from gpu_waybar.gpu_status.base import PerformanceLevel, PState


class TestTrimTrailingZeros:
    def test_trims_zeros(self):
        assert trim_trailing_zeros("35.50000") == "35.5"

    def test_drops_bare_dot(self):
        assert trim_trailing_zeros("35.00000") == "35"

    def test_integer_unchanged(self):
        assert trim_trailing_zeros("100") == "100"

    def test_scan_is_bounded(self):
        """A dot written before the scan boundary is left alone."""
        assert trim_trailing_zeros("100.00 120", 7) == "100.00 120"

    def test_scan_region_with_dot(self):
        assert trim_trailing_zeros("100.00 1.250", 7) == "100.00 1.25"

    def test_dot_at_scan_boundary_is_kept(self):
        assert trim_trailing_zeros("100.00", 3) == "100.00"

    def test_only_last_number_is_trimmed(self):
        assert trim_trailing_zeros("100.00 120.0 500.000", 13) == "100.00 120.0 500"


class TestFormatNumber:
    @pytest.mark.parametrize(
        "value,precision,expected",
        [
            (35.12345, 2, "35.12"),
            (35.12345, 0, "35"),
            (35.5, None, "35.5"),
            (35.0, None, "35"),
            (35.12345, None, "35.12345"),
            (1e20, None, "100000000000000000000"),
            (7, None, "7"),
        ],
    )
    def test_format(self, value, precision, expected):
        assert format_number(value, precision) == expected


class TestRender:
    """render() over parsed chunks."""

    def test_end_to_end(self, fake_status):
        source = fake_status({"gpu_utilization": 42})
        assert render(parse("GPU: {gpu_utilization}%"), source, []) == "GPU: 42%"

    def test_temperature_precision(self, fake_status):
        source = fake_status({"temperature": 35.12345})
        assert render(parse("{temperature:c.2}"), source, []) == "35.12"
        assert render(parse("{temperature:c.0}"), source, []) == "35"
        assert render(parse("{temperature:c}"), source, []) == "35.12345"

    def test_unit_conversion(self, fake_status):
        source = fake_status({"mem_used": 3 * 1024**3, "temperature": 100.0, "power": 1500.0})
        assert render(parse("{mem_used:GiB}"), source, []) == "3"
        assert render(parse("{temperature:f}"), source, []) == "212"
        assert render(parse("{power:kw.2}"), source, []) == "1.50"

    def test_trim_does_not_touch_earlier_text(self, fake_status):
        source = fake_status({"temperature": 120.0})
        assert render(parse("100.00 {temperature:c}"), source, []) == "100.00 120"

    def test_enum_display_names(self, fake_status):
        source = fake_status({"p_state": PState.P2, "p_level": PerformanceLevel.PROFILE_PEAK})
        assert render(parse("{p_state} {p_level}"), source, []) == "P2 profile_peak"

    def test_unavailable_renders_marker(self, fake_status):
        source = fake_status({"gpu_utilization": 10}, read_errors={"fan_speed"})
        out = render(parse("{gpu_utilization} {fan_speed} {power:w} {bogus}"), source, [])
        assert out == "10 N/A N/A N/A"

    def test_mem_utilization(self, fake_status):
        source = fake_status({"mem_used": 1, "mem_total": 3})
        assert render(parse("{mem_utilization}%"), source, []) == "33%"

    def test_buffer_is_reused(self, fake_status):
        source = fake_status({"gpu_utilization": 1})
        buffer = ["stale"]
        render(parse("{gpu_utilization}"), source, buffer)
        assert buffer == ["1"]


class TestFormatState:
    def test_render_each_tick(self, fake_status):
        state = FormatState.try_from_format("{gpu_utilization}%")
        source = fake_status({"gpu_utilization": 5})
        assert state.render(source) == "5%"
        source.values["gpu_utilization"] = 99
        assert state.render(source) == "99%"

    def test_fields(self):
        state = FormatState.try_from_format("a {p_state} b {mem_rw}")
        assert [f.name for f in state.fields] == ["p_state", "mem_rw"]
