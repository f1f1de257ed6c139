"""Tests for the amdgpu sysfs metrics source."""

import shutil

import pytest

from gpu_waybar.formatter.fields import Field, MemField, U8Field
from gpu_waybar.formatter.render import FormatState
from gpu_waybar.gpu_status.amd import AmdGpuStatus, find_hwmon
from gpu_waybar.gpu_status.base import PerformanceLevel
from gpu_waybar.utils.errors import FieldReadError, FieldUnsupportedError

from conftest import write_attr


class TestAmdGpuStatus:
    """Reads against a fake amdgpu sysfs directory."""

    def test_busy_percent(self, amd_device_dir):
        status = AmdGpuStatus(amd_device_dir)
        assert status.get_u8_field(U8Field.GPU_UTILIZATION) == 37
        assert status.get_u8_field(U8Field.MEM_RW) == 5

    def test_fan_speed_from_pwm(self, amd_device_dir):
        assert AmdGpuStatus(amd_device_dir).get_u8_field(U8Field.FAN_SPEED) == 20

    def test_vram(self, amd_device_dir):
        status = AmdGpuStatus(amd_device_dir)
        assert status.get_mem_field(MemField.MEM_USED) == 2 * 1024**3
        assert status.get_mem_field(MemField.MEM_TOTAL) == 8 * 1024**3
        assert status.compute_mem_utilization() == 25

    def test_hwmon_units(self, amd_device_dir):
        status = AmdGpuStatus(amd_device_dir)
        assert status.get_temperature() == 45.5
        assert status.get_power() == 63.0

    def test_power_input_fallback(self, amd_device_dir):
        hwmon = amd_device_dir / "hwmon" / "hwmon3"
        (hwmon / "power1_average").unlink()
        (hwmon / "power1_input").write_text("12500000\n")
        assert AmdGpuStatus(amd_device_dir).get_power() == 12.5

    def test_p_level(self, amd_device_dir):
        assert AmdGpuStatus(amd_device_dir).get_p_level() is PerformanceLevel.AUTO

    def test_unknown_p_level_is_read_error(self, amd_device_dir):
        (amd_device_dir / "power_dpm_force_performance_level").write_text("turbo\n")
        with pytest.raises(FieldReadError):
            AmdGpuStatus(amd_device_dir).get_p_level()

    def test_unsupported_fields(self, amd_device_dir):
        status = AmdGpuStatus(amd_device_dir)
        with pytest.raises(FieldUnsupportedError):
            status.get_mem_field(MemField.TX)
        with pytest.raises(FieldUnsupportedError):
            status.get_p_state()
        assert not status.is_field_available(Field.u8(U8Field.DECODER_UTILIZATION))

    def test_missing_hwmon_is_unsupported(self, amd_device_dir):
        shutil.rmtree(amd_device_dir / "hwmon")
        status = AmdGpuStatus(amd_device_dir)
        assert status.hwmon_path is None
        with pytest.raises(FieldUnsupportedError):
            status.get_temperature()
        with pytest.raises(FieldUnsupportedError):
            status.get_power()

    def test_unparsable_value_is_read_error(self, amd_device_dir):
        (amd_device_dir / "gpu_busy_percent").write_text("busy\n")
        status = AmdGpuStatus(amd_device_dir)
        with pytest.raises(FieldReadError):
            status.get_u8_field(U8Field.GPU_UTILIZATION)
        assert status.is_field_available(Field.u8(U8Field.GPU_UTILIZATION))

    def test_unreadable_file_is_read_error(self, amd_device_dir):
        path = amd_device_dir / "mem_busy_percent"
        path.unlink()
        path.mkdir()
        with pytest.raises(FieldReadError):
            AmdGpuStatus(amd_device_dir).get_u8_field(U8Field.MEM_RW)

    def test_render(self, amd_device_dir):
        state = FormatState.try_from_format("{gpu_utilization}% {mem_used:GiB}/{mem_total:GiB} {temperature:c}C {tx:MiB}")
        assert state.render(AmdGpuStatus(amd_device_dir)) == "37% 2/8 45.5C N/A"

    def test_runtime_suspended_is_off(self, amd_device_dir):
        status = AmdGpuStatus(amd_device_dir)
        assert status.is_powered_on()
        write_attr(amd_device_dir / "power" / "runtime_status", "suspended")
        assert not status.is_powered_on()
        assert status.has_running_processes()


def test_find_hwmon_none_without_directory(tmp_path):
    assert find_hwmon(tmp_path) is None
