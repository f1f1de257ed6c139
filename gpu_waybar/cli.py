"""Command-line interface and poll loop for gpu-usage-waybar.

Every tick writes one JSON object per line to stdout, in the shape Waybar's
custom module expects with ``"return-type": "json"``::

    {"text": "12%|40%", "tooltip": "GPU: 12%\\n..."}
"""

import argparse
import json
import logging
import sys
import time
from typing import Callable, List, Optional, TextIO, Tuple

from gpu_waybar import __version__
from gpu_waybar.config import DEFAULT_TOOLTIP_FORMAT, Config, ConfigManager
from gpu_waybar.drm.device import DrmDevice, scan_drm_devices
from gpu_waybar.formatter import FormatState, prune_template
from gpu_waybar.gpu_status import GpuStatus, create_gpu_status
from gpu_waybar.logging_setup import LOG_LEVELS, configure_logging
from gpu_waybar.utils.errors import GpuWaybarError, HardwareNotFoundError

LOGGER = logging.getLogger(__name__)

OFF_OUTPUT = {"text": "Off", "tooltip": "GPU powered off"}
IDLE_OUTPUT = {"text": "Idle", "tooltip": "GPU idle"}


def setup_parser() -> argparse.ArgumentParser:
    """Setup command-line argument parser.

    Returns:
        ArgumentParser configured for gpu-usage-waybar
    """
    parser = argparse.ArgumentParser(
        prog="gpu-usage-waybar",
        description="Emit GPU usage as Waybar JSON records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gpu-usage-waybar
  gpu-usage-waybar --gpu 1 --interval 500
  gpu-usage-waybar --text-format "{gpu_utilization}% {temperature:c.0}C"
  gpu-usage-waybar --list-devices

Placeholders:
  {field}, {field:unit} or {field:unit.precision}
  Memory units: KiB MiB GiB KB MB GB Kib Mib Gib Kb Mb Gb
  Temperature units: c f k    Power units: w kw

Environment Variables:
  GPU_WAYBAR_LOG_LEVEL  Default log level (default: WARNING)
  XDG_CONFIG_HOME       Base directory of the config file
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--gpu",
        type=int,
        default=0,
        help="GPU to monitor, typically the N in /dev/dri/cardN (default: 0)",
    )
    parser.add_argument("--interval", type=int, help="Polling interval in milliseconds")
    parser.add_argument(
        "--text-format",
        help='Template for "text", e.g. "{gpu_utilization}%%|{mem_utilization}%%"',
    )
    parser.add_argument(
        "--tooltip-format",
        help="Template for \"tooltip\"; unset shows every metric the GPU supports",
    )
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("--log-level", choices=LOG_LEVELS, type=str.upper, help="Log level")
    parser.add_argument("--once", action="store_true", help="Print a single record and exit")
    parser.add_argument("--list-devices", action="store_true", help="List detected GPUs and exit")
    return parser


def select_device(devices: List[DrmDevice], index: int) -> DrmDevice:
    """Pick the device at ``index``.

    Raises:
        HardwareNotFoundError: If no device has that index
    """
    if not 0 <= index < len(devices):
        raise HardwareNotFoundError(f"Cannot find GPU {index} ({len(devices)} detected)")
    return devices[index]


def build_states(config: Config, source: GpuStatus) -> Tuple[FormatState, FormatState]:
    """Parse the text and tooltip templates.

    Without a user tooltip template, the default one is pruned down to the
    lines whose metrics the source supports.

    Raises:
        UnitParseError: If either template is malformed
    """
    text_state = FormatState.try_from_format(config.text_format)

    tooltip_format = config.tooltip_format
    if tooltip_format is None:
        tooltip_format = prune_template(DEFAULT_TOOLTIP_FORMAT, source)
        LOGGER.debug("Auto tooltip template: %r", tooltip_format)
    tooltip_state = FormatState.try_from_format(tooltip_format)

    return text_state, tooltip_state


def format_output(source: GpuStatus, text_state: FormatState, tooltip_state: FormatState) -> str:
    """Render both templates into one JSON line, newline included.

    A suspended GPU reports ``Off`` and one without clients reports ``Idle``
    instead; neither state queries any metric.
    """
    if not source.is_powered_on():
        output = OFF_OUTPUT
    elif not source.has_running_processes():
        output = IDLE_OUTPUT
    else:
        output = {
            "text": text_state.render(source),
            "tooltip": tooltip_state.render(source),
        }
    return json.dumps(output, ensure_ascii=False) + "\n"


def run_loop(
    source: GpuStatus,
    text_state: FormatState,
    tooltip_state: FormatState,
    interval_ms: int,
    stream: Optional[TextIO] = None,
    once: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Update, render, write and sleep until interrupted.

    Errors from ``source.update()`` end the loop.
    """
    stream = stream or sys.stdout
    while True:
        source.update()
        stream.write(format_output(source, text_state, tooltip_state))
        stream.flush()
        if once:
            return
        sleep(interval_ms / 1000.0)


def run_devices_list(devices: List[DrmDevice]) -> int:
    """Print detected devices."""
    if not devices:
        print("No GPUs detected")
        return 1
    for index, device in enumerate(devices):
        print(f"GPU {index}: {device.describe()}, Nodes: {', '.join(device.children)}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = setup_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    try:
        devices = scan_drm_devices()
        if args.list_devices:
            return run_devices_list(devices)

        config = ConfigManager.load_or_default(args.config)
        config.merge_args(
            interval=args.interval,
            text_format=args.text_format,
            tooltip_format=args.tooltip_format,
        )

        device = select_device(devices, args.gpu)
        with create_gpu_status(device) as source:
            LOGGER.info("GPU %d: %s", args.gpu, source.describe())
            text_state, tooltip_state = build_states(config, source)
            run_loop(source, text_state, tooltip_state, config.interval_ms, once=args.once)
    except GpuWaybarError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    except BrokenPipeError:
        # Bar went away.
        return 0

    return 0


if __name__ == "__main__":
    sys.exit(main())
