"""Intel metrics source built on DRM client fdinfo accounting."""

import logging
from typing import Iterable, Optional

from gpu_waybar.drm.client import DEFAULT_PROCFS_ROOT, ClientManager
from gpu_waybar.formatter.fields import U8Field
from gpu_waybar.gpu_status.base import GpuStatus

LOGGER = logging.getLogger(__name__)


class IntelGpuStatus(GpuStatus):
    """Render and video engine utilization summed over all DRM clients.

    Args:
        devnames: ``/dev/dri`` node names of the device
        procfs_root: Mount point of procfs
        client_manager: Prebuilt manager, mainly for tests
    """

    vendor = "intel"

    def __init__(
        self,
        devnames: Iterable[str] = (),
        procfs_root: str = DEFAULT_PROCFS_ROOT,
        client_manager: Optional[ClientManager] = None,
    ):
        self.client_manager = client_manager or ClientManager(devnames, procfs_root)

    def update(self) -> None:
        self.client_manager.update()
        LOGGER.debug("Tracking %d DRM clients", len(self.client_manager.clients))

    def has_running_processes(self) -> bool:
        return bool(self.client_manager.clients)

    def get_u8_field(self, field: U8Field) -> int:
        render = self.client_manager.utilization("render")
        video = self.client_manager.utilization("video")

        if field is U8Field.GPU_UTILIZATION:
            fraction = max(render, video)
        elif field is U8Field.RENDER_UTILIZATION:
            fraction = render
        elif field is U8Field.VIDEO_UTILIZATION:
            fraction = video
        else:
            return super().get_u8_field(field)

        return min(100, max(0, int(fraction * 100 + 0.5)))


__all__ = ["IntelGpuStatus"]
