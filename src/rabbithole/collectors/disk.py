from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

import psutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Volume:
    mount_point: str
    total: int
    available: int

    @property
    def used(self) -> int:
        # available can briefly exceed total on racy reads
        return max(self.total - self.available, 0)


@dataclass(frozen=True)
class DiskUsage:
    used: int
    total: int


NO_DISK = DiskUsage(used=0, total=0)


def select_disk(volumes: Iterable[Volume], root_mount: str = "/") -> DiskUsage:
    """Pick the root volume if mounted, else the largest one seen."""
    selected: Optional[Volume] = None
    for vol in volumes:
        if vol.mount_point == root_mount:
            selected = vol
            break
        if selected is None or vol.total > selected.total:
            selected = vol

    if selected is None:
        return NO_DISK
    return DiskUsage(used=selected.used, total=selected.total)


def iter_volumes() -> Iterator[Volume]:
    try:
        partitions = psutil.disk_partitions(all=False)
    except (OSError, RuntimeError, psutil.Error) as e:
        logger.debug("disk partitions unavailable: %s", e)
        return

    for part in partitions:
        try:
            du = psutil.disk_usage(part.mountpoint)
        except (OSError, psutil.Error) as e:
            # unreadable media, vanished mounts, permission denied
            logger.debug("skipping %s: %s", part.mountpoint, e)
            continue
        yield Volume(mount_point=part.mountpoint, total=int(du.total), available=int(du.free))


def read_disk_usage(root_mount: str = "/") -> DiskUsage:
    return select_disk(iter_volumes(), root_mount=root_mount)
