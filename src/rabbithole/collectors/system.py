from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import psutil

from rabbithole.collectors.disk import DiskUsage, read_disk_usage
from rabbithole.collectors.network import NetworkRateEngine
from rabbithole.collectors.temperature import read_peak_temperature

logger = logging.getLogger(__name__)

GB = 1024**3


@dataclass(frozen=True)
class ResourceSnapshot:
    cpu_percent: float
    memory_used_bytes: int
    memory_total_bytes: int
    disk_used_bytes: int
    disk_total_bytes: int
    net_down_rate: float
    net_up_rate: float
    temperature: Optional[float]
    load_avg_1m: float


def bytes_to_gb(n: int) -> float:
    return n / GB


def _busy_and_total(times: Any) -> Tuple[float, float]:
    total = float(sum(times))
    # guest time is already counted in user/nice
    total -= getattr(times, "guest", 0.0) + getattr(times, "guest_nice", 0.0)
    idle = times.idle + getattr(times, "iowait", 0.0)
    return total - idle, total


class CpuMemoryReader:
    """Owns the CPU times baseline, so every caller thread shares one interval."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_times = self._cpu_times()

    @staticmethod
    def _cpu_times() -> Optional[Any]:
        try:
            return psutil.cpu_times()
        except (OSError, RuntimeError, psutil.Error) as e:
            logger.debug("cpu times unavailable: %s", e)
            return None

    def _cpu_percent(self) -> float:
        times = self._cpu_times()
        if times is None:
            return 0.0
        last, self._last_times = self._last_times, times
        if last is None:
            return 0.0

        busy_now, total_now = _busy_and_total(times)
        busy_prev, total_prev = _busy_and_total(last)
        total_delta = total_now - total_prev
        if total_delta <= 0:
            return 0.0
        return max((busy_now - busy_prev) / total_delta * 100.0, 0.0)

    @staticmethod
    def _memory() -> Tuple[int, int]:
        try:
            vm = psutil.virtual_memory()
        except (OSError, RuntimeError, psutil.Error) as e:
            logger.debug("memory stats unavailable: %s", e)
            return 0, 0
        total = int(vm.total)
        return max(total - int(vm.available), 0), total

    def read(self) -> Tuple[float, int, int]:
        with self._lock:
            cpu = self._cpu_percent()
            used, total = self._memory()
        return cpu, used, total


def read_load_avg_1m() -> float:
    try:
        return float(psutil.getloadavg()[0])
    except (OSError, RuntimeError, AttributeError, psutil.Error) as e:
        logger.debug("load average unavailable: %s", e)
        return 0.0


class ResourceSampler:
    def __init__(
        self,
        cpu_memory: CpuMemoryReader,
        network: NetworkRateEngine,
        root_mount: str = "/",
        disk_reader: Callable[[str], DiskUsage] = read_disk_usage,
        temperature_reader: Callable[[], Optional[float]] = read_peak_temperature,
        load_reader: Callable[[], float] = read_load_avg_1m,
    ) -> None:
        self.cpu_memory = cpu_memory
        self.network = network
        self.root_mount = root_mount
        self._disk_reader = disk_reader
        self._temperature_reader = temperature_reader
        self._load_reader = load_reader

    @classmethod
    def create(cls, root_mount: str = "/") -> "ResourceSampler":
        return cls(CpuMemoryReader(), NetworkRateEngine(), root_mount=root_mount)

    def sample(self) -> ResourceSnapshot:
        cpu, mem_used, mem_total = self.cpu_memory.read()
        disk = self._disk_reader(self.root_mount)
        down, up = self.network.update()
        temp = self._temperature_reader()
        load = self._load_reader()

        return ResourceSnapshot(
            cpu_percent=cpu,
            memory_used_bytes=mem_used,
            memory_total_bytes=mem_total,
            disk_used_bytes=disk.used,
            disk_total_bytes=disk.total,
            net_down_rate=down,
            net_up_rate=up,
            temperature=temp,
            load_avg_1m=load,
        )
