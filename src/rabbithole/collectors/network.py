from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple

import psutil

logger = logging.getLogger(__name__)

MIN_ELAPSED_S = 0.001

CounterSource = Callable[[], Mapping[str, object]]


@dataclass(frozen=True)
class NetworkRateState:
    cumulative_rx_bytes: int
    cumulative_tx_bytes: int
    timestamp: float


def _per_nic_counters() -> Dict[str, object]:
    return psutil.net_io_counters(pernic=True)


def _sum_counters(counters: Mapping[str, object]) -> Tuple[int, int]:
    rx = 0
    tx = 0
    for nic in counters.values():
        rx += int(getattr(nic, "bytes_recv", 0) or 0)
        tx += int(getattr(nic, "bytes_sent", 0) or 0)
    return rx, tx


def compute_rate(current: int, previous: int, elapsed_s: float) -> float:
    """kB/s between two cumulative counter readings, never negative."""
    delta = max(current - previous, 0)
    elapsed = max(elapsed_s, MIN_ELAPSED_S)
    return max(delta / 1024 / elapsed, 0.0)


class NetworkRateEngine:
    """Turns cumulative interface byte counters into down/up rates.

    Counter enumeration, rate computation and the state overwrite run under a
    single lock, so concurrent callers each see a well-defined predecessor
    state.
    """

    def __init__(
        self,
        counters: Optional[CounterSource] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._counters = counters or _per_nic_counters
        self._clock = clock
        self._lock = threading.Lock()
        self._state: Optional[NetworkRateState] = None

    @property
    def state(self) -> Optional[NetworkRateState]:
        with self._lock:
            return self._state

    def _read_totals(self) -> Optional[Tuple[int, int]]:
        try:
            counters = self._counters()
        except (OSError, RuntimeError, psutil.Error) as e:
            logger.debug("network counters unavailable: %s", e)
            return None
        return _sum_counters(counters or {})

    def update(self) -> Tuple[float, float]:
        with self._lock:
            totals = self._read_totals()
            if totals is None:
                # keep the last good baseline so recovery does not report a spike
                return 0.0, 0.0

            rx, tx = totals
            now = self._clock()
            prev = self._state

            if prev is None:
                rates = (0.0, 0.0)
            else:
                elapsed = now - prev.timestamp
                rates = (
                    compute_rate(rx, prev.cumulative_rx_bytes, elapsed),
                    compute_rate(tx, prev.cumulative_tx_bytes, elapsed),
                )

            self._state = NetworkRateState(
                cumulative_rx_bytes=rx,
                cumulative_tx_bytes=tx,
                timestamp=now,
            )
            return rates
