from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional

import psutil

logger = logging.getLogger(__name__)


def peak_temperature(readings: Iterable[Optional[float]]) -> Optional[float]:
    """Hottest finite reading, or None when no sensor gave a usable value."""
    peak: Optional[float] = None
    for value in readings:
        if value is None:
            continue
        value = float(value)
        # NaN / inf mean the sensor read failed
        if not math.isfinite(value):
            continue
        if peak is None or value > peak:
            peak = value
    return peak


def read_sensor_temperatures() -> List[Optional[float]]:
    sensors = getattr(psutil, "sensors_temperatures", None)
    if sensors is None:
        # not implemented on this platform
        return []
    try:
        temps = sensors()
    except (OSError, RuntimeError, psutil.Error) as e:
        logger.debug("temperature sensors unavailable: %s", e)
        return []

    readings: List[Optional[float]] = []
    for _chip, entries in (temps or {}).items():
        for entry in entries:
            readings.append(entry.current)
    return readings


def read_peak_temperature() -> Optional[float]:
    return peak_temperature(read_sensor_temperatures())
