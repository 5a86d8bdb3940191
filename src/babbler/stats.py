# babbler/stats.py
# Process-wide traffic counters and their human readable rendering.

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

SI_SUFFIXES = {1: "k", 2: "M", 3: "G", 4: "T"}
WORD_SUFFIXES = {1: "thousand ", 2: "million ", 3: "billion ", 4: "trillion "}


class AtomicCounter:
    """Monotonic integer that is safe to bump from many threads."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def add(self, amount: int = 1) -> int:
        if amount < 0:
            raise ValueError("counters only move forward")
        with self._lock:
            self._value += amount
            return self._value

    def increment(self) -> int:
        return self.add(1)

    @property
    def value(self) -> int:
        return self._value


@dataclass(frozen=True)
class StatsSnapshot:
    uptime_seconds: float
    cpu_seconds: float
    requests_served: int
    bytes_served: int

    def per_minute(self, total: int) -> int:
        if self.uptime_seconds <= 0:
            return 0
        return int(total * 60 / self.uptime_seconds)


class StatsCollector:
    """Counters shown on the status page, kept for the process lifetime."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        cpu_clock: Callable[[], float] = time.process_time,
    ) -> None:
        self._clock = clock
        self._cpu_clock = cpu_clock
        self.started_at = clock()
        self.requests_served = AtomicCounter()
        self.bytes_served = AtomicCounter()

    def record_request(self) -> None:
        self.requests_served.increment()

    def record_bytes(self, amount: int) -> None:
        self.bytes_served.add(amount)

    def snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(
            uptime_seconds=max(self._clock() - self.started_at, 0.0),
            cpu_seconds=self._cpu_clock(),
            requests_served=self.requests_served.value,
            bytes_served=self.bytes_served.value,
        )


def format_duration(seconds: int) -> str:
    """Render e.g. ``"1 hours 2 minutes 5 seconds "``.

    A unit appears once the total reaches it; seconds are always shown.
    """
    seconds = int(seconds)
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    years = days // 365

    out = []
    if years > 0:
        out.append(f"{years} years ")
    if days > 0:
        out.append(f"{days % 365} days ")
    if hours > 0:
        out.append(f"{hours % 24} hours ")
    if minutes > 0:
        out.append(f"{minutes % 60} minutes ")
    out.append(f"{seconds % 60} seconds ")
    return "".join(out)


def format_count(number: int, si: bool = False, unit: Optional[str] = None) -> str:
    """Render ``number`` in groups of a thousand.

    ``format_count(12345, si=True)`` gives ``"12 k"``; without ``si`` the
    suffix is spelled out (``"12 thousand "``).
    """
    number = int(number)
    if number <= 0:
        out = "0 "
        return out + unit if unit else out

    # floor(log10(n) / 3), computed on the digits to stay exact.
    groups = min((len(str(number)) - 1) // 3, max(SI_SUFFIXES))
    shown = number // (1000**groups)
    suffixes = SI_SUFFIXES if si else WORD_SUFFIXES
    out = f"{shown} {suffixes.get(groups, '')}"
    return out + unit if unit else out
