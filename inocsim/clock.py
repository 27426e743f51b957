"""Simulation day clock.

Wall time (seconds) × speed multiplier accumulates in ``timer_ns``, an
integer count of nanoseconds. Every time the timer reaches one day's
worth of nanoseconds that threshold is subtracted and ``day`` advances by
exactly one, so a large step crosses several boundaries one at a time and
none is skipped. Integer accumulation keeps ``advance(a); advance(b)``
and ``advance(a + b)`` on the same day.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from inocsim.config import ClockSection

NANOS_PER_SECOND = 1_000_000_000


def to_nanos(seconds: float) -> int:
    """Scaled wall seconds to whole nanoseconds (nearest)."""
    return int(round(seconds * NANOS_PER_SECOND))


@dataclass
class SimulationClock:
    """Whole-day counter driven by scaled wall time."""
    seconds_per_day: float = 1.0
    speed_multiplier: float = 1.0
    day: int = 0
    timer_ns: int = 0

    def __post_init__(self):
        if self.seconds_per_day <= 0:
            raise ValueError(
                f"seconds_per_day must be positive, got {self.seconds_per_day}"
            )
        if self.speed_multiplier <= 0:
            raise ValueError(
                f"speed_multiplier must be positive, got {self.speed_multiplier}"
            )
        self._day_ns = to_nanos(self.seconds_per_day)
        if self._day_ns <= 0:
            raise ValueError(
                f"seconds_per_day below clock resolution: {self.seconds_per_day}"
            )

    @classmethod
    def from_config(cls, cfg: ClockSection) -> 'SimulationClock':
        return cls(
            seconds_per_day=cfg.seconds_per_day,
            speed_multiplier=cfg.speed_multiplier,
        )

    @property
    def timer(self) -> float:
        """Seconds accumulated towards the next day boundary."""
        return self.timer_ns / NANOS_PER_SECOND

    def advance(self, wall_delta: float, speed: Optional[float] = None) -> int:
        """Accumulate ``wall_delta * speed`` and count day boundaries crossed.

        Args:
            wall_delta: Elapsed wall time in seconds (>= 0).
            speed: Speed multiplier; defaults to ``self.speed_multiplier``.

        Returns:
            Number of day boundaries crossed (``day`` grew by this much).

        Raises:
            ValueError: On negative wall_delta or non-positive speed.
        """
        if speed is None:
            speed = self.speed_multiplier
        if wall_delta < 0:
            raise ValueError(f"wall_delta must be >= 0, got {wall_delta}")
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")

        self.timer_ns += to_nanos(wall_delta * speed)
        crossed = 0
        while self.timer_ns >= self._day_ns:
            self.timer_ns -= self._day_ns
            self.day += 1
            crossed += 1
        return crossed

    def reset(self) -> None:
        self.day = 0
        self.timer_ns = 0
