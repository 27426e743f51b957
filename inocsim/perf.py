"""Per-phase timing for INOCSIM runs.

The simulation wraps each phase of a tick (clock, transitions, treatment,
incidence) in ``perf.track(name)``. A disabled monitor records nothing.
The driver reads the totals back through ``summary()`` (JSON output) or
``report()`` (text), both normalized per simulated day.

Usage:
    perf = PerfMonitor(enabled=True)
    result = run_simulation(config, n_days=365, perf=perf)
    print(perf.report(result.n_days))
"""

import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Optional

PHASES = ('clock', 'transitions', 'treatment', 'incidence')


@dataclass
class PhaseTiming:
    seconds: float = 0.0
    calls: int = 0

    def add(self, elapsed: float) -> None:
        self.seconds += elapsed
        self.calls += 1


class PerfMonitor:
    """Wall-clock time spent in each simulation phase."""

    def __init__(self, enabled: bool = False):
        self.enabled = enabled
        self._phases: Dict[str, PhaseTiming] = defaultdict(PhaseTiming)
        self._started: Optional[float] = None
        self._wall: float = 0.0

    def start(self) -> None:
        if self.enabled:
            self._started = time.perf_counter()

    def stop(self) -> None:
        if self.enabled and self._started is not None:
            self._wall = time.perf_counter() - self._started
            self._started = None

    @contextmanager
    def track(self, phase: str):
        """Time the enclosed block under ``phase``."""
        if not self.enabled:
            yield
            return
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self._phases[phase].add(time.perf_counter() - t0)

    @property
    def phases(self):
        """Names of the phases timed so far, in tick order."""
        known = [p for p in PHASES if p in self._phases]
        return known + sorted(set(self._phases) - set(PHASES))

    def summary(self, n_days: int = 0) -> dict:
        """Phase totals as plain JSON-ready values.

        ``wall_s`` is the start/stop span when one was taken, otherwise
        the sum of phase times. ``ms_per_day`` is present when ``n_days``
        is positive.
        """
        tracked = sum(t.seconds for t in self._phases.values())
        wall = self._wall or tracked
        phases = {}
        for name in self.phases:
            timing = self._phases[name]
            entry = {
                'seconds': round(timing.seconds, 6),
                'calls': timing.calls,
                'share': round(timing.seconds / tracked, 4) if tracked > 0 else 0.0,
            }
            if n_days > 0:
                entry['ms_per_day'] = round(timing.seconds * 1000 / n_days, 4)
            phases[name] = entry
        out = {'wall_s': round(wall, 6), 'phases': phases}
        if n_days > 0:
            out['ms_per_day'] = round(wall * 1000 / n_days, 4)
        return out

    def report(self, n_days: int = 0) -> str:
        """Text table of ``summary(n_days)``."""
        data = self.summary(n_days)
        lines = [
            "Phase timings",
            f"  {'phase':<12} {'seconds':>10} {'calls':>9} {'share':>7} {'ms/day':>9}",
        ]
        for name, entry in data['phases'].items():
            per_day = entry.get('ms_per_day')
            lines.append(
                f"  {name:<12} {entry['seconds']:>10.4f} {entry['calls']:>9} "
                f"{entry['share']:>7.1%} "
                + (f"{per_day:>9.4f}" if per_day is not None else f"{'-':>9}")
            )
        lines.append(f"  {'wall':<12} {data['wall_s']:>10.4f}")
        return '\n'.join(lines)
