"""Simulation driver: one tick per outer frame.

Order within ``Simulation.tick(wall_delta)``:
  1. Clock advances by wall_delta × speed multiplier
  2. For each day boundary crossed, in order (day N fully before N+1):
       a. Transition engine over a snapshot of all inoculations
       b. Treatment/prophylaxis policy over all hosts
       c. Record daily status counts
  3. Incidence generator, once per tick, using the same wall_delta/speed

State is owned by the Simulation instance (clock, population, RNG
streams), so independent runs can coexist in one process.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from inocsim.clock import SimulationClock
from inocsim.config import SimulationConfig, apply_updates, default_config, validate_config
from inocsim.disease import EDGES, step_inoculations
from inocsim.incidence import spawn_new_infections
from inocsim.perf import PerfMonitor
from inocsim.population import Population, initialize_population
from inocsim.rng import create_rng_streams, get_stream
from inocsim.treatment import step_hosts
from inocsim.types import HostStatus, InfectionState

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
# RESULT CONTAINER
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class SimResult:
    """Daily time series and totals from a run."""
    n_days: int = 0
    # Daily timeseries (length = n_days); index d is the state at the end of day d+1
    daily_status: Optional[np.ndarray] = None        # (n_days, len(HostStatus)) int
    daily_inoculations: Optional[np.ndarray] = None  # (n_days,) live inoculations
    daily_treated: Optional[np.ndarray] = None       # (n_days,) hosts treated that day

    # Totals
    total_new_infections: int = 0
    total_treatment_requests: int = 0
    total_treatments: int = 0
    transitions: Dict[str, int] = field(default_factory=dict)
    # Live inoculations by state when the run stopped
    final_inoculations: Dict[str, int] = field(default_factory=dict)

    def status_series(self, status: HostStatus) -> np.ndarray:
        """Daily count of hosts showing ``status``."""
        return self.daily_status[:, int(status)]


# ═══════════════════════════════════════════════════════════════════════
# SIMULATION
# ═══════════════════════════════════════════════════════════════════════

class Simulation:
    """A single in-process run over a fixed host population."""

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        seed: Optional[int] = None,
        population: Optional[Population] = None,
        perf: Optional[PerfMonitor] = None,
        record: bool = True,
    ):
        self.config = config if config is not None else default_config()
        validate_config(self.config)
        self.seed = self.config.simulation.seed if seed is None else seed
        self.rngs = create_rng_streams(self.seed)
        self.clock = SimulationClock.from_config(self.config.clock)
        self.population = (
            population if population is not None
            else initialize_population(self.config, day=self.clock.day)
        )
        self.perf = perf if perf is not None else PerfMonitor(enabled=False)
        self.record = record

        self.transitions: Counter = Counter({edge: 0 for edge in EDGES})
        self.total_new_infections = 0
        self.total_treatment_requests = 0
        self.total_treatments = 0
        self._daily_status: List[List[int]] = []
        self._daily_inoculations: List[int] = []
        self._daily_treated: List[int] = []

        logger.info(
            "Simulation created: %d hosts, seed=%d",
            self.population.n_hosts, self.seed,
        )

    # ── read access ───────────────────────────────────────────────────

    @property
    def day(self) -> int:
        return self.clock.day

    @property
    def speed_multiplier(self) -> float:
        return self.config.clock.speed_multiplier

    def host_status(self, host_id: int) -> HostStatus:
        return self.population.status(host_id)

    def status_counts(self) -> Dict[HostStatus, int]:
        return self.population.status_counts()

    def inoculation_states(self, host_id: int) -> List[InfectionState]:
        return [inoc.state for inoc in self.population.inoculations_of(host_id)]

    # ── write access ──────────────────────────────────────────────────

    def update_parameters(self, **changes: float) -> None:
        """Live edit of incidence_rate, prophylaxis_days, prob_treatment or
        speed_multiplier between ticks. Invalid values raise ValueError and
        leave the configuration unchanged."""
        apply_updates(self.config, **changes)
        self.clock.speed_multiplier = self.config.clock.speed_multiplier
        logger.debug("Parameters updated: %s", changes)

    # ── stepping ──────────────────────────────────────────────────────

    def _step_day(self, day: int) -> None:
        with self.perf.track("transitions"):
            requests = step_inoculations(
                day, self.population, self.config,
                get_stream(self.rngs, 'transition'), counters=self.transitions,
            )
        with self.perf.track("treatment"):
            treated = step_hosts(day, self.population, self.config)

        self.total_treatment_requests += len(requests)
        self.total_treatments += len(treated)
        if self.record:
            counts = self.population.status_counts()
            self._daily_status.append([counts[s] for s in HostStatus])
            self._daily_inoculations.append(self.population.n_inoculations)
            self._daily_treated.append(len(treated))

    def tick(self, wall_delta: float) -> int:
        """Advance by ``wall_delta`` wall seconds.

        Returns:
            Number of simulated days that elapsed.
        """
        speed = self.config.clock.speed_multiplier
        with self.perf.track("clock"):
            crossed = self.clock.advance(wall_delta, speed)

        first_day = self.clock.day - crossed + 1
        for day in range(first_day, self.clock.day + 1):
            self._step_day(day)

        with self.perf.track("incidence"):
            new_ids = spawn_new_infections(
                self.clock.day, wall_delta, speed, self.config,
                self.population, get_stream(self.rngs, 'incidence'),
            )
        self.total_new_infections += len(new_ids)
        return crossed

    def run_days(self, n_days: int, dt: float = 1.0 / 60.0) -> None:
        """Tick with fixed ``dt`` until ``n_days`` more days have elapsed."""
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        target = self.clock.day + n_days
        while self.clock.day < target:
            self.tick(dt)

    def result(self) -> SimResult:
        n = len(self._daily_status)
        return SimResult(
            n_days=n,
            daily_status=np.array(self._daily_status, dtype=np.int64).reshape(n, len(HostStatus)),
            daily_inoculations=np.array(self._daily_inoculations, dtype=np.int64),
            daily_treated=np.array(self._daily_treated, dtype=np.int64),
            total_new_infections=self.total_new_infections,
            total_treatment_requests=self.total_treatment_requests,
            total_treatments=self.total_treatments,
            transitions=dict(self.transitions),
            final_inoculations={
                s.name: count for s, count in self.population.state_counts().items()
            },
        )


def run_simulation(
    config: Optional[SimulationConfig] = None,
    n_days: int = 365,
    dt: float = 1.0 / 60.0,
    seed: Optional[int] = None,
    perf: Optional[PerfMonitor] = None,
) -> SimResult:
    """Run headless for ``n_days`` simulated days at a fixed frame time.

    Args:
        config: Configuration; defaults if None.
        n_days: Simulated days to run.
        dt: Wall seconds per tick (60 fps by default).
        seed: Overrides config.simulation.seed if given.
        perf: Optional performance monitor.

    Returns:
        SimResult with daily status counts and totals.
    """
    sim = Simulation(config, seed=seed, perf=perf)
    if perf is not None:
        perf.start()
    sim.run_days(n_days, dt)
    if perf is not None:
        perf.stop()
    result = sim.result()
    logger.info(
        "Run finished: %d days, %d new infections, %d treatments",
        result.n_days, result.total_new_infections, result.total_treatments,
    )
    return result
