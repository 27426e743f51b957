"""New-infection arrivals.

Runs every tick, not only on day boundaries. Each host independently gets
a new Exposed inoculation with probability

    p = incidence_rate × wall_delta × speed

which approximates a Poisson arrival process over scaled wall time for
small steps. The host's current state does not matter, and there is no cap
on concurrent inoculations.
"""

from __future__ import annotations

from typing import List

import numpy as np

from inocsim.config import SimulationConfig
from inocsim.population import Population


def arrival_probability(incidence_rate: float, wall_delta: float, speed: float) -> float:
    """Per-host probability of one arrival in this tick."""
    return incidence_rate * wall_delta * speed


def spawn_new_infections(
    day: int,
    wall_delta: float,
    speed: float,
    config: SimulationConfig,
    population: Population,
    rng: np.random.Generator,
) -> List[int]:
    """Draw arrivals for every host and create the new inoculations.

    Args:
        day: Current simulation day (start day of new inoculations).
        wall_delta: Wall seconds elapsed this tick (same value the clock saw).
        speed: Speed multiplier (same value the clock saw).
        config: Full configuration.
        population: Hosts (mutated in place).
        rng: Random source.

    Returns:
        Ids of the inoculations created, in host order.
    """
    p = arrival_probability(config.disease.incidence_rate, wall_delta, speed)
    if p <= 0 or population.n_hosts == 0:
        return []

    hits = np.flatnonzero(rng.random(population.n_hosts) < p)
    delay = config.disease.liver_stage_days
    return [
        population.add_inoculation(int(host_id), day, delay).inoc_id
        for host_id in hits
    ]
