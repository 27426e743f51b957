"""Host and inoculation arena.

Hosts live in a list indexed by host id. Inoculations live in a dict keyed
by inoculation id, with two index tables kept in step:

  host id        → set of inoculation ids   (``_owned``)
  inoculation id → owning host id           (``Inoculation.host_id``)

All structural changes go through ``add_inoculation`` / ``remove_inoculation``
/ ``clear_host`` so the two sides never disagree. Looking up an id that is
not live raises KeyError.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterator, List, Set

from inocsim.config import SimulationConfig
from inocsim.types import (
    LIVE_STATES,
    Host,
    HostStatus,
    InfectionState,
    Inoculation,
    host_status,
)

logger = logging.getLogger(__name__)


class Population:
    """Fixed set of hosts plus their live inoculations."""

    def __init__(self, n_hosts: int = 0):
        self.hosts: List[Host] = [Host(host_id=i) for i in range(n_hosts)]
        self.inoculations: Dict[int, Inoculation] = {}
        self._owned: List[Set[int]] = [set() for _ in range(n_hosts)]
        self._next_inoc_id = 0

    # ── size ──────────────────────────────────────────────────────────

    @property
    def n_hosts(self) -> int:
        return len(self.hosts)

    @property
    def n_inoculations(self) -> int:
        return len(self.inoculations)

    def __len__(self) -> int:
        return len(self.hosts)

    # ── lookup ────────────────────────────────────────────────────────

    def host(self, host_id: int) -> Host:
        if not (0 <= host_id < len(self.hosts)):
            raise KeyError(f"No host {host_id}; population has {len(self.hosts)} hosts")
        return self.hosts[host_id]

    def inoculation(self, inoc_id: int) -> Inoculation:
        try:
            return self.inoculations[inoc_id]
        except KeyError:
            raise KeyError(f"Inoculation {inoc_id} is not live") from None

    def inoculation_ids(self, host_id: int) -> List[int]:
        """Ids of the host's live inoculations (sorted, a copy)."""
        self.host(host_id)
        return sorted(self._owned[host_id])

    def inoculations_of(self, host_id: int) -> List[Inoculation]:
        return [self.inoculations[i] for i in self.inoculation_ids(host_id)]

    def snapshot_ids(self) -> List[int]:
        """Point-in-time list of every live inoculation id, in creation order."""
        return sorted(self.inoculations)

    def __iter__(self) -> Iterator[Host]:
        return iter(self.hosts)

    # ── structural changes ────────────────────────────────────────────

    def add_inoculation(
        self,
        host_id: int,
        day: int,
        delay_days: float,
        state: InfectionState = InfectionState.EXPOSED,
    ) -> Inoculation:
        """Create a live inoculation owned by ``host_id``."""
        self.host(host_id)
        if state not in LIVE_STATES:
            raise ValueError(f"Cannot store an inoculation in state {state.name}")
        inoc = Inoculation(
            inoc_id=self._next_inoc_id,
            host_id=host_id,
            state=state,
            start_day=day,
            delay_days=float(delay_days),
        )
        self._next_inoc_id += 1
        self.inoculations[inoc.inoc_id] = inoc
        self._owned[host_id].add(inoc.inoc_id)
        return inoc

    def remove_inoculation(self, inoc_id: int) -> Inoculation:
        """Destroy an inoculation and detach it from its host."""
        inoc = self.inoculations.pop(inoc_id, None)
        if inoc is None:
            raise KeyError(f"Inoculation {inoc_id} is not live")
        self._owned[inoc.host_id].discard(inoc_id)
        return inoc

    def remove_many(self, inoc_ids) -> int:
        """Remove a batch collected during a read pass. Returns the count."""
        n = 0
        for inoc_id in inoc_ids:
            self.remove_inoculation(inoc_id)
            n += 1
        return n

    def clear_host(self, host_id: int) -> int:
        """Destroy every inoculation the host owns. Returns the count."""
        self.host(host_id)
        owned = self._owned[host_id]
        for inoc_id in owned:
            del self.inoculations[inoc_id]
        n = len(owned)
        owned.clear()
        return n

    # ── derived views ─────────────────────────────────────────────────

    def status(self, host_id: int) -> HostStatus:
        host = self.host(host_id)
        return host_status(
            host.on_prophylaxis,
            (self.inoculations[i].state for i in self._owned[host_id]),
        )

    def statuses(self) -> List[HostStatus]:
        return [self.status(h.host_id) for h in self.hosts]

    def status_counts(self) -> Dict[HostStatus, int]:
        """Number of hosts in each display status (all statuses present)."""
        counts = Counter(self.statuses())
        return {s: counts.get(s, 0) for s in HostStatus}

    def state_counts(self) -> Dict[InfectionState, int]:
        """Number of live inoculations in each stored state."""
        counts = Counter(inoc.state for inoc in self.inoculations.values())
        return {s: counts.get(s, 0) for s in LIVE_STATES}


# ═══════════════════════════════════════════════════════════════════════
# INITIALIZATION
# ═══════════════════════════════════════════════════════════════════════

def initialize_population(config: SimulationConfig, day: int = 0) -> Population:
    """Create ``n_hosts`` hosts, each carrying fresh Exposed inoculations.

    Every seeded inoculation starts at ``day`` with the fixed liver-stage
    dwell time, so setup draws no random numbers.
    """
    sim = config.simulation
    pop = Population(sim.n_hosts)
    for host in pop.hosts:
        for _ in range(sim.initial_inoculations_per_host):
            pop.add_inoculation(host.host_id, day, config.disease.liver_stage_days)
    logger.debug(
        "Initialized %d hosts with %d inoculations each",
        sim.n_hosts, sim.initial_inoculations_per_host,
    )
    return pop
