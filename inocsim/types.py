"""Core data types for INOCSIM.

This module defines:
  - InfectionState, HostStatus enumerations
  - Inoculation and Host entities
  - TreatmentRequest, emitted by the transition engine
  - host_status(): derived display status from a fixed priority table

Hosts and inoculations reference each other by integer id only. Ownership
(host → inoculations) is kept in the index tables of
``inocsim.population.Population``.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class InfectionState(IntEnum):
    """Stages of a single inoculation.

    E → A | C
    A → C | cleared
    C → cleared

    CLEARED is a display value only. A cleared inoculation is removed,
    never stored with this state.
    """
    EXPOSED = 0   # Liver stage, fixed dwell
    ACUTE   = 1   # Symptomatic blood stage
    CHRONIC = 2   # Low-density persistent blood stage
    CLEARED = 3   # Display only


class HostStatus(IntEnum):
    """Host display status. Higher value wins when several apply."""
    SUSCEPTIBLE = 0
    EXPOSED     = 1
    CHRONIC     = 2
    ACUTE       = 3
    PROPHYLAXIS = 4


# Stored states that are legal for a live inoculation
LIVE_STATES = (InfectionState.EXPOSED, InfectionState.ACUTE, InfectionState.CHRONIC)

# Inoculation state → host status it implies
STATE_TO_STATUS = {
    InfectionState.EXPOSED: HostStatus.EXPOSED,
    InfectionState.ACUTE:   HostStatus.ACUTE,
    InfectionState.CHRONIC: HostStatus.CHRONIC,
}


# ═══════════════════════════════════════════════════════════════════════
# ENTITIES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class Inoculation:
    """One infection event, owned by exactly one host."""
    inoc_id: int
    host_id: int
    state: InfectionState
    start_day: int          # day the current state was entered
    delay_days: float       # dwell time before the next evaluation

    def elapsed(self, day: int) -> int:
        return day - self.start_day

    def is_due(self, day: int) -> bool:
        """True once the dwell time in the current state has elapsed."""
        return self.elapsed(day) >= self.delay_days

    def enter(self, state: InfectionState, day: int, delay_days: float) -> None:
        """Move to a new state, restarting the dwell clock."""
        self.state = state
        self.start_day = day
        self.delay_days = delay_days


@dataclass
class Host:
    """A simulated individual. Created once, never destroyed."""
    host_id: int
    on_prophylaxis: bool = False
    prophylaxis_end_day: Optional[int] = None
    pending_treatment_day: Optional[int] = None

    def request_treatment(self, candidate_day: int) -> bool:
        """Schedule treatment; an earlier pending day always wins.

        Returns:
            True if the pending day was set or moved earlier.
        """
        if self.pending_treatment_day is None or candidate_day < self.pending_treatment_day:
            self.pending_treatment_day = candidate_day
            return True
        return False


@dataclass(frozen=True)
class TreatmentRequest:
    """A successful treatment trigger from an E → A transition."""
    host_id: int
    treatment_day: int


# ═══════════════════════════════════════════════════════════════════════
# DERIVED STATUS
# ═══════════════════════════════════════════════════════════════════════

def host_status(on_prophylaxis: bool, states: Iterable[InfectionState]) -> HostStatus:
    """Display status of a host.

    Priority: PROPHYLAXIS > ACUTE > CHRONIC > EXPOSED > SUSCEPTIBLE.
    """
    if on_prophylaxis:
        return HostStatus.PROPHYLAXIS
    return max(
        (STATE_TO_STATUS[s] for s in states),
        default=HostStatus.SUSCEPTIBLE,
    )
