"""Inoculation transition engine.

Runs once per simulated day, over every live inoculation whose dwell time
has elapsed:

  EXPOSED  host on prophylaxis → removed (suppressed)
           else Bernoulli(prob_acute) → ACUTE (dwell ~ acute_duration)
                                     else CHRONIC (dwell ~ chronic_duration)
           on ACUTE, Bernoulli(prob_treatment) → treatment request at
           day + round(treatment_delay); an earlier pending day wins
  ACUTE    Bernoulli(prob_acute_to_chronic) → CHRONIC, else removed
  CHRONIC  removed

Iteration is over a snapshot of ids taken at the start of the day. Removals
are collected during the pass and applied after it, so nothing is visited
twice and no removal invalidates the enumeration.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import List, Optional

import numpy as np

from inocsim.config import DiseaseSection, SimulationConfig, TreatmentSection
from inocsim.population import Population
from inocsim.rng import bernoulli
from inocsim.types import InfectionState, Inoculation, TreatmentRequest
from inocsim.utils import round_days

logger = logging.getLogger(__name__)


# Transition edge labels used for counting
EDGE_SUPPRESSED = 'E->suppressed'
EDGE_E_TO_A = 'E->A'
EDGE_E_TO_C = 'E->C'
EDGE_A_TO_C = 'A->C'
EDGE_A_CLEARED = 'A->cleared'
EDGE_C_CLEARED = 'C->cleared'

EDGES = (
    EDGE_SUPPRESSED, EDGE_E_TO_A, EDGE_E_TO_C,
    EDGE_A_TO_C, EDGE_A_CLEARED, EDGE_C_CLEARED,
)


def sample_treatment_day(
    day: int,
    cfg: TreatmentSection,
    rng: np.random.Generator,
) -> int:
    """Day a treatment triggered on ``day`` takes effect."""
    return day + round_days(cfg.treatment_delay.sample(rng), cfg.day_rounding)


def _resolve_exposed(
    inoc: Inoculation,
    day: int,
    population: Population,
    disease: DiseaseSection,
    treatment: TreatmentSection,
    rng: np.random.Generator,
    removals: List[int],
    requests: List[TreatmentRequest],
) -> str:
    host = population.host(inoc.host_id)
    if host.on_prophylaxis:
        removals.append(inoc.inoc_id)
        return EDGE_SUPPRESSED

    if bernoulli(rng, disease.prob_acute):
        inoc.enter(InfectionState.ACUTE, day, disease.acute_duration.sample(rng))
        if bernoulli(rng, treatment.prob_treatment):
            candidate = sample_treatment_day(day, treatment, rng)
            moved = host.request_treatment(candidate)
            requests.append(TreatmentRequest(host.host_id, candidate))
            logger.debug(
                "day %d: host %d treatment requested for day %d (%s)",
                day, host.host_id, candidate,
                "scheduled" if moved else f"kept {host.pending_treatment_day}",
            )
        return EDGE_E_TO_A

    inoc.enter(InfectionState.CHRONIC, day, disease.chronic_duration.sample(rng))
    return EDGE_E_TO_C


def _resolve_acute(
    inoc: Inoculation,
    day: int,
    disease: DiseaseSection,
    rng: np.random.Generator,
    removals: List[int],
) -> str:
    if bernoulli(rng, disease.prob_acute_to_chronic):
        inoc.enter(InfectionState.CHRONIC, day, disease.chronic_duration.sample(rng))
        return EDGE_A_TO_C
    removals.append(inoc.inoc_id)
    return EDGE_A_CLEARED


def step_inoculations(
    day: int,
    population: Population,
    config: SimulationConfig,
    rng: np.random.Generator,
    counters: Optional[Counter] = None,
) -> List[TreatmentRequest]:
    """Apply one day of state transitions to every due inoculation.

    Args:
        day: Current simulation day.
        population: Hosts and inoculations (mutated in place).
        config: Full configuration (disease and treatment sections read).
        rng: Random source for every draw made here.
        counters: Optional Counter incremented per transition edge.

    Returns:
        One TreatmentRequest per successful treatment trigger, in the order
        drawn. A request that lost to an earlier pending day is still
        reported; the host keeps the earlier day.
    """
    disease = config.disease
    treatment = config.treatment
    removals: List[int] = []
    requests: List[TreatmentRequest] = []

    for inoc_id in population.snapshot_ids():
        inoc = population.inoculation(inoc_id)
        if not inoc.is_due(day):
            continue

        if inoc.state == InfectionState.EXPOSED:
            edge = _resolve_exposed(
                inoc, day, population, disease, treatment, rng, removals, requests,
            )
        elif inoc.state == InfectionState.ACUTE:
            edge = _resolve_acute(inoc, day, disease, rng, removals)
        elif inoc.state == InfectionState.CHRONIC:
            removals.append(inoc_id)
            edge = EDGE_C_CLEARED
        else:
            raise ValueError(
                f"Inoculation {inoc_id} holds non-storable state {inoc.state!r}"
            )

        if counters is not None:
            counters[edge] += 1

    population.remove_many(removals)
    if removals:
        logger.debug("day %d: %d inoculations removed", day, len(removals))
    return requests
