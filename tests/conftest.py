"""Shared fixtures for the INOCSIM test suite."""

from collections import deque

import numpy as np
import pytest

from inocsim.config import (
    ClockSection,
    DiseaseSection,
    SimulationConfig,
    SimulationSection,
    TreatmentSection,
    UniformRange,
)


class ScriptedRng:
    """Stand-in for np.random.Generator that replays queued draws.

    ``random()`` pops from the ``random`` queue, ``uniform(low, high)`` from
    the ``uniform`` queue. Running out of values fails the test, which
    also catches draws that should not have happened.
    """

    def __init__(self, random=(), uniform=()):
        self._random = deque(random)
        self._uniform = deque(uniform)

    def random(self, size=None):
        if size is None:
            return self._pop(self._random, 'random')
        return np.array([self._pop(self._random, 'random') for _ in range(size)])

    def uniform(self, low, high):
        value = self._pop(self._uniform, 'uniform')
        assert low <= value <= high, f"scripted uniform {value} outside [{low}, {high}]"
        return value

    @staticmethod
    def _pop(queue, kind):
        if not queue:
            pytest.fail(f"unexpected {kind}() draw")
        return queue.popleft()

    @property
    def exhausted(self) -> bool:
        return not self._random and not self._uniform


@pytest.fixture
def scripted():
    """Factory: scripted(random=[...], uniform=[...])."""
    return ScriptedRng


@pytest.fixture
def cfg() -> SimulationConfig:
    """Default configuration."""
    return SimulationConfig()


@pytest.fixture
def closed_cfg() -> SimulationConfig:
    """One host, no new arrivals, one simulated day per wall second."""
    return SimulationConfig(
        simulation=SimulationSection(n_hosts=1, seed=1),
        clock=ClockSection(seconds_per_day=1.0, speed_multiplier=1.0),
        disease=DiseaseSection(incidence_rate=0.0),
        treatment=TreatmentSection(),
    )


@pytest.fixture
def treat_always_cfg() -> SimulationConfig:
    """Every E → A, every E → A requests treatment one day later."""
    return SimulationConfig(
        simulation=SimulationSection(n_hosts=1, seed=3),
        disease=DiseaseSection(prob_acute=1.0, incidence_rate=0.0),
        treatment=TreatmentSection(
            prob_treatment=1.0,
            treatment_delay=UniformRange(1.0, 1.0),
            prophylaxis_days=14.0,
        ),
    )


def assert_indexes_consistent(pop) -> None:
    """The host → ids table and each inoculation's host_id agree."""
    seen = set()
    for host_id, owned in enumerate(pop._owned):
        for inoc_id in owned:
            assert inoc_id in pop.inoculations, f"host {host_id} owns dead inoculation {inoc_id}"
            assert pop.inoculations[inoc_id].host_id == host_id
            seen.add(inoc_id)
    assert seen == set(pop.inoculations), "orphaned inoculations present"


@pytest.fixture
def check_indexes():
    return assert_indexes_consistent
