"""Tests for inocsim.model: tick ordering, scenarios and run-level properties."""

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
from inocsim.model import SimResult, Simulation, run_simulation
from inocsim.perf import PerfMonitor
from inocsim.population import Population
from inocsim.types import HostStatus, InfectionState

E, A, C = InfectionState.EXPOSED, InfectionState.ACUTE, InfectionState.CHRONIC


def _busy_config(seed: int = 11) -> SimulationConfig:
    """High incidence and treatment so every code path is exercised."""
    return SimulationConfig(
        simulation=SimulationSection(n_hosts=8, seed=seed),
        clock=ClockSection(seconds_per_day=1.0, speed_multiplier=3.0),
        disease=DiseaseSection(incidence_rate=0.3, acute_duration=UniformRange(2.0, 6.0),
                               chronic_duration=UniformRange(5.0, 20.0)),
        treatment=TreatmentSection(prob_treatment=0.6, prophylaxis_days=5.0),
    )


def _snapshot(sim: Simulation):
    hosts = [
        (h.on_prophylaxis, h.prophylaxis_end_day, h.pending_treatment_day)
        for h in sim.population
    ]
    inocs = {
        i: (x.host_id, x.state, x.start_day, x.delay_days)
        for i, x in sim.population.inoculations.items()
    }
    return sim.day, sim.clock.timer, hosts, inocs


# ═══════════════════════════════════════════════════════════════════════
# SCENARIOS
# ═══════════════════════════════════════════════════════════════════════

class TestScenarios:
    def test_exposed_becomes_acute_at_liver_stage_end(self, closed_cfg):
        closed_cfg.disease.prob_acute = 1.0
        closed_cfg.treatment.prob_treatment = 0.0
        sim = Simulation(closed_cfg)
        (inoc,) = sim.population.inoculations_of(0)

        sim.tick(6.0)
        assert inoc.state == E
        sim.tick(1.0)
        assert sim.day == 7
        assert inoc.state == A
        assert inoc.start_day == 7
        assert 10.0 <= inoc.delay_days < 40.0

    def test_exposed_becomes_acute_in_one_large_tick(self, closed_cfg):
        closed_cfg.disease.prob_acute = 1.0
        closed_cfg.treatment.prob_treatment = 0.0
        sim = Simulation(closed_cfg)
        assert sim.tick(7.0) == 7
        assert sim.inoculation_states(0) == [A]

    def test_due_treatment_clears_host(self, closed_cfg):
        pop = Population(1)
        pop.add_inoculation(0, 0, 100.0)
        pop.add_inoculation(0, 0, 100.0)
        pop.hosts[0].pending_treatment_day = 5
        sim = Simulation(closed_cfg, population=pop)

        sim.tick(5.0)
        host = sim.population.hosts[0]
        assert sim.population.inoculations_of(0) == []
        assert host.on_prophylaxis
        assert host.prophylaxis_end_day == 5 + 14
        assert host.pending_treatment_day is None
        assert sim.host_status(0) == HostStatus.PROPHYLAXIS

    def test_zero_incidence_never_spawns(self, closed_cfg):
        closed_cfg.simulation.n_hosts = 10
        closed_cfg.simulation.initial_inoculations_per_host = 0
        sim = Simulation(closed_cfg)
        for _ in range(2000):
            sim.tick(0.37)
        assert sim.total_new_infections == 0
        assert sim.population.n_inoculations == 0

    @pytest.mark.parametrize("pending", [None, 12])
    def test_prophylaxis_ends_on_end_day(self, closed_cfg, pending):
        pop = Population(1)
        pop.add_inoculation(0, 0, 100.0, state=C)
        host = pop.hosts[0]
        host.on_prophylaxis = True
        host.prophylaxis_end_day = 10
        host.pending_treatment_day = pending
        sim = Simulation(closed_cfg, population=pop)

        sim.tick(9.0)
        assert host.on_prophylaxis
        sim.tick(1.0)
        assert not host.on_prophylaxis
        assert host.prophylaxis_end_day is None


# ═══════════════════════════════════════════════════════════════════════
# ORDERING
# ═══════════════════════════════════════════════════════════════════════

class TestTickOrdering:
    def test_treatment_scheduled_then_applied_within_one_tick(self, treat_always_cfg):
        sim = Simulation(treat_always_cfg)
        assert sim.tick(10.0) == 10
        host = sim.population.hosts[0]
        # Acute on day 7, treatment due day 8, prophylaxis 8 → 22
        assert sim.total_treatment_requests == 1
        assert sim.total_treatments == 1
        assert sim.population.inoculations_of(0) == []
        assert host.on_prophylaxis
        assert host.prophylaxis_end_day == 22
        assert host.pending_treatment_day is None

    def test_one_large_tick_equals_many_small(self, treat_always_cfg):
        big = Simulation(treat_always_cfg)
        big.tick(30.0)
        small = Simulation(treat_always_cfg)
        for _ in range(120):
            small.tick(0.25)
        assert _snapshot(big)[:3] == _snapshot(small)[:3]

    def test_day_record_per_boundary(self, closed_cfg):
        sim = Simulation(closed_cfg)
        sim.tick(3.0)
        sim.tick(0.5)
        sim.tick(0.5)
        assert sim.result().n_days == 4

    def test_incidence_uses_current_day(self):
        config = SimulationConfig(
            simulation=SimulationSection(n_hosts=1, initial_inoculations_per_host=0),
            disease=DiseaseSection(incidence_rate=1.0),
        )
        sim = Simulation(config)
        sim.tick(2.0)   # p = 2.0, a new arrival is certain
        (inoc,) = sim.population.inoculations_of(0)
        assert inoc.start_day == 2
        assert inoc.state == E


# ═══════════════════════════════════════════════════════════════════════
# PROPERTIES
# ═══════════════════════════════════════════════════════════════════════

ALLOWED_EDGES = {(E, E), (A, A), (C, C), (E, A), (E, C), (A, C)}


class TestRunProperties:
    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_invariants_hold_every_tick(self, seed, check_indexes):
        sim = Simulation(_busy_config(seed))
        previous = {}
        for _ in range(600):
            sim.tick(0.1)
            day = sim.day
            current = {i: x.state for i, x in sim.population.inoculations.items()}

            # Only legal state edges; disappearance is always legal
            for inoc_id, state in current.items():
                if inoc_id in previous:
                    assert (previous[inoc_id], state) in ALLOWED_EDGES

            for host in sim.population:
                if host.on_prophylaxis:
                    # Treatment cleared everything; later arrivals cannot progress
                    assert all(
                        x.state == E for x in sim.population.inoculations_of(host.host_id)
                    )
                    assert host.prophylaxis_end_day is not None
                if host.pending_treatment_day is not None:
                    assert host.pending_treatment_day > day
            check_indexes(sim.population)
            previous = current

        assert sim.total_treatments > 0
        assert sim.total_new_infections > 0

    def test_tick_zero_is_noop(self):
        sim = Simulation(_busy_config())
        sim.run_days(40, dt=0.05)
        before = _snapshot(sim)
        for _ in range(10):
            assert sim.tick(0.0) == 0
        assert _snapshot(sim) == before

    def test_same_seed_same_run(self):
        a = run_simulation(_busy_config(), n_days=60, dt=0.05)
        b = run_simulation(_busy_config(), n_days=60, dt=0.05)
        np.testing.assert_array_equal(a.daily_status, b.daily_status)
        assert a.transitions == b.transitions

    def test_independent_simulations_coexist(self):
        a = Simulation(_busy_config(5))
        b = Simulation(_busy_config(5))
        a.run_days(10, dt=0.1)
        assert b.day == 0
        b.run_days(10, dt=0.1)
        assert _snapshot(a)[2:] == _snapshot(b)[2:]


# ═══════════════════════════════════════════════════════════════════════
# PARAMETER UPDATES
# ═══════════════════════════════════════════════════════════════════════

class TestUpdateParameters:
    def test_speed_multiplier_takes_effect(self, closed_cfg):
        sim = Simulation(closed_cfg)
        sim.update_parameters(speed_multiplier=4.0)
        assert sim.tick(1.0) == 4
        assert sim.speed_multiplier == 4.0

    def test_invalid_update_rejected(self, closed_cfg):
        sim = Simulation(closed_cfg)
        with pytest.raises(ValueError):
            sim.update_parameters(prob_treatment=-0.1)
        assert sim.config.treatment.prob_treatment == 0.4

    def test_incidence_switched_on(self, closed_cfg):
        closed_cfg.simulation.initial_inoculations_per_host = 0
        sim = Simulation(closed_cfg)
        sim.tick(1.0)
        assert sim.population.n_inoculations == 0
        sim.update_parameters(incidence_rate=2.0)
        sim.tick(1.0)
        assert sim.population.n_inoculations == 1

    def test_prophylaxis_days_applies_to_next_treatment(self, treat_always_cfg):
        sim = Simulation(treat_always_cfg)
        sim.update_parameters(prophylaxis_days=3.0)
        sim.tick(8.0)
        assert sim.population.hosts[0].prophylaxis_end_day == 11


# ═══════════════════════════════════════════════════════════════════════
# RESULTS
# ═══════════════════════════════════════════════════════════════════════

class TestRunSimulation:
    def test_result_shapes(self):
        perf = PerfMonitor(enabled=True)
        result = run_simulation(_busy_config(), n_days=30, dt=0.1, perf=perf)
        assert isinstance(result, SimResult)
        assert result.n_days == 30
        assert result.daily_status.shape == (30, len(HostStatus))
        assert (result.daily_status.sum(axis=1) == 8).all()
        assert result.daily_inoculations.shape == (30,)
        assert result.daily_treated.sum() == result.total_treatments
        assert perf.phases == ['clock', 'transitions', 'treatment', 'incidence']

    def test_status_series(self):
        result = run_simulation(_busy_config(), n_days=10, dt=0.1)
        series = result.status_series(HostStatus.SUSCEPTIBLE)
        assert series.shape == (10,)

    def test_no_record(self, closed_cfg):
        sim = Simulation(closed_cfg, record=False)
        sim.tick(5.0)
        assert sim.result().n_days == 0

    def test_seed_override(self):
        sim = Simulation(_busy_config(seed=1), seed=99)
        assert sim.seed == 99

    def test_bad_dt(self):
        with pytest.raises(ValueError, match="dt"):
            run_simulation(n_days=1, dt=0.0)

    @pytest.mark.parametrize("dt", [0.0, -0.5])
    def test_run_days_rejects_non_positive_dt(self, closed_cfg, dt):
        sim = Simulation(closed_cfg)
        with pytest.raises(ValueError, match="dt"):
            sim.run_days(3, dt=dt)
        assert sim.day == 0

    def test_final_inoculations(self, closed_cfg):
        sim = Simulation(closed_cfg)
        sim.tick(3.0)
        assert sim.result().final_inoculations == {'EXPOSED': 1, 'ACUTE': 0, 'CHRONIC': 0}

    def test_decimal_ticks_match_single_tick(self, closed_cfg):
        split, once = Simulation(closed_cfg), Simulation(closed_cfg)
        assert split.tick(1.4) + split.tick(0.6) == once.tick(2.0) == 2
        assert split.day == once.day == 2

    def test_negative_tick_rejected(self, closed_cfg):
        with pytest.raises(ValueError):
            Simulation(closed_cfg).tick(-1.0)
