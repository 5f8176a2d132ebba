"""
Tests for Simulated Annealing and the trial driver.
"""
import random

import pytest
from test_utils import assert_state_invariants, run_allocator_test

from allocators import create_allocator
from allocators.annealing import SimulatedAnnealing, initial_allocator, run_annealing_trials
from allocators.greedy import Greedy
from allocators.random_alloc import RandomAllocator
from metrics import METAHEURISTIC, AnnealingDetails, current_costs
from network import ConfigurationError


def fast_annealer(heuristic="Random"):
    """About 14 temperature levels: enough moves, still quick."""
    return SimulatedAnnealing(temperature=10.0, alpha=0.5, heuristic=heuristic)


@pytest.mark.parametrize("kwargs", [
    {"alpha": 0.0},
    {"alpha": 1.0},
    {"alpha": 1.5},
    {"temperature": 0.0},
    {"temperature": -5.0},
    {"heuristic": "Greedy_Nowhere"},
])
def test_invalid_parameters(kwargs):
    with pytest.raises(ConfigurationError):
        SimulatedAnnealing(**kwargs)


def test_details_payload():
    details = SimulatedAnnealing(temperature=50.0, alpha=0.9, heuristic="Greedy_DescAsc").details()
    assert details == AnnealingDetails("Greedy_DescAsc", 50.0, 0.9)
    assert SimulatedAnnealing(heuristic=None).details().heuristic == "Provided"


def test_initial_allocator():
    assert initial_allocator(None) is None
    assert isinstance(initial_allocator("Random"), RandomAllocator)
    assert initial_allocator("Greedy_AscDesc").name == "Greedy_AscDesc"


def test_best_cost_is_non_increasing(small_state):
    RandomAllocator().run(small_state, random.Random(2))
    annealer = fast_annealer(None)

    annealer.run(small_state, random.Random(2))

    costs = annealer.best_costs
    assert len(costs) > 2
    assert all(later <= earlier for earlier, later in zip(costs, costs[1:]))


def test_final_state_is_best_solution(small_state):
    RandomAllocator().run(small_state, random.Random(5))
    start_cost = small_state.metrics.total_cost
    annealer = fast_annealer(None)

    annealer.run(small_state, random.Random(5))

    m = small_state.metrics
    assert m.total_cost <= start_cost + 1e-9
    assert m.total_cost - m.cost_of_non_coverage == pytest.approx(annealer.best_costs[-1])
    assert sum(current_costs(small_state)) == pytest.approx(annealer.best_costs[-1])
    assert_state_invariants(small_state)


def test_annealing_improves_on_empty_start(small_state):
    """Starting with nothing served, SA serves devices since every service beats its cnd."""
    annealer = SimulatedAnnealing(temperature=10.0, alpha=0.5, heuristic=None)
    run_allocator_test(annealer, small_state, seed=9)

    assert small_state.metrics.devices_served_count > 0
    assert_state_invariants(small_state)


def test_annealing_without_covered_devices(uncovered_state):
    annealer = fast_annealer()
    annealer.run(uncovered_state, random.Random(0))
    assert annealer.best_costs == []
    assert uncovered_state.metrics.devices_served_count == 0


def test_generate_neighbor_then_undo_restores_state(small_state):
    Greedy.from_name("Greedy_DescAsc").run(small_state)
    before = small_state.assignment()
    supplies = [(s.supply.pcn, s.on) for s in small_state.servers]
    cns, csu = current_costs(small_state)
    annealer = fast_annealer()

    rng = random.Random(1)
    move = None
    while move is None:
        move, new_cns, new_csu = annealer.generate_neighbor(small_state, rng, cns, csu)

    assert small_state.assignment() != before
    assert new_cns + new_csu == pytest.approx(sum(current_costs(small_state)))

    annealer.undo(small_state, move)
    assert small_state.assignment() == before
    assert [(s.supply.pcn, s.on) for s in small_state.servers] == supplies


def test_same_seed_same_result(small_state):
    a = small_state.copy()
    b = small_state.copy()
    for state in (a, b):
        RandomAllocator().run(state, random.Random(8))
        fast_annealer().run(state, random.Random(8))
    assert a.assignment() == b.assignment()


def test_trials_do_not_touch_base_state(small_state):
    results = run_annealing_trials(small_state, fast_annealer("Greedy_DescAsc"), 3,
                                   random.Random(0))

    assert len(results) == 3
    assert small_state.assignment() == {}
    assert not any(s.on for s in small_state.servers)
    for trial in results:
        assert trial is not small_state
        assert trial.metrics.simulation_type == METAHEURISTIC
        assert trial.metrics.algorithm == "SA"
        assert trial.metrics.details == AnnealingDetails("Greedy_DescAsc", 10.0, 0.5)
        assert_state_invariants(trial)


def test_trials_with_random_start(small_state):
    results = run_annealing_trials(small_state, fast_annealer("Random"), 4, random.Random(3))
    assert len(results) == 4
    for trial in results:
        assert trial.metrics.execution_time_sec > 0.0
        assert trial.metrics.details.heuristic == "Random"


def test_trials_rejects_non_positive_count(small_state):
    with pytest.raises(ConfigurationError):
        run_annealing_trials(small_state, fast_annealer(), 0)


def spy_first_neighbor(annealer, state, monkeypatch):
    """Record the state's assignment when the first neighbor is generated."""
    seen = []
    original = annealer.generate_neighbor

    def generate_neighbor(state_, rng, cns, csu):
        if not seen:
            seen.append(state_.assignment())
        return original(state_, rng, cns, csu)

    monkeypatch.setattr(annealer, "generate_neighbor", generate_neighbor)
    return seen


def test_run_starts_from_initial_heuristic(small_state, monkeypatch):
    expected = small_state.copy()
    Greedy.from_name("Greedy_DescAsc").run(expected)
    annealer = create_allocator("SA", temperature=10.0, alpha=0.5, heuristic="Greedy_DescAsc")
    seen = spy_first_neighbor(annealer, small_state, monkeypatch)

    annealer.run(small_state, random.Random(0))

    assert seen[0] == expected.assignment()
    assert small_state.metrics.details.heuristic == "Greedy_DescAsc"
    assert small_state.metrics.total_cost <= expected.metrics.total_cost + 1e-9
    assert_state_invariants(small_state)


def test_run_with_random_start_serves_before_annealing(small_state, monkeypatch):
    annealer = create_allocator("SA", temperature=10.0, alpha=0.5, heuristic="Random")
    seen = spy_first_neighbor(annealer, small_state, monkeypatch)

    annealer.run(small_state, random.Random(0))

    assert len(seen[0]) > 0


def test_initial_heuristic_replaces_existing_assignment(small_state, monkeypatch):
    # everything on the cloud server first; the greedy start must not build on it
    Greedy.from_name("Greedy_DescDesc").run(small_state)
    expected = small_state.copy()
    expected.reset_assignment()
    Greedy.from_name("Greedy_DescAsc").run(expected)
    annealer = fast_annealer("Greedy_DescAsc")
    seen = spy_first_neighbor(annealer, small_state, monkeypatch)

    annealer.run(small_state, random.Random(0))

    assert seen[0] == expected.assignment()


def test_warm_start_keeps_given_solution(small_state, monkeypatch):
    Greedy.from_name("Greedy_DescDesc").run(small_state)
    before = small_state.assignment()
    annealer = SimulatedAnnealing(temperature=10.0, alpha=0.5, heuristic="Random",
                                  warm_start=True)
    seen = spy_first_neighbor(annealer, small_state, monkeypatch)

    annealer.run(small_state, random.Random(0))

    assert seen[0] == before
    assert small_state.metrics.details.heuristic == "Random"


def test_trials_run_heuristic_once_per_trial(small_state, monkeypatch):
    calls = []
    original = Greedy.allocate

    def counting_allocate(self, state, rng):
        calls.append(self.name)
        return original(self, state, rng)

    monkeypatch.setattr(Greedy, "allocate", counting_allocate)
    annealer = fast_annealer("Greedy_DescAsc")

    run_annealing_trials(small_state, annealer, 3, random.Random(0))

    assert calls == ["Greedy_DescAsc"], "deterministic start runs once for all trials"
    assert not annealer.warm_start
