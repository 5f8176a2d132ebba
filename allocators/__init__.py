"""
Allocation strategies, grouped by simulation type.

    Heuristic:      Random, Greedy_AscAsc, Greedy_AscDesc, Greedy_DescAsc, Greedy_DescDesc
    MetaHeuristic:  SA (started from Random or one of the greedy variants)
    Mathematical:   Minimize_Cost
"""
from metrics import HEURISTIC, MATHEMATICAL, METAHEURISTIC
from network import ConfigurationError
from .annealing import SimulatedAnnealing, initial_allocator, run_annealing_trials
from .base import Allocator
from .exact import MinimizeCost
from .greedy import VARIANTS, Greedy
from .random_alloc import RandomAllocator

ALGORITHMS = {
    HEURISTIC: ["Random"] + list(VARIANTS),
    METAHEURISTIC: ["SA"],
    MATHEMATICAL: ["Minimize_Cost"],
}


def create_allocator(name, **params):
    """Create an allocator instance by algorithm name."""
    if name == "Random":
        return RandomAllocator()
    elif name in VARIANTS:
        return Greedy.from_name(name)
    elif name == "SA":
        return SimulatedAnnealing(**params)
    elif name == "Minimize_Cost":
        return MinimizeCost(**params)
    raise ConfigurationError(f"Unknown algorithm: {name}")


def simulation_type_of(name):
    for simulation_type, names in ALGORITHMS.items():
        if name in names:
            return simulation_type
    raise ConfigurationError(f"Unknown algorithm: {name}")


__all__ = [
    "ALGORITHMS",
    "Allocator",
    "Greedy",
    "MinimizeCost",
    "RandomAllocator",
    "SimulatedAnnealing",
    "create_allocator",
    "initial_allocator",
    "run_annealing_trials",
    "simulation_type_of",
]
