"""
Abstract base class for allocation strategies.

Every strategy works on a pre-calculated RunState and commits devices to
servers in place through Server.commit, always checking Server.can_serve first.
The shared run() lifecycle:
1. allocate: strategy-specific assignment of covered devices
2. timing: wall-clock time of allocate is added to the execution time
3. metrics: outputs are recomputed from the committed state and the
   strategy details (solver status, annealing parameters) are attached

Subclasses implement concrete policies (random, greedy, annealing, exact).
"""
import random
import time
from abc import ABC, abstractmethod

from metrics import HEURISTIC, calculate_metrics


class Allocator(ABC):
    simulation_type = HEURISTIC
    name = "Allocator"

    @abstractmethod
    def allocate(self, state, rng):
        """
        Commit covered devices of the state to servers.

        Args:
            state: RunState, mutated in place
            rng: random.Random driving every random draw of the strategy
        """
        pass

    def run(self, state, rng=None):
        """Allocate, record the elapsed time and recompute the metrics."""
        if rng is None:
            rng = random.Random()

        start = time.perf_counter()
        self.allocate(state, rng)
        state.metrics.execution_time_sec += time.perf_counter() - start
        state.metrics.details = self.details()

        calculate_metrics(state)
        state.log(f"{self.name}: served {state.metrics.devices_served_count}, "
                  f"total cost {state.metrics.total_cost:.6f}")
        return state.metrics

    def details(self):
        """Algorithm-specific payload recorded with the metrics."""
        return None

    def __repr__(self):
        return f"{self.__class__.__name__}({self.name})"
