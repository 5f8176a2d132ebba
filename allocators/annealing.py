import copy
import math

from metrics import METAHEURISTIC, AnnealingDetails, current_costs
from netmath import shuffled_range
from network import ConfigurationError
from .base import Allocator
from .greedy import VARIANTS, Greedy
from .random_alloc import RandomAllocator


class Move:
    """One applied neighbor move, kept so it can be rolled back."""

    def __init__(self, device, old_link, new_link):
        self.device = device
        self.old_link = old_link  # None when the device was unserved
        self.new_link = new_link


class SimulatedAnnealing(Allocator):
    """
    Simulated Annealing over single-device reassignments.

    Starts from the solution of the initial `heuristic`, run on a cleared
    assignment (heuristic=None or warm_start=True anneal from what the state
    already holds), and tracks the current and best solutions together with
    their two cost components: non-service cost and servers-used cost.

    Algorithm:
    1. Neighbor: pick a random covered device, try up to `max_tries` of its
       candidates in shuffled order (skipping its current server) and move it
       to the first one with capacity. Activating a server adds its cost,
       emptying the old one removes it, serving a previously unserved device
       removes its non-service cost. No feasible candidate means no move.
    2. Acceptance: improving moves are always accepted and restart the inner
       counter, so an improving streak can stay at one temperature; a best
       solution is kept whenever the current one beats it. Other moves are
       accepted with probability exp(-delta / T) (Metropolis).
    3. Cooling: after up to `inner_iterations` attempts, T *= alpha; stop once
       T <= min_temperature.
    4. The best solution is restored into the state at the end.

    Moves are applied to the current solution and rolled back on rejection
    instead of copying the whole state per neighbor.
    """

    simulation_type = METAHEURISTIC
    name = "SA"

    def __init__(self, temperature=100.0, alpha=0.95, heuristic="Random",
                 min_temperature=1e-3, inner_iterations=10, max_tries=5,
                 warm_start=False):
        if temperature <= 0:
            raise ConfigurationError("Initial temperature must be positive")
        if not 0 < alpha < 1:
            raise ConfigurationError("Cooling factor alpha must be in (0, 1)")
        if heuristic is not None and heuristic != "Random" and heuristic not in VARIANTS:
            raise ConfigurationError(f"Unknown initial heuristic: {heuristic}")

        self.temperature = temperature
        self.alpha = alpha
        self.heuristic = heuristic
        self.min_temperature = min_temperature
        self.inner_iterations = inner_iterations
        self.max_tries = max_tries
        # state already holds the solution of `heuristic`
        self.warm_start = warm_start
        self.best_costs = []  # best cost after each temperature level
        self.accepted = 0
        self.improved = 0

    def details(self):
        return AnnealingDetails(heuristic=self.heuristic or "Provided",
                                temperature=self.temperature, alpha=self.alpha)

    def generate_neighbor(self, state, rng, cns, csu):
        """
        Move one random covered device to another feasible server.

        Returns:
            (move, cns, csu): the applied Move (None if nothing moved) and the
            updated cost components
        """
        device = state.devices[state.covered[rng.randint(0, len(state.covered) - 1)]]
        if not device.servers:
            return None, cns, csu

        tries = 0
        for idx in shuffled_range(0, len(device.servers) - 1, rng):
            if tries >= self.max_tries:
                break
            tries += 1

            link = device.servers[idx]
            old_link = device.server
            if old_link is not None and link.server == old_link.server:
                continue

            new_server = state.servers[link.server]
            if not new_server.can_serve(device):
                continue

            if not new_server.on:
                csu += new_server.csc

            if device.served:
                old_server = state.servers[old_link.server]
                old_server.release(device)
                if not old_server.on:
                    csu -= old_server.csc
            else:
                cns -= device.cnd

            new_server.commit(device, link)
            return Move(device, old_link, link), cns, csu

        return None, cns, csu

    def undo(self, state, move):
        device = move.device
        state.servers[move.new_link.server].release(device)
        if move.old_link is not None:
            state.servers[move.old_link.server].commit(device, move.old_link)

    @staticmethod
    def snapshot(state):
        return {d.id: d.server for d in state.devices if d.served}

    @staticmethod
    def restore(state, snapshot):
        state.reset_assignment()
        for d_idx, link in snapshot.items():
            state.servers[link.server].commit(state.devices[d_idx], link)

    def allocate(self, state, rng):
        self.best_costs = []
        self.accepted = 0
        self.improved = 0
        if not state.covered:
            return

        starter = None if self.warm_start else initial_allocator(self.heuristic)
        if starter is not None:
            state.reset_assignment()
            starter.allocate(state, rng)
            state.log(f"Initial solution from {starter.name}: {len(state.assignment())} served")

        current_cns, current_csu = current_costs(state)
        current_cost = current_cns + current_csu
        best_cost = current_cost
        best = self.snapshot(state)
        self.best_costs.append(best_cost)

        T = self.temperature
        while T > self.min_temperature:
            i = 0
            while i < self.inner_iterations:
                move, neighbor_cns, neighbor_csu = self.generate_neighbor(
                    state, rng, current_cns, current_csu)
                neighbor_cost = neighbor_cns + neighbor_csu
                delta = neighbor_cost - current_cost

                if delta < 0:
                    i = 0  # keep exploiting an improving direction
                    current_cns, current_csu, current_cost = neighbor_cns, neighbor_csu, neighbor_cost
                    self.accepted += 1
                    if current_cost < best_cost:
                        best_cost = current_cost
                        best = self.snapshot(state)
                        self.improved += 1
                elif rng.random() < math.exp(-delta / T):
                    current_cns, current_csu, current_cost = neighbor_cns, neighbor_csu, neighbor_cost
                    self.accepted += 1
                elif move is not None:
                    self.undo(state, move)
                i += 1

            T *= self.alpha
            self.best_costs.append(best_cost)

        self.restore(state, best)
        state.log(f"SA finished: best cost {best_cost:.6f}, "
                  f"{self.accepted} accepted moves, {self.improved} improvements")


def initial_allocator(name):
    """Heuristic producing the starting solution, None to keep the given one."""
    if name is None:
        return None
    if name == "Random":
        return RandomAllocator()
    return Greedy.from_name(name)


def run_annealing_trials(state, annealer, trials, rng=None):
    """
    Repeat initial heuristic + annealing from the same pre-calculated state.

    A randomized initial heuristic is re-run on a fresh copy for every trial;
    a deterministic one runs once and its solution is copied into each trial.
    The annealing itself runs warm, so the heuristic is not repeated inside it.
    The input state is never modified.

    Returns:
        List of final RunStates, one per trial, with relabelled metrics
    """
    if trials <= 0:
        raise ConfigurationError("Number of trials must be positive")

    warm = copy.copy(annealer)
    warm.warm_start = True

    base = state.copy()
    starter = initial_allocator(annealer.heuristic)
    if starter is not None and not starter.randomized:
        starter.run(base, rng)

    results = []
    for trial in range(trials):
        trial_state = base.copy()
        if starter is not None and starter.randomized:
            starter.run(trial_state, rng)

        trial_state.metrics = trial_state.metrics.relabel(
            METAHEURISTIC, warm.name, warm.details())
        warm.run(trial_state, rng)
        trial_state.log(f"Trial {trial + 1}/{trials}: total cost {trial_state.metrics.total_cost:.6f}")
        results.append(trial_state)
    return results
