"""
Cooling factor sensitivity analysis for Simulated Annealing.

Runs SA over a grid of cooling factors on one fixed instance, always starting
from the same Greedy_DescAsc solution:
  - alpha=0.80  (fast cooling, few temperature levels)
  - alpha=0.90
  - alpha=0.95  (default)
  - alpha=0.99  (slow cooling, many temperature levels)

Reports mean/std total cost per alpha across seeds and checks whether the
relative order of the alphas changes from seed to seed.
"""
import argparse
import random

import numpy as np

from allocators import SimulatedAnnealing, create_allocator
from dataset import DataStore
from metrics import METAHEURISTIC
from network import create_bottleneck, pre_calculation

ALPHA_VALUES = [0.80, 0.90, 0.95, 0.99]

# Instance
instance = {
    "devices": 200,
    "edge_servers": 50,
    "cloud_servers": 5,
    "tech": 4,
}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="SA cooling factor sensitivity")
    parser.add_argument('--seeds', type=int, default=3,
                        help='Number of seeds per alpha (default: 3)')
    parser.add_argument('--base-seed', type=int, default=42,
                        help='First seed (default: 42)')
    parser.add_argument('--temperature', type=float, default=100.0,
                        help='Initial temperature (default: 100.0)')
    parser.add_argument('--data-dir', default="data",
                        help='Dataset cache directory (default: data)')
    parser.add_argument('--bottleneck', action='store_true',
                        help='Saturate each cloud server with one oversized device')
    return parser.parse_args(argv)


def greedy_start(args):
    """Pre-calculated instance with the Greedy_DescAsc solution committed."""
    state = pre_calculation(METAHEURISTIC, "SA", instance["devices"],
                            instance["edge_servers"], instance["cloud_servers"],
                            instance["tech"], store=DataStore(args.data_dir, seed=args.base_seed))
    if args.bottleneck:
        create_bottleneck(state)
    create_allocator("Greedy_DescAsc").run(state)
    return state


def sweep(start, alphas, seeds, temperature=100.0):
    """
    Run SA for every (alpha, seed) pair from copies of the same start.

    Returns:
        {alpha: [total cost per seed]}
    """
    results = {alpha: [] for alpha in alphas}
    for seed in seeds:
        for alpha in alphas:
            state = start.copy()
            annealer = SimulatedAnnealing(temperature=temperature, alpha=alpha,
                                          heuristic="Greedy_DescAsc", warm_start=True)
            state.metrics = state.metrics.relabel(METAHEURISTIC, annealer.name, annealer.details())
            annealer.run(state, random.Random(seed))
            results[alpha].append(state.metrics.total_cost)
    return results


def ranking_per_seed(results, alphas, num_seeds):
    """Alphas ordered by total cost (lowest first) for each seed."""
    rankings = []
    for i in range(num_seeds):
        rankings.append(sorted(alphas, key=lambda a: (results[a][i], a)))
    return rankings


def main(argv=None):
    args = parse_args(argv)
    seeds = [args.base_seed + i for i in range(args.seeds)]

    print("=" * 100)
    print("COOLING SENSITIVITY ANALYSIS: Simulated Annealing")
    print(f"Instance: {instance['devices']} devices, {instance['edge_servers']} EC + "
          f"{instance['cloud_servers']} CC, {instance['tech']}G")
    print(f"Initial solution: Greedy_DescAsc, T0={args.temperature}")
    print("=" * 100)

    start = greedy_start(args)
    print(f"\nGreedy start: total cost {start.metrics.total_cost:.6f}")

    results = sweep(start, ALPHA_VALUES, seeds, temperature=args.temperature)

    print(f"\n{'─' * 100}")
    print(f"{'Alpha':<10} {'Mean':>14} {'Std':>14} {'Range':>30}")
    print(f"{'-' * 100}")
    for alpha in ALPHA_VALUES:
        costs = results[alpha]
        cost_range = f"[{min(costs):.6f}, {max(costs):.6f}]"
        print(f"{alpha:<10.2f} {np.mean(costs):>14.6f} {np.std(costs):>14.6f} {cost_range:>30}")

    rankings = ranking_per_seed(results, ALPHA_VALUES, len(seeds))
    print("\nRanking Stability:")
    if all(r == rankings[0] for r in rankings[1:]):
        print("  ✓ Alpha ranking STABLE across seeds")
    else:
        print("  ⚠ Alpha ranking CHANGED across seeds")
        for seed, ranking in zip(seeds, rankings):
            print(f"    └─ seed {seed}: {' < '.join(f'{a:.2f}' for a in ranking)}")
    return results


if __name__ == "__main__":
    main()
