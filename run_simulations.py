"""
Run allocation simulations over a sweep of device counts.

For every device count: pre-calculate the instance (coverage and timing) once and
optionally saturate the cloud servers with bottleneck devices. Every selected
algorithm then runs on its own copy of that instance; the metrics table is
printed and one row per run is appended to the result files. Simulated
Annealing is repeated over independent trials from the same instance and
summarized with a bootstrap confidence interval of the total cost.

Usage:
    python run_simulations.py                                   # Greedy_DescAsc, 300..500 devices
    python run_simulations.py --algorithm SA --heuristic Greedy_DescAsc --trials 30
    python run_simulations.py --simulation Heuristic --bottleneck --seed 42
    python run_simulations.py --algorithm Minimize_Cost --time-limit 60
    python run_simulations.py --help
"""

import argparse
import json
import random
import sys
from datetime import datetime

import numpy as np

from allocators import ALGORITHMS, create_allocator, run_annealing_trials, simulation_type_of
from allocators.greedy import VARIANTS
from dataset import DataStore
from metrics import HEURISTIC, METAHEURISTIC, p95_response_time, trial_statistics
from network import ConfigurationError, DataError, create_bottleneck, pre_calculation
from report import save_results, show_metrics

ALL_ALGORITHMS = [name for names in ALGORITHMS.values() for name in names]


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Edge/cloud device allocation simulations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_simulations.py --algorithm Random Greedy_DescAsc
  python run_simulations.py --algorithm SA --heuristic Random --trials 120
  python run_simulations.py --devices 100 --max-devices 1000 --step 100 --tech 5
        """
    )
    parser.add_argument('--simulation', choices=list(ALGORITHMS), default=None,
                        help='Run every algorithm of this simulation type')
    parser.add_argument('--algorithm', nargs='+', choices=ALL_ALGORITHMS, default=None,
                        help='Algorithms to run (default: Greedy_DescAsc)')
    parser.add_argument('--heuristic', choices=["Random"] + list(VARIANTS), default="Random",
                        help='Initial solution for SA (default: Random)')
    parser.add_argument('--devices', type=int, default=300,
                        help='First device count of the sweep (default: 300)')
    parser.add_argument('--max-devices', type=int, default=500,
                        help='Last device count of the sweep (default: 500)')
    parser.add_argument('--step', type=int, default=100,
                        help='Device count increment (default: 100)')
    parser.add_argument('--edge-servers', type=int, default=100,
                        help='Number of edge servers (default: 100)')
    parser.add_argument('--cloud-servers', type=int, default=5,
                        help='Number of cloud servers (default: 5)')
    parser.add_argument('--tech', type=int, default=4,
                        help='Network technology generation 1..6 (default: 4)')
    parser.add_argument('--trials', type=int, default=120,
                        help='Independent SA trials per configuration (default: 120)')
    parser.add_argument('--temperature', type=float, default=100.0,
                        help='SA initial temperature (default: 100.0)')
    parser.add_argument('--alpha', type=float, default=0.95,
                        help='SA cooling factor (default: 0.95)')
    parser.add_argument('--time-limit', type=float, default=1200.0,
                        help='Exact solver wall-clock limit in seconds (default: 1200)')
    parser.add_argument('--bottleneck', action='store_true',
                        help='Saturate each cloud server with one oversized device')
    parser.add_argument('--random-bottleneck', action='store_true',
                        help='Pick the bottleneck devices at random')
    parser.add_argument('--seed', type=int, default=None,
                        help='Seed for data generation and algorithms (default: random)')
    parser.add_argument('--data-dir', default="data",
                        help='Dataset cache directory (default: data)')
    parser.add_argument('--results-dir', default="Results",
                        help='Result files directory (default: Results)')
    parser.add_argument('--summary', default=None,
                        help='Write a JSON summary of all runs to this file')
    parser.add_argument('--debug', action='store_true',
                        help='Print allocation trace lines')

    return parser.parse_args(argv)


def selected_algorithms(args):
    if args.algorithm:
        return args.algorithm
    if args.simulation:
        return ALGORITHMS[args.simulation]
    return ["Greedy_DescAsc"]


def device_counts(args):
    if args.step <= 0:
        raise ConfigurationError("Device step must be positive")
    last = max(args.devices, args.max_devices)
    return list(range(args.devices, last + 1, args.step))


def bootstrap_ci(data, func=np.mean, n_bootstrap=10000, ci=0.95, seed=None):
    """
    Compute bootstrap confidence interval.

    Returns: (point_estimate, lower, upper)
    """
    data = np.asarray(data, dtype=float)
    point_est = func(data)
    if len(data) < 2:
        return point_est, point_est, point_est

    rng = np.random.default_rng(seed)
    bootstrap_stats = np.array([
        func(data[rng.integers(0, len(data), size=len(data))])
        for _ in range(n_bootstrap)
    ])

    alpha = (1 - ci) / 2
    lower = np.percentile(bootstrap_stats, alpha * 100)
    upper = np.percentile(bootstrap_stats, (1 - alpha) * 100)

    return point_est, lower, upper


def prepare_instance(args, num_devices, store, rng):
    """
    Pre-calculate one instance and inject the bottleneck devices.

    Every algorithm of a sweep row works on a copy of this state, so all of
    them see the same coverage and the same bottleneck devices.
    """
    state = pre_calculation(HEURISTIC, "Instance", num_devices,
                            args.edge_servers, args.cloud_servers, args.tech,
                            store=store, debug=args.debug)
    if args.bottleneck or args.random_bottleneck:
        modified = create_bottleneck(state, random_bottleneck=args.random_bottleneck, rng=rng)
        print(f"  Bottleneck devices: {modified}")
    return state


def run_algorithm(args, algorithm, instance, rng):
    """
    Run one algorithm on a copy of a pre-calculated instance.

    Returns:
        List of final RunStates (one per SA trial, a single one otherwise)
    """
    simulation_type = simulation_type_of(algorithm)
    state = instance.copy()
    state.metrics = state.metrics.relabel(simulation_type, algorithm)

    if simulation_type == METAHEURISTIC:
        annealer = create_allocator(algorithm, temperature=args.temperature,
                                    alpha=args.alpha, heuristic=args.heuristic)
        return run_annealing_trials(state, annealer, args.trials, rng)

    if algorithm == "Minimize_Cost":
        allocator = create_allocator(algorithm, time_limit=args.time_limit)
    else:
        allocator = create_allocator(algorithm)
    allocator.run(state, rng)
    return [state]


def summarize(states, seed=None):
    metrics_list = [s.metrics for s in states]
    summary = {
        'runs': len(states),
        'total_cost': trial_statistics(metrics_list, 'total_cost'),
        'average_response_time': trial_statistics(metrics_list, 'average_response_time'),
        'p95_response_time': float(np.mean([p95_response_time(s) for s in states])),
    }
    if len(states) > 1:
        point, lower, upper = bootstrap_ci([m.total_cost for m in metrics_list], seed=seed)
        summary['total_cost_ci'] = [float(point), float(lower), float(upper)]
    return summary


def run(args):
    algorithms = selected_algorithms(args)
    counts = device_counts(args)
    rng = random.Random(args.seed)
    store = DataStore(root=args.data_dir, seed=args.seed)

    print("=" * 100)
    print("Edge/Cloud Allocation Simulations")
    print("=" * 100)
    print(f"\n📊 Configuration:")
    print(f"  Algorithms: {', '.join(algorithms)}")
    print(f"  Devices: {counts}")
    print(f"  Servers: {args.edge_servers} EC + {args.cloud_servers} CC, {args.tech}G")
    print(f"  Bottleneck: {'random' if args.random_bottleneck else 'first covered' if args.bottleneck else 'off'}")
    print(f"  Seed: {args.seed}")
    print(f"  Timestamp: {datetime.now().isoformat()}")

    results = {}
    failures = 0
    for num_devices in counts:
        try:
            instance = prepare_instance(args, num_devices, store, rng)
        except (ConfigurationError, DataError) as e:
            print(f"✗ Instance with {num_devices} devices: {e}")
            failures += len(algorithms)
            continue

        for algorithm in algorithms:
            label = algorithm if algorithm != "SA" else f"SA/{args.heuristic}"
            print(f"\n{'─' * 100}")
            print(f"{label} - {num_devices} devices")
            print(f"{'─' * 100}")
            try:
                states = run_algorithm(args, algorithm, instance, rng)
            except (ConfigurationError, DataError) as e:
                print(f"✗ {label} with {num_devices} devices: {e}")
                failures += 1
                continue

            for state in states:
                if len(states) == 1 or args.debug:
                    show_metrics(state.metrics)
                save_results(state.metrics, args.results_dir)

            summary = summarize(states, seed=args.seed)
            results[f"{label}|D{num_devices}"] = summary

            cost = summary['total_cost']
            if 'total_cost_ci' in summary:
                point, lower, upper = summary['total_cost_ci']
                print(f"\n📈 {len(states)} trials: total cost mean {point:.6f} "
                      f"(95% CI {lower:.6f}-{upper:.6f}), "
                      f"min {cost['min']:.6f}, max {cost['max']:.6f}")
            print(f"✓ Results saved under {args.results_dir}/")

    if args.summary:
        with open(args.summary, 'w') as f:
            json.dump({
                'timestamp': datetime.now().isoformat(),
                'seed': args.seed,
                'results': results,
            }, f, indent=2)
        print(f"\n✓ Summary saved to {args.summary}")

    print("\n" + "=" * 100)
    print(f"Simulations complete: {len(results)} succeeded, {failures} failed")
    print("=" * 100)
    return results


def main(argv=None):
    args = parse_args(argv)
    try:
        run(args)
    except Exception as e:
        print(f"✗ Simulation aborted: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
