#!/usr/bin/env python3
"""
Load allocation result files and generate summary tables and figures.

Walks a results directory (Results/{simulation}/{algorithm}[/{heuristic}]/
D{n}_S{m}_{tech}G.txt), averages every file's rows and draws:
1. Total cost vs. number of devices
2. Average response time vs. number of devices
"""
import argparse
import os
import re

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

from report import load_results

FILE_PATTERN = re.compile(r"^D(\d+)_S(\d+)_(\d+)G\.txt$")

COLORS = {
    'Random': '#808080',          # gray
    'Greedy_AscAsc': '#aec7e8',   # light blue
    'Greedy_AscDesc': '#1f77b4',  # blue
    'Greedy_DescAsc': '#2ca02c',  # green
    'Greedy_DescDesc': '#98df8a', # light green
    'Minimize_Cost': '#d62728',   # red
}
SA_COLOR = '#ff7f0e'  # orange


def series_label(root, dirpath):
    """Algorithm label from the directory below root, e.g. 'SA/Random'."""
    parts = os.path.relpath(dirpath, root).split(os.sep)
    return "/".join(parts[1:]) if len(parts) > 1 else parts[0]


def collect(root="Results", tech=None, servers=None):
    """
    Aggregate result files under root.

    Returns:
        {label: {devices: {'total_cost': [..], 'avg_rtime': [..]}}}
    """
    data = {}
    for dirpath, _, filenames in os.walk(root):
        for filename in sorted(filenames):
            match = FILE_PATTERN.match(filename)
            if not match:
                continue
            devices, num_servers, file_tech = (int(g) for g in match.groups())
            if tech is not None and file_tech != tech:
                continue
            if servers is not None and num_servers != servers:
                continue

            rows = load_results(os.path.join(dirpath, filename))
            if not rows:
                continue
            label = series_label(root, dirpath)
            entry = data.setdefault(label, {}).setdefault(devices, {'total_cost': [], 'avg_rtime': []})
            for row in rows:
                entry['total_cost'].append(float(row['TotalCost']))
                entry['avg_rtime'].append(float(row['Avg.RTime']))
    return data


def color_for(label):
    if label.startswith("SA"):
        return SA_COLOR
    return COLORS.get(label, '#9467bd')


def print_tables(data):
    print("\n" + "=" * 100)
    print("TOTAL COST BY DEVICES (mean over runs)")
    print("=" * 100)
    for label in sorted(data):
        print(f"\n{label}")
        print(f"  {'Devices':>8} {'Runs':>6} {'TotalCost':>14} {'Avg.RTime':>14}")
        for devices in sorted(data[label]):
            entry = data[label][devices]
            print(f"  {devices:>8} {len(entry['total_cost']):>6} "
                  f"{np.mean(entry['total_cost']):>14.6f} {np.mean(entry['avg_rtime']):>14.4f}")


def plot_metric(data, key, ylabel, filename, output_dir="."):
    """One line per algorithm, mean with min/max band across runs."""
    fig, ax = plt.subplots(figsize=(10, 6))

    for label in sorted(data):
        xs = sorted(data[label])
        means = np.array([np.mean(data[label][x][key]) for x in xs])
        lows = np.array([np.min(data[label][x][key]) for x in xs])
        highs = np.array([np.max(data[label][x][key]) for x in xs])

        color = color_for(label)
        linewidth = 2.0 if label.startswith("SA") or label == "Minimize_Cost" else 1.2
        ax.plot(xs, means, marker='o', label=label, color=color, linewidth=linewidth)
        if np.any(highs > lows):
            ax.fill_between(xs, lows, highs, color=color, alpha=0.15)

    ax.set_xlabel("Devices", fontsize=11, fontweight='bold')
    ax.set_ylabel(ylabel, fontsize=11, fontweight='bold')
    ax.grid(True, alpha=0.2, linestyle='--')
    ax.legend(fontsize=9, loc='upper left', framealpha=0.95)
    plt.tight_layout()

    path = os.path.join(output_dir, filename)
    plt.savefig(path, dpi=300, bbox_inches='tight')
    print(f"✓ Generated {path}")
    plt.close(fig)
    return path


def generate_figures(data, output_dir="."):
    os.makedirs(output_dir, exist_ok=True)
    return [
        plot_metric(data, 'total_cost', "Total Cost", 'fig1_total_cost.png', output_dir),
        plot_metric(data, 'avg_rtime', "Avg. Response Time (ms)", 'fig2_response_time.png', output_dir),
    ]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Plot allocation results")
    parser.add_argument('--results-dir', default="Results",
                        help='Result files directory (default: Results)')
    parser.add_argument('--output-dir', default=".",
                        help='Where to write the figures (default: .)')
    parser.add_argument('--tech', type=int, default=None,
                        help='Only use results for this technology')
    parser.add_argument('--servers', type=int, default=None,
                        help='Only use results for this total server count')
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    data = collect(args.results_dir, tech=args.tech, servers=args.servers)
    if not data:
        print(f"✗ No result files found under {args.results_dir}")
        print(f"  Run: python run_simulations.py")
        return 1

    print_tables(data)

    print("\n" + "=" * 100)
    print("GENERATING FIGURES")
    print("=" * 100)
    generate_figures(data, args.output_dir)

    print("\n" + "=" * 100)
    print("✓ Plot generation complete!")
    print("=" * 100)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
