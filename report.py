"""
Result persistence and console rendering for allocation metrics.

Result files are `;` separated text files, one per simulation configuration:

    {root}/{simulation}/{algorithm}[/{heuristic}]/D{devices}_S{servers}_{tech}G.txt

Each run appends one row; the header is written only when the file is created.
Counts are stored as percentages of their reference total (4 decimals), other
floats with 6 decimals. Solver runs add Status;OF;GAP and annealing runs add
Temperature;Alpha;Heuristic.
"""
import csv
import os

from metrics import AnnealingDetails, SolverDetails
from netmath import to_percentage

COMMON_HEADER = ["Devices", "Servers", "Tech", "ExeTime", "DCovered", "DServed", "DServedEC",
                 "DServedCC", "SUsed", "SUsedEC", "SUsedCC", "TotalCost", "CostNCoverage",
                 "CostNService", "CostS", "Avg.RTime"]
SOLVER_HEADER = ["Status", "OF", "GAP"]
ANNEALING_HEADER = ["Temperature", "Alpha", "Heuristic"]

TOTAL_WIDTH = 62
LABEL_WIDTH = 26


def fmt(value, precision=6):
    return f"{value:.{precision}f}"


def pct(numerator, denominator, precision=4):
    return fmt(to_percentage(numerator, denominator), precision)


def header(metrics):
    columns = list(COMMON_HEADER)
    if isinstance(metrics.details, SolverDetails):
        columns += SOLVER_HEADER
    elif isinstance(metrics.details, AnnealingDetails):
        columns += ANNEALING_HEADER
    return columns


def row(metrics):
    m = metrics
    values = [
        str(m.devices),
        str(m.servers),
        str(m.tech),
        fmt(m.execution_time_sec),
        pct(m.devices_covered_count, m.devices),
        pct(m.devices_served_count, m.devices),
        pct(m.devices_served_ec_count, m.devices_served_count),
        pct(m.devices_served_cc_count, m.devices_served_count),
        pct(m.servers_used_count, m.servers),
        pct(m.servers_used_ec_count, m.servers_ec),
        pct(m.servers_used_cc_count, m.servers_cc),
        fmt(m.total_cost),
        fmt(m.cost_of_non_coverage),
        fmt(m.cost_of_non_service),
        fmt(m.cost_of_servers_used),
        fmt(m.average_response_time),
    ]

    details = m.details
    if isinstance(details, SolverDetails):
        values += [details.status, fmt(details.objective), fmt(details.gap)]
    elif isinstance(details, AnnealingDetails):
        values += [fmt(details.temperature), fmt(details.alpha), details.heuristic]
    return values


def result_path(metrics, root="Results"):
    parts = [root, metrics.simulation_type, metrics.algorithm]
    if isinstance(metrics.details, AnnealingDetails):
        parts.append(metrics.details.heuristic)
    filename = f"D{metrics.devices}_S{metrics.servers}_{metrics.tech}G.txt"
    return os.path.join(*parts, filename)


def save_results(metrics, root="Results"):
    """
    Append one result row, writing the header first when the file is new.

    Returns:
        Path of the result file, or None if it could not be written
    """
    path = result_path(metrics, root)
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        is_new = not os.path.exists(path)
        with open(path, 'a', newline='') as f:
            writer = csv.writer(f, delimiter=';')
            if is_new:
                writer.writerow(header(metrics))
            writer.writerow(row(metrics))
    except OSError as e:
        print(f"✗ Could not write results to {path}: {e}")
        return None
    return path


def load_results(path):
    """Read a result file back as a list of dicts keyed by column name."""
    if not os.path.exists(path):
        print(f"✗ {path} not found")
        return []
    with open(path, 'r', newline='') as f:
        return list(csv.DictReader(f, delimiter=';'))


def _line():
    return "+" + "=" * (TOTAL_WIDTH - 2) + "+"


def _separator():
    return "+" + "-" * (LABEL_WIDTH + 2) + "+" + "-" * (TOTAL_WIDTH - LABEL_WIDTH - 5) + "+"


def _title(text):
    padding = TOTAL_WIDTH - 3 - len(text)
    left = padding // 2
    right = padding - left + 1
    return "|" + " " * left + text + " " * right + "|"


def _row(label, value):
    return f"| {label:<{LABEL_WIDTH}} | {value:<{TOTAL_WIDTH - LABEL_WIDTH - 7}} |"


def render_metrics(metrics):
    """Boxed text table of a metrics record, returned as a list of lines."""
    m = metrics
    lines = [
        _line(),
        _title(f"SIMULATION {m.simulation_type} METRICS"),
        _separator(),
        _row("Algorithm", m.algorithm),
        _row("Execution Time (s)", fmt(m.execution_time_sec)),
        _row("Mobile Technology", f"{m.tech}G"),
        _separator(),
        _title("DEVICES"),
        _separator(),
        _row("Total", str(m.devices)),
        _row("Covered", f"{m.devices_covered_count} ({pct(m.devices_covered_count, m.devices)}%)"),
        _row("Served", f"{m.devices_served_count} ({pct(m.devices_served_count, m.devices)}%)"),
        _row("  - on EC", f"{m.devices_served_ec_count} "
                          f"({pct(m.devices_served_ec_count, m.devices_served_count)}% of served)"),
        _row("  - on CC", f"{m.devices_served_cc_count} "
                          f"({pct(m.devices_served_cc_count, m.devices_served_count)}% of served)"),
        _separator(),
        _title("SERVERS"),
        _separator(),
        _row("Total", f"{m.servers} ({m.servers_ec} EC + {m.servers_cc} CC)"),
        _row("Used", f"{m.servers_used_count} ({pct(m.servers_used_count, m.servers)}%)"),
        _row("  - Used EC", f"{m.servers_used_ec_count} "
                            f"({pct(m.servers_used_ec_count, m.servers_ec)}% of EC)"),
        _row("  - Used CC", f"{m.servers_used_cc_count} "
                            f"({pct(m.servers_used_cc_count, m.servers_cc)}% of CC)"),
        _separator(),
        _title("COSTS"),
        _separator(),
        _row("TOTAL COST", fmt(m.total_cost)),
        _row("  - Cost Non-Coverage", fmt(m.cost_of_non_coverage)),
        _row("  - Cost Non-Service", fmt(m.cost_of_non_service)),
        _row("  - Cost Servers Used", fmt(m.cost_of_servers_used)),
        _separator(),
        _row("Avg. Response Time (ms)", fmt(m.average_response_time, 4)),
    ]

    details = m.details
    if isinstance(details, SolverDetails):
        lines += [
            _separator(),
            _title("SOLVER STATS"),
            _separator(),
            _row("Solver Status", details.status),
            _row("Objective Function (OF)", fmt(details.objective)),
            _row("MIP Gap", f"{pct(details.gap, 1.0)}%"),
        ]
    elif isinstance(details, AnnealingDetails):
        lines += [
            _separator(),
            _title(f"{m.algorithm} PARAMETERS"),
            _separator(),
            _row("Initial Solution", details.heuristic),
            _row("Initial Temperature", fmt(details.temperature, 2)),
            _row("Alpha (Cooling Rate)", fmt(details.alpha, 2)),
        ]
    lines.append(_line())
    return lines


def show_metrics(metrics):
    print()
    print("\n".join(render_metrics(metrics)))
