"""
Metrics for allocation evaluation.

A Metrics record carries the run inputs (device/server/technology counts) and
the outputs computed from a committed assignment:
1. Coverage and service counts, split by server type
2. Servers used, split by server type
3. Costs: non-coverage (fixed at pre-calculation) + non-service + servers used
4. Average response time over served devices

Algorithm-specific fields travel in `details`, one of a closed set of payloads
(SolverDetails, AnnealingDetails, or None for plain heuristics). Rendering of
those payloads lives in report.py.
"""
from dataclasses import dataclass, field, replace
from typing import List, Optional, Union

import numpy as np

from servers import EDGE

HEURISTIC = "Heuristic"
METAHEURISTIC = "MetaHeuristic"
MATHEMATICAL = "Mathematical"


@dataclass
class SolverDetails:
    status: str = "Unknown"
    objective: float = 0.0
    gap: float = 1.0


@dataclass
class AnnealingDetails:
    heuristic: str = "Random"
    temperature: float = 0.0
    alpha: float = 0.0


@dataclass
class Metrics:
    simulation_type: str
    algorithm: str
    devices: int = 0
    servers_ec: int = 0
    servers_cc: int = 0
    tech: int = 0

    execution_time_sec: float = 0.0
    devices_covered_count: int = 0
    devices_served_count: int = 0
    devices_served_ec_count: int = 0
    devices_served_cc_count: int = 0
    servers_used_count: int = 0
    servers_used_ec_count: int = 0
    servers_used_cc_count: int = 0
    cost_of_servers_used: float = 0.0
    cost_of_non_coverage: float = 0.0
    cost_of_non_service: float = 0.0
    total_cost: float = 0.0
    average_response_time: float = 0.0

    details: Optional[Union[SolverDetails, AnnealingDetails]] = field(default=None)

    @property
    def servers(self):
        return self.servers_ec + self.servers_cc

    def relabel(self, simulation_type, algorithm, details=None):
        """Copy with the same inputs/outputs under another algorithm label."""
        return replace(self, simulation_type=simulation_type, algorithm=algorithm, details=details)


def calculate_metrics(state):
    """
    Recompute the outputs of state.metrics from the committed assignment.

    Every counter is reset first, so calling this repeatedly on the same state
    gives the same result. Coverage outputs and execution time are owned by
    pre-calculation and the allocators and are left untouched.
    """
    m = state.metrics
    m.devices_served_count = 0
    m.devices_served_ec_count = 0
    m.devices_served_cc_count = 0
    m.servers_used_count = 0
    m.servers_used_ec_count = 0
    m.servers_used_cc_count = 0
    m.cost_of_servers_used = 0.0
    m.cost_of_non_service = 0.0
    m.total_cost = 0.0
    m.average_response_time = 0.0

    response_times = []
    for device in state.devices:
        if device.served:
            response_times.append(device.server.response_time)
            if state.servers[device.server.server].type == EDGE:
                m.devices_served_ec_count += 1
            else:
                m.devices_served_cc_count += 1
        elif device.covered:
            m.cost_of_non_service += device.cnd

    for server in state.servers:
        if server.on:
            m.cost_of_servers_used += server.csc
            if server.type == EDGE:
                m.servers_used_ec_count += 1
            else:
                m.servers_used_cc_count += 1

    m.devices_served_count = len(response_times)
    if response_times:
        m.average_response_time = float(np.mean(response_times))

    m.servers_used_count = m.servers_used_ec_count + m.servers_used_cc_count
    m.total_cost = m.cost_of_non_coverage + m.cost_of_non_service + m.cost_of_servers_used
    return m


def current_costs(state):
    """(non-service cost, servers-used cost) of the committed assignment."""
    non_service = sum(d.cnd for d in state.devices if d.covered and not d.served)
    servers_used = sum(s.csc for s in state.servers if s.on)
    return non_service, servers_used


def p95_response_time(state):
    """95th percentile response time over served devices, 0.0 if none are served."""
    times = [d.server.response_time for d in state.devices if d.served]
    if not times:
        return 0.0
    return float(np.percentile(times, 95))


def trial_statistics(metrics_list: List[Metrics], attribute="total_cost"):
    """
    Distribution of one output across independent trials.

    Returns:
        dict with mean, std, min, p50, p95 and max (all 0.0 for no trials)
    """
    values = np.asarray([getattr(m, attribute) for m in metrics_list], dtype=float)
    if values.size == 0:
        return {'mean': 0.0, 'std': 0.0, 'min': 0.0, 'p50': 0.0, 'p95': 0.0, 'max': 0.0}
    return {
        'mean': float(np.mean(values)),
        'std': float(np.std(values, ddof=1)) if values.size > 1 else 0.0,
        'min': float(np.min(values)),
        'p50': float(np.percentile(values, 50)),
        'p95': float(np.percentile(values, 95)),
        'max': float(np.max(values)),
    }
